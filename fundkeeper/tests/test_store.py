"""
fundkeeper/tests/test_store.py

Credential store behavior against a real SQLite file: uniqueness,
lookups, version-checked saves and the saved-fund retry loop.
"""

import logging

import pytest
from sqlalchemy.exc import OperationalError

from fundkeeper.errors import ConcurrentUpdate, DuplicateUser, InvalidCredentials, StoreUnavailable
from fundkeeper.services.fund import (
    MAX_UPDATE_ATTEMPTS,
    add_saved_fund,
    list_saved_funds,
    remove_saved_fund,
)
from fundkeeper.services.user import (
    create_user,
    get_user_by_id,
    get_user_by_username,
    login_user,
    register_user,
    save_user,
)
from fundkeeper.utils.security import hash_password


def _hash():
    return hash_password("pw", rounds=4)


def test_create_assigns_opaque_id_and_empty_list(db_session):
    user = create_user("carol", _hash(), db_session)
    assert isinstance(user.id, str) and len(user.id) == 32
    assert user.saved_funds == []
    assert user.version == 1


def test_lookups(db_session):
    user = create_user("carol", _hash(), db_session)
    assert get_user_by_username("carol", db_session).id == user.id
    assert get_user_by_id(user.id, db_session).username == "carol"
    assert get_user_by_username("dave", db_session) is None
    assert get_user_by_id("missing", db_session) is None


def test_duplicate_username(db_session):
    create_user("carol", _hash(), db_session)
    with pytest.raises(DuplicateUser):
        create_user("carol", _hash(), db_session)


def test_register_and_login_flow(db_session):
    register_user("carol", "secret", db_session, rounds=4)
    assert login_user("carol", "secret", db_session).username == "carol"
    with pytest.raises(InvalidCredentials):
        login_user("carol", "wrong", db_session)
    with pytest.raises(InvalidCredentials):
        login_user("nobody", "secret", db_session)


def test_save_bumps_version(db_session):
    user = create_user("carol", _hash(), db_session)
    add_saved_fund(user, {"id": "F1"}, db_session)
    assert user.version == 2
    assert list_saved_funds(user) == [{"id": "F1"}]


def test_stale_save_raises_concurrent_update(database):
    s1, s2 = database.session(), database.session()
    try:
        user = create_user("carol", _hash(), s1)
        other = get_user_by_id(user.id, s2)
        assert other.saved_funds == []

        user.saved_funds = [{"id": "A"}]
        save_user(user, s1)

        other.saved_funds = [{"id": "B"}]
        with pytest.raises(ConcurrentUpdate):
            save_user(other, s2)

        # The first writer's data survived
        assert list_saved_funds(get_user_by_id(user.id, s2)) == [{"id": "A"}]
    finally:
        s1.close()
        s2.close()


def test_add_retries_on_concurrent_update(database):
    s1, s2 = database.session(), database.session()
    try:
        user = create_user("carol", _hash(), s1)
        stale = get_user_by_id(user.id, s2)
        assert stale.saved_funds == []

        add_saved_fund(user, {"id": "A"}, s1)
        funds = add_saved_fund(stale, {"id": "B"}, s2)

        assert funds == [{"id": "A"}, {"id": "B"}]
    finally:
        s1.close()
        s2.close()


def test_remove_retries_on_concurrent_update(database):
    s1, s2 = database.session(), database.session()
    try:
        user = create_user("carol", _hash(), s1)
        add_saved_fund(user, {"id": "A"}, s1)
        add_saved_fund(user, {"id": "B"}, s1)

        stale = get_user_by_id(user.id, s2)
        assert len(stale.saved_funds) == 2

        remove_saved_fund(user, "A", s1)
        funds = remove_saved_fund(stale, "B", s2)

        assert funds == []
    finally:
        s1.close()
        s2.close()


def test_store_failure_becomes_store_unavailable(db_session, monkeypatch):
    user = create_user("carol", _hash(), db_session)

    def broken_commit():
        raise OperationalError("UPDATE users", {}, Exception("database is locked"))

    monkeypatch.setattr(db_session, "commit", broken_commit)
    user.saved_funds = [{"id": "F1"}]
    with pytest.raises(StoreUnavailable):
        save_user(user, db_session)


def test_register_stores_bcrypt_hash_with_requested_cost(db_session):
    user = register_user("carol", "secret", db_session, rounds=5)
    assert user.password_hash.startswith("$2")
    assert user.password_hash.split("$")[2] == "05"


def test_store_failure_does_not_reload_user(db_session, monkeypatch, caplog):
    user = create_user("carol", _hash(), db_session)
    user_id = user.id

    def broken(*args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    # Any lazy reload after the rollback would go through execute and fail differently
    monkeypatch.setattr(db_session, "commit", broken)
    monkeypatch.setattr(db_session, "execute", broken)
    user.saved_funds = [{"id": "F1"}]

    with caplog.at_level(logging.ERROR, logger="fundkeeper.services.user"):
        with pytest.raises(StoreUnavailable):
            save_user(user, db_session)
    assert f"id={user_id}" in caplog.text


def test_update_gives_up_after_max_attempts(db_session, monkeypatch):
    user = create_user("carol", _hash(), db_session)
    calls = []

    def always_stale(u, db):
        calls.append(u)
        raise ConcurrentUpdate()

    monkeypatch.setattr("fundkeeper.services.fund.save_user", always_stale)
    with pytest.raises(ConcurrentUpdate):
        add_saved_fund(user, {"id": "F1"}, db_session)
    assert len(calls) == MAX_UPDATE_ATTEMPTS


@pytest.mark.parametrize(
    "saved, remove_id, kept",
    [
        ([{"id": True}, {"id": 1}], 1, [{"id": True}]),
        ([{"id": True}, {"id": 1}], True, [{"id": 1}]),
        ([{"id": 1}, {"id": "1"}], 1.0, [{"id": "1"}]),
        ([{"id": 0}, {"id": False}, {"id": None}], 0, [{"id": False}, {"id": None}]),
    ],
)
def test_remove_matches_id_type_and_value(db_session, saved, remove_id, kept):
    user = create_user("carol", _hash(), db_session)
    for fund in saved:
        add_saved_fund(user, fund, db_session)
    assert remove_saved_fund(user, remove_id, db_session) == kept

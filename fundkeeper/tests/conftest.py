"""
Shared pytest fixtures for the FundKeeper test suite.

Every test gets its own temporary SQLite database and a FastAPI TestClient
built from explicit Settings, so tests never touch a real database or the
developer's .env file.
"""

import pytest
from fastapi.testclient import TestClient

from fundkeeper.config import Settings
from fundkeeper.database import Database
from fundkeeper.main import create_app

TEST_SECRET = "test-secret-do-not-use"
ALICE = {"username": "alice", "password": "pw1"}


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite:///{tmp_path / 'fundkeeper_test.db'}",
        bcrypt_rounds=4,  # minimum cost keeps the suite fast
        log_level="DEBUG",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture
def client(settings):
    """TestClient against an app with default (secure) settings."""
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def insecure_client(tmp_path):
    """TestClient with ALLOW_INSECURE_PASSWORD_RESET turned on."""
    app = create_app(make_settings(tmp_path, allow_insecure_password_reset=True))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def database(settings):
    """Direct Database handle for store-level tests."""
    db = Database(settings.database_url)
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


def register_and_login(client, creds=ALICE) -> dict:
    """Register + login, returning ready-to-use Authorization headers."""
    r = client.post("/register", json=creds)
    assert r.status_code == 200, f"register failed: {r.status_code} {r.text}"
    r = client.post("/login", json=creds)
    assert r.status_code == 200, f"login failed: {r.status_code} {r.text}"
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def alice_headers(client):
    return register_and_login(client)

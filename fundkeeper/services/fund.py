"""
fundkeeper/services/fund.py

Saved-fund list operations for one user. Fund records are opaque dicts;
the only field inspected is 'id'. Appends do not deduplicate, removal
drops every entry with a matching id.

Mutations are read-modify-write on a JSON column, guarded by the row
version: on ConcurrentUpdate the session has been rolled back, so the next
read of user.saved_funds sees the other writer's list and the change is
reapplied on top of it.
"""

import logging
from typing import Any, Callable, Dict, List, Tuple

from sqlalchemy.orm import Session

from fundkeeper.errors import ConcurrentUpdate
from fundkeeper.models.user import User
from fundkeeper.services.user import save_user

logger = logging.getLogger(__name__)

MAX_UPDATE_ATTEMPTS = 3

FundList = List[Dict[str, Any]]


def list_saved_funds(user: User) -> FundList:
    return list(user.saved_funds or [])


def _id_key(value: Any) -> Tuple[str, Any]:
    """
    Comparison key for fund ids. Types never match across each other, so
    1, "1" and true are three different ids; ints and floats are both numbers.
    """
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        return ("number", value)
    return (type(value).__name__, value)


def _update_saved_funds(user: User, db: Session, change: Callable[[FundList], FundList]) -> FundList:
    user_id = user.id
    for attempt in range(1, MAX_UPDATE_ATTEMPTS + 1):
        # Assign a new list so SQLAlchemy sees the JSON column as dirty
        user.saved_funds = change(list_saved_funds(user))
        try:
            save_user(user, db)
            return list_saved_funds(user)
        except ConcurrentUpdate:
            if attempt == MAX_UPDATE_ATTEMPTS:
                logger.error(f"Giving up on saved funds update for user id={user_id} after {attempt} attempts")
                raise
            logger.warning(f"Concurrent saved funds update for user id={user_id}, retrying ({attempt})")
    raise ConcurrentUpdate()  # pragma: no cover


def add_saved_fund(user: User, fund: Dict[str, Any], db: Session) -> FundList:
    """
    Append a fund record as-is. Duplicates are allowed.
    """
    funds = _update_saved_funds(user, db, lambda funds: funds + [fund])
    logger.info(f"User id={user.id} saved fund id={fund.get('id')!r} ({len(funds)} saved)")
    return funds


def remove_saved_fund(user: User, fund_id: Any, db: Session) -> FundList:
    """
    Drop every saved record whose 'id' equals fund_id (same JSON type and
    value). Unknown ids are a no-op.
    """
    target = _id_key(fund_id)
    funds = _update_saved_funds(
        user, db, lambda funds: [f for f in funds if _id_key(f.get("id")) != target]
    )
    logger.info(f"User id={user.id} removed fund id={fund_id!r} ({len(funds)} saved)")
    return funds

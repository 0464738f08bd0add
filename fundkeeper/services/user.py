"""
fundkeeper/services/user.py

Credential store operations plus the account flows built on them
(register, login, password reset). Routers stay thin: they translate
request schemas into these calls and let domain errors propagate.
"""

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from fundkeeper.errors import (
    ConcurrentUpdate,
    DuplicateUser,
    InvalidCredentials,
    StoreUnavailable,
    Unauthorized,
    UserNotFound,
)
from fundkeeper.models.user import User
from fundkeeper.utils.security import DEFAULT_ROUNDS, burn_verification, hash_password

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
#  Store primitives
# ---------------------------------------------------------------------

def get_user_by_username(username: str, db: Session) -> User | None:
    """
    Return a User by username, or None if not found.
    """
    return db.query(User).filter(User.username == username).first()


def get_user_by_id(user_id: str, db: Session) -> User | None:
    return db.get(User, user_id)


def create_user(username: str, password_hash: str, db: Session) -> User:
    """
    Insert a new User with an already-hashed password.
    Raises DuplicateUser if the username is taken, either up front or when
    a concurrent insert trips the unique constraint.
    """
    if get_user_by_username(username, db):
        raise DuplicateUser()

    new_user = User(username=username, password_hash=password_hash, saved_funds=[])
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.info(f"Unique constraint rejected username '{username}': {e.orig}")
        raise DuplicateUser() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create user '{username}': {e}")
        raise StoreUnavailable() from e
    db.refresh(new_user)
    return new_user


def save_user(user: User, db: Session) -> None:
    """
    Persist pending changes to password_hash or saved_funds.

    The UPDATE is conditional on the row version the session loaded; if
    another request committed in between, ConcurrentUpdate is raised and
    the session is rolled back (so the next attribute access reloads).
    """
    # Read before commit; after a rollback user.id would hit the DB again
    user_id = user.id
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        raise ConcurrentUpdate() from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to save user id={user_id}: {e}")
        raise StoreUnavailable() from e


# ---------------------------------------------------------------------
#  Account flows
# ---------------------------------------------------------------------

def register_user(username: str, password: str, db: Session, rounds: int = DEFAULT_ROUNDS) -> User:
    """
    Hash the password (bcrypt, 'rounds' cost) and create the user.
    """
    created = create_user(username, hash_password(password, rounds), db)
    logger.info(f"Registered user '{username}' (id={created.id})")
    return created


def login_user(username: str, password: str, db: Session) -> User:
    """
    Return the User whose credentials match, else raise InvalidCredentials.
    Unknown usernames and wrong passwords are indistinguishable to the caller.
    """
    user = get_user_by_username(username, db)
    if user is None:
        burn_verification(password)
        logger.warning(f"Login failed for unknown username '{username}'")
        raise InvalidCredentials()

    if not user.verify_password(password):
        logger.warning(f"Login failed for '{username}': wrong password")
        raise InvalidCredentials()

    logger.info(f"User '{username}' logged in")
    return user


def reset_password(
    username: str,
    new_password: str,
    db: Session,
    caller: Optional[User] = None,
    allow_insecure: bool = False,
    rounds: int = DEFAULT_ROUNDS,
) -> User:
    """
    Overwrite a user's password hash.

    By default the caller must be authenticated as that same user. With
    allow_insecure=True anyone who knows a username can reset it; that mode
    exists only for clients of the old unauthenticated endpoint.
    """
    if not allow_insecure:
        if caller is None:
            raise Unauthorized("Not authenticated")
        if caller.username != username:
            logger.warning(f"User '{caller.username}' tried to reset password of '{username}'")
            raise Unauthorized("Token does not belong to this user")
        user = caller
    else:
        logger.warning(f"Unauthenticated password reset requested for '{username}'")
        user = get_user_by_username(username, db)
        if user is None:
            raise UserNotFound()

    user.set_password(new_password, rounds)
    save_user(user, db)
    logger.info(f"Password reset for user '{username}'")
    return user

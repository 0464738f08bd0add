from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from fundkeeper.config import Settings
from fundkeeper.database import get_db
from fundkeeper.errors import Unauthorized
from fundkeeper.models.user import User
from fundkeeper.services.user import get_user_by_id

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our own 401, not FastAPI's 403
bearer_scheme = HTTPBearer(auto_error=False)

# --- JWT Helper Functions ---

def create_access_token(user_id: str, settings: Settings) -> str:
    """
    Generate a signed access token for a user.

    The payload holds only the user's id; an 'exp' claim is added when
    settings.token_expire_minutes is set, otherwise the token never expires.

    Args:
        user_id (str): The opaque id of the authenticated user.
        settings (Settings): Supplies the signing secret, algorithm and expiry.

    Returns:
        str: Encoded JWT token.
    """
    to_encode = {"id": user_id}
    if settings.token_expire_minutes is not None:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.token_expire_minutes)
        to_encode["exp"] = expire
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def authenticate(token: Optional[str], settings: Settings) -> str:
    """
    Verify a bearer token and return the user id embedded in it.

    Args:
        token (str | None): The raw token from the Authorization header.
        settings (Settings): Supplies the signing secret and algorithm.

    Returns:
        str: The caller's user id.

    Raises:
        Unauthorized: If the token is missing, malformed, badly signed,
            expired, or has no 'id' claim.
    """
    if not token:
        raise Unauthorized("Not authenticated")
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        raise Unauthorized("Invalid token")

    user_id = payload.get("id")
    if not isinstance(user_id, str) or not user_id:
        raise Unauthorized("Invalid token")
    return user_id


# --- FastAPI Dependencies ---

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Resolve the bearer token to a User if one was sent, else None.
    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    user_id = authenticate(credentials.credentials, settings)
    user = get_user_by_id(user_id, db)
    if user is None:
        # Signed by us, but the user row is gone or the DB was swapped
        raise Unauthorized("Invalid token")
    return user


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """
    Dependency for protected routes: the authenticated caller or 401.
    """
    if user is None:
        raise Unauthorized("Not authenticated")
    return user

# FILE: fundkeeper/routers/user.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from fundkeeper.config import Settings
from fundkeeper.database import get_db
from fundkeeper.models.user import User
from fundkeeper.schemas.user import (
    Credentials,
    LoginRequest,
    MessageResponse,
    ResetPasswordRequest,
    TokenResponse,
)
from fundkeeper.services import user as user_service
from fundkeeper.utils.auth import create_access_token, get_optional_user, get_settings

router = APIRouter(tags=["users"])


@router.post("/register", response_model=MessageResponse)
def register(
    creds: Credentials,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new user: POST /register

    1. Hashes the password with bcrypt (cost from settings, default 10).
    2. Creates the user; a taken username is a 409.
    """
    try:
        user_service.register_user(creds.username, creds.password, db, settings.bcrypt_rounds)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Registered"}


@router.post("/login", response_model=TokenResponse)
def login(
    creds: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Exchange username/password for a bearer token: POST /login

    Unknown username and wrong password both answer 401 "Invalid credentials".
    """
    user = user_service.login_user(creds.username, creds.password, db)
    return {"token": create_access_token(user.id, settings)}


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    caller: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Replace a user's password: POST /reset-password

    Requires a bearer token for that same user unless the server runs with
    ALLOW_INSECURE_PASSWORD_RESET, in which case knowing the username is enough.
    """
    try:
        user_service.reset_password(
            body.username,
            body.new_password,
            db,
            caller=caller,
            allow_insecure=settings.allow_insecure_password_reset,
            rounds=settings.bcrypt_rounds,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"message": "Password reset successfully"}

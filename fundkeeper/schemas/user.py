"""
fundkeeper/schemas/user.py

Pydantic schemas for the credential endpoints. Only presence is checked:
fields must exist and be non-empty strings. The one extra rule is bcrypt's
72-byte input limit, rejected here so it surfaces as a 400.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fundkeeper.utils.security import MAX_PASSWORD_BYTES


def _require_text(v: str, field: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{field} must not be empty")
    return v


def _check_password_length(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"password must be {MAX_PASSWORD_BYTES} bytes or fewer")
    return v


class Credentials(BaseModel):
    """
    Body for /register:
      { "username": "alice", "password": "pw1" }
    """
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def username_present(cls, v):
        return _require_text(v, "username")

    @field_validator("password")
    @classmethod
    def password_present(cls, v):
        return _check_password_length(_require_text(v, "password"))


class LoginRequest(BaseModel):
    """
    Body for /login. Fields only have to be present: a blank or over-long
    password is just a wrong password and gets the usual 401.
    """
    username: str
    password: str


class ResetPasswordRequest(BaseModel):
    """
    Body for /reset-password. Accepts the client's camelCase 'newPassword'.
    """
    model_config = ConfigDict(populate_by_name=True)

    username: str
    new_password: str = Field(alias="newPassword")

    @field_validator("username")
    @classmethod
    def username_present(cls, v):
        return _require_text(v, "username")

    @field_validator("new_password")
    @classmethod
    def new_password_present(cls, v):
        return _check_password_length(_require_text(v, "newPassword"))


class TokenResponse(BaseModel):
    token: str


class MessageResponse(BaseModel):
    message: str

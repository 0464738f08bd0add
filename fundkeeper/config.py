"""
fundkeeper/config.py

Collects every externally supplied setting (port, database URL, token secret,
hashing cost, CORS origins, reset mode) into one Settings object. The app
factory builds a Settings once at startup and hands it to the database,
the auth gate and the routers, so nothing reads os.environ at request time.

Key Features:
- Loads a .env file at the project root (real environment wins)
- Fails fast with ConfigError when JWT_SECRET is missing
- Parses booleans, ints and comma-separated lists from plain strings
"""

import os
import logging
from typing import List, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from fundkeeper.errors import ConfigError

logger = logging.getLogger(__name__)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BASE_DIR)

DEFAULT_PORT = 5000
DEFAULT_DATABASE_URL = "sqlite:///./fundkeeper.db"
DEFAULT_BCRYPT_ROUNDS = 10

_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """
    Immutable runtime configuration.

    Only jwt_secret is mandatory; everything else has a development default.
    token_expire_minutes=None means issued tokens carry no 'exp' claim.
    """

    model_config = ConfigDict(frozen=True)

    jwt_secret: str
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    database_url: str = DEFAULT_DATABASE_URL
    jwt_algorithm: str = "HS256"
    token_expire_minutes: Optional[int] = None
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    cors_allow_origins: List[str] = ["*"]
    allow_insecure_password_reset: bool = False
    log_level: str = "INFO"

    @field_validator("jwt_secret")
    @classmethod
    def secret_must_be_set(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_SECRET must not be empty")
        return v

    @field_validator("bcrypt_rounds")
    @classmethod
    def rounds_in_bcrypt_range(cls, v: int) -> int:
        # bcrypt.gensalt only accepts 4..31
        if not 4 <= v <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return v

    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        env_file: Optional[str] = None,
    ) -> "Settings":
        """
        Build Settings from environment variables.

        If 'env' is given it is used as-is (handy for tests); otherwise the
        .env file is loaded into os.environ first and os.environ is read.
        """
        if env is None:
            dotenv_path = env_file or os.path.join(PROJECT_ROOT, ".env")
            load_dotenv(dotenv_path=dotenv_path, override=False)
            logger.debug(f"Loaded .env from: {dotenv_path}")
            env = os.environ

        secret = env.get("JWT_SECRET", "")
        if not secret.strip():
            raise ConfigError("JWT_SECRET is not set; refusing to start without a token-signing secret")

        expire_raw = env.get("TOKEN_EXPIRE_MINUTES", "").strip()
        raw_origins = env.get("CORS_ALLOW_ORIGINS", "*")

        try:
            return cls(
                jwt_secret=secret,
                host=env.get("HOST", "127.0.0.1"),
                port=int(env.get("PORT", DEFAULT_PORT)),
                database_url=env.get("DATABASE_URL", DEFAULT_DATABASE_URL),
                jwt_algorithm=env.get("JWT_ALGORITHM", "HS256"),
                token_expire_minutes=int(expire_raw) if expire_raw else None,
                bcrypt_rounds=int(env.get("BCRYPT_ROUNDS", DEFAULT_BCRYPT_ROUNDS)),
                cors_allow_origins=[o.strip() for o in raw_origins.split(",") if o.strip()],
                allow_insecure_password_reset=(
                    env.get("ALLOW_INSECURE_PASSWORD_RESET", "").strip().lower() in _TRUE_VALUES
                ),
                log_level=env.get("LOG_LEVEL", "INFO").upper(),
            )
        except ValueError as e:
            # pydantic's ValidationError is a ValueError too
            raise ConfigError(f"Invalid configuration: {e}") from e


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup shared by the server and the CLI helpers."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

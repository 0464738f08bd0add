"""
fundkeeper/models/user.py

Represents a registered user and the funds they have bookmarked. The saved
fund records are opaque client-supplied JSON objects; the only field the
server looks at is 'id', used for removal.
"""

from __future__ import annotations
import uuid
from typing import Any, Dict, List
from sqlalchemy import Integer, String, JSON
from sqlalchemy.orm import Mapped, mapped_column
from fundkeeper.database import Base
from fundkeeper.utils import security


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """
    The users table. Each user has:
      - An opaque string ID (PK), assigned on creation
      - A unique username (no rename operation exists)
      - A bcrypt password hash
      - An ordered list of saved fund records
      - A row version used for compare-and-swap updates
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_user_id)

    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)

    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    saved_funds: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)

    # Bumped on every UPDATE; a stale value makes the flush raise StaleDataError
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def set_password(self, password: str, rounds: int = security.DEFAULT_ROUNDS) -> None:
        """
        Hash and store the user's password with bcrypt, replacing any previous hash.
        """
        self.password_hash = security.hash_password(password, rounds)

    def verify_password(self, password: str) -> bool:
        return security.verify_password(password, self.password_hash)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username}, saved={len(self.saved_funds or [])})>"

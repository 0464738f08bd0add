#!/usr/bin/env python
"""
fundkeeper/database.py

Sets up the SQLAlchemy engine, session management, and table creation for the
credential store. The connection string comes from Settings.database_url;
one Database instance is created by the app factory and stored on app.state,
so routes never touch a module-level engine.

Key Features:
- Handles SQLite file, SQLite in-memory, or any other SQLAlchemy URL
- Provides get_db() for FastAPI dependency injection
- create_tables() is idempotent and safe to call on every startup
"""

import os
import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from fundkeeper.errors import StoreUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    """
    Owns the engine and the session factory for one database URL.
    """

    def __init__(self, database_url: str):
        self.url = make_url(database_url)
        engine_kwargs = {}

        if self.url.get_backend_name() == "sqlite":
            # FastAPI runs sync routes in a threadpool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url.database in (None, "", ":memory:"):
                # One shared connection, otherwise each session sees an empty DB
                engine_kwargs["poolclass"] = StaticPool
            else:
                db_dir = os.path.dirname(os.path.abspath(self.url.database))
                if not os.path.exists(db_dir):
                    os.makedirs(db_dir)
                    logger.debug(f"Created directory for database: {db_dir}")

        self.engine = create_engine(self.url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        logger.info(f"Database configured: {self.url.render_as_string(hide_password=True)}")

    def create_tables(self) -> None:
        """
        Create every table registered on Base.metadata (existing tables are left alone).
        """
        # Import models so they register with Base.metadata
        from fundkeeper.models import user  # noqa: F401

        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as e:
            logger.error(f"Could not create tables: {e}")
            raise StoreUnavailable() from e
        logger.debug("Database tables created or verified.")

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    """
    Provides a DB session for FastAPI routes. Yields a session bound to the
    app's Database and closes it after use to prevent leaks.
    """
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()

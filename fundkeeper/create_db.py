#!/usr/bin/env python
"""
create_db.py

Creates the FundKeeper tables in the database named by DATABASE_URL (or the
--database-url flag). The server also does this at startup; the script is
for provisioning a database ahead of the first deploy.

Usage:
    python -m fundkeeper.create_db
    python -m fundkeeper.create_db --database-url sqlite:///./data/funds.db
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from fundkeeper.config import DEFAULT_DATABASE_URL, PROJECT_ROOT, configure_logging
from fundkeeper.database import Database
from fundkeeper.errors import StoreUnavailable

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

    parser = argparse.ArgumentParser(description="Create the FundKeeper database tables.")
    parser.add_argument(
        "--database-url",
        default=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        help="SQLAlchemy database URL (default: $DATABASE_URL)",
    )
    args = parser.parse_args(argv)

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    db = Database(args.database_url)
    try:
        db.create_tables()
    except StoreUnavailable as e:
        logger.error(f"Error creating database tables: {e.__cause__}")
        return 1
    finally:
        db.dispose()

    logger.info("Database tables created successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())

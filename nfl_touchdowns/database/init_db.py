"""Database initialization for the touchdown tables.

- create_database(): create all tables from the models (idempotent)
- drop_database(): remove all tables (destructive)
- reset_database(): drop + create

Tables are created straight from Base.metadata; there is no migration
tooling.
"""

import logging
from pathlib import Path

from sqlalchemy.engine import make_url

from ..config.settings import settings
from .connection import engine
from .models import Base

logger = logging.getLogger(__name__)


def _ensure_sqlite_directory() -> None:
    """Create the parent directory of a file-based SQLite database."""
    url = make_url(settings.database_url)
    if url.get_backend_name() != "sqlite" or not url.database or url.database == ":memory:":
        return
    # Relative SQLite paths resolve against the working directory
    Path(url.database).parent.mkdir(parents=True, exist_ok=True)


def create_database(bind=None):
    """Create database schema and all tables.

    Args:
        bind: engine or connection to use (the application engine by default)
    """
    try:
        if bind is None:
            _ensure_sqlite_directory()
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database tables created successfully")
    except Exception:
        logger.exception("Failed to create database")
        raise


def drop_database(bind=None):
    """Drop all database tables - DESTRUCTIVE OPERATION.

    WARNING: This operation cannot be undone. All synced weeks are lost.
    """
    try:
        Base.metadata.drop_all(bind=bind or engine)
        logger.info("Database tables dropped successfully")
    except Exception:
        logger.exception("Failed to drop database")
        raise


def reset_database(bind=None):
    """Reset database by dropping and recreating all tables."""
    logger.info("Resetting database...")
    drop_database(bind)
    create_database(bind)
    logger.info("Database reset complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_database()

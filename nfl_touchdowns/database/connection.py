"""Database connection and session management using SQLAlchemy.

Session Patterns Provided:
1. get_session_context(): context manager with automatic commit/rollback
2. get_db(): FastAPI dependency, cleanup only (route handlers commit)

For beginners:

Database Engine: The core interface to the database, created once at import
time and reused throughout the application.

Session: A workspace for ORM operations. All queries, inserts and updates of
a week sync happen inside one session, so a failed sync leaves nothing
half-written.
"""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from ..config.settings import settings


def _engine_options(database_url: str) -> dict:
    options = {"echo": settings.database_echo, "pool_pre_ping": True}
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        # Sessions are used from the API's worker threads as well as the CLI
        options["connect_args"] = {"check_same_thread": False}
        if url.database and url.database != ":memory:":
            options["pool_size"] = settings.database_pool_size
    else:
        options["pool_size"] = settings.database_pool_size
    return options


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(
    autocommit=False,  # Require explicit session.commit() for transactions
    autoflush=False,  # Don't automatically flush changes before queries
    bind=engine,
)


@contextmanager
def get_session_context() -> Generator[Session, None, None]:
    """Context manager wrapper for database sessions.

    Usage:
        with get_session_context() as session:
            save_week_touchdowns(session, result)
            # Committed and closed when leaving the with block
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency for database sessions.

    Does not commit or roll back; route handlers control their transactions.
    Only guarantees the session is closed after the request.
    """
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

"""
Database configuration with lazy initialization.

The engine is created on first access so the app can start and answer
liveness probes before the database is reachable.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings
from .core.env import is_production_env

logger = logging.getLogger(__name__)

_engine = None
_SessionLocal = None

Base = declarative_base()


def get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        database_url = settings.database_url
        if is_production_env() and database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite database is not supported in production. "
                "Please use PostgreSQL."
            )

        db_url_safe = database_url[:30] + "..." if len(database_url) > 30 else database_url
        logger.info(f"Creating database engine for: {db_url_safe}")

        if database_url.startswith("sqlite"):
            # SQLite: dev only
            _engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False, "timeout": settings.request_timeout_s},
            )
            enable_sqlite_foreign_keys(_engine)
        else:
            _engine = create_engine(
                database_url,
                pool_size=20,
                max_overflow=10,
                pool_pre_ping=True,
                pool_recycle=3600,
            )
    return _engine


def enable_sqlite_foreign_keys(engine) -> None:
    """SQLite leaves foreign keys off per connection unless asked."""
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_session_local():
    """Get or create the SessionLocal class."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def SessionLocal():
    return get_session_local()()


def get_db():
    """
    Dependency that provides a database session.
    Used by FastAPI's dependency injection.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

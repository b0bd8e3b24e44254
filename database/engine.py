"""
Database Persistence Layer - Core Engine.

============================================================
PURPOSE
============================================================
Engine and session management for the sentiment service.

- The database URL comes from SENTIMENT_DATABASE_URL
  (a local SQLite file when unset)
- Explicit transaction management with commit/rollback
- Hard failures on persistence errors

============================================================
"""

import os
import logging
from typing import Optional, Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.pool import StaticPool

from dotenv import load_dotenv

from storage.models import Base

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


DEFAULT_DATABASE_URL = "sqlite:///./sentiment_index.db"

REQUIRED_TABLES = [
    "market_data",
    "sentiment_history",
    "data_collection_log",
]


# =============================================================
# CUSTOM EXCEPTIONS
# =============================================================


class DatabaseError(Exception):
    """Base exception for engine-level database failures."""
    pass


class DatabaseConnectionError(DatabaseError):
    """The database could not be reached."""
    pass


class DatabaseInitializationError(DatabaseError):
    """Schema creation failed."""
    pass


# =============================================================
# DATABASE ENGINE
# =============================================================

_engine: Optional[Engine] = None
_SessionFactory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Get database URL from environment."""
    url = os.getenv("SENTIMENT_DATABASE_URL")

    if not url:
        url = DEFAULT_DATABASE_URL
        logger.warning(f"SENTIMENT_DATABASE_URL not set, using default: {url}")

    return url


def create_database_engine(
    database_url: Optional[str] = None,
    pool_size: int = 10,
    max_overflow: int = 20,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    echo: bool = False,
) -> Engine:
    """
    Create a SQLAlchemy engine.

    SQLite URLs get a same-thread override (the API and the
    scheduler share the engine); in-memory SQLite additionally
    uses a single static connection so every session sees the
    same database. Other backends use a connection pool.

    Args:
        database_url: Explicit URL (defaults to the environment)
        pool_size: Number of connections to keep in pool
        max_overflow: Max connections beyond pool_size
        pool_timeout: Seconds to wait for available connection
        pool_recycle: Recycle connections after N seconds
        echo: Log SQL statements

    Returns:
        SQLAlchemy Engine
    """
    database_url = database_url or get_database_url()

    logger.info(f"Creating database engine for: {database_url.split('@')[-1]}")

    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=echo, **kwargs)
    else:
        engine = create_engine(
            database_url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            pool_pre_ping=True,
            echo=echo,
        )

    return engine


def get_engine() -> Engine:
    """Get the process-wide engine, creating it if necessary."""
    global _engine
    if _engine is None:
        _engine = create_database_engine()
    return _engine


def get_session_factory(engine: Optional[Engine] = None) -> sessionmaker:
    """
    Get a session factory.

    With an explicit engine a new factory is returned; otherwise
    the process-wide factory is created on first use.
    """
    global _SessionFactory

    if engine is not None:
        return sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    if _SessionFactory is None:
        _SessionFactory = sessionmaker(
            bind=get_engine(),
            autoflush=False,
            expire_on_commit=False,
        )

    return _SessionFactory


def reset_engine() -> None:
    """Dispose the process-wide engine and forget the session factory."""
    global _engine, _SessionFactory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


# =============================================================
# SESSION MANAGEMENT
# =============================================================


def get_session() -> Session:
    """
    Get a new database session.

    IMPORTANT: Caller is responsible for committing/closing.
    Prefer using session_scope() instead.
    """
    factory = get_session_factory()
    return factory()


@contextmanager
def session_scope(
    factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for explicit transaction boundaries.

    Commits only if no exception occurs.
    Rolls back on ANY exception and re-raises it unchanged, so
    callers still see repository and domain exceptions.

    Usage:
        with session_scope() as session:
            MarketDataRepository(session).save_reading(...)
            # Commits automatically at end
    """
    session = factory() if factory is not None else get_session()
    try:
        yield session
        session.commit()
        logger.debug("Database transaction committed successfully")
    except Exception as e:
        logger.error(f"Database transaction failed, rolling back: {e}")
        session.rollback()
        raise
    finally:
        session.close()


# =============================================================
# DATABASE INITIALIZATION
# =============================================================


def verify_database_connection(engine: Optional[Engine] = None) -> bool:
    """
    Verify database connection is working.

    Raises:
        DatabaseConnectionError if connection fails
    """
    engine = engine or get_engine()

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
            logger.info("Database connection verified successfully")
            return True
    except OperationalError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(f"Cannot connect to database: {e}") from e


def create_all_tables(engine: Optional[Engine] = None) -> None:
    """
    Create all tables defined in the ORM models (idempotent).

    Raises:
        DatabaseInitializationError if table creation fails
    """
    engine = engine or get_engine()

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Failed to create database tables: {e}")
        raise DatabaseInitializationError(f"Table creation failed: {e}") from e


def init_database(engine: Optional[Engine] = None) -> None:
    """
    Verify the connection, create missing tables and check that
    every required table now exists.

    Raises:
        DatabaseConnectionError: The database is unreachable
        DatabaseInitializationError: Tables could not be created
    """
    engine = engine or get_engine()

    logger.info("Initializing database")

    verify_database_connection(engine)
    create_all_tables(engine)

    existing = set(inspect(engine).get_table_names())
    missing = [t for t in REQUIRED_TABLES if t not in existing]
    if missing:
        raise DatabaseInitializationError(f"Missing tables after create_all: {missing}")

    logger.info(f"Database ready ({len(REQUIRED_TABLES)} tables)")

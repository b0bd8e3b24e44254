"""
Database Package Initialization.

============================================================
PURPOSE
============================================================
Engine, session and schema management for the sentiment
service. Every failure raises; nothing is swallowed.

============================================================
"""

from .engine import (
    DEFAULT_DATABASE_URL,
    REQUIRED_TABLES,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseInitializationError,
    get_database_url,
    create_database_engine,
    get_engine,
    get_session_factory,
    reset_engine,
    get_session,
    session_scope,
    verify_database_connection,
    create_all_tables,
    init_database,
)


__all__ = [
    "DEFAULT_DATABASE_URL",
    "REQUIRED_TABLES",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseInitializationError",
    "get_database_url",
    "create_database_engine",
    "get_engine",
    "get_session_factory",
    "reset_engine",
    "get_session",
    "session_scope",
    "verify_database_connection",
    "create_all_tables",
    "init_database",
]

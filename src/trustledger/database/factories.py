"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from trustledger.database.sqlalchemy_db import SQLAlchemyDatabase

DEFAULT_LOCK_TIMEOUT = 5.0


def _lock_timeout(lock_timeout: Optional[float]) -> float:
    if lock_timeout is not None:
        return lock_timeout
    return float(os.environ.get("TRUSTLEDGER_LOCK_TIMEOUT", DEFAULT_LOCK_TIMEOUT))


def create_sqlite_database(
    database_path: Optional[str] = None, lock_timeout: Optional[float] = None
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks TRUSTLEDGER_DB_PATH
            environment variable, then defaults to ~/.trustledger/trustledger.db
        lock_timeout: Seconds to wait for a write lock. If None, checks
            TRUSTLEDGER_LOCK_TIMEOUT, then defaults to 5 seconds

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("TRUSTLEDGER_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".trustledger"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "trustledger.db")

    return SQLAlchemyDatabase(f"sqlite:///{database_path}", lock_timeout=_lock_timeout(lock_timeout))


def create_database(
    database_url: Optional[str] = None,
    database_path: Optional[str] = None,
    lock_timeout: Optional[float] = None,
) -> SQLAlchemyDatabase:
    """Create a database from a SQLAlchemy URL, falling back to SQLite.

    Args:
        database_url: SQLAlchemy URL such as ``postgresql+psycopg://...``. If None,
            checks TRUSTLEDGER_DB_URL
        database_path: SQLite path used when no URL is configured
        lock_timeout: Seconds to wait for a write lock
    """
    if database_url is None:
        database_url = os.environ.get("TRUSTLEDGER_DB_URL")

    if database_url is None:
        return create_sqlite_database(database_path=database_path, lock_timeout=lock_timeout)

    return SQLAlchemyDatabase(database_url, lock_timeout=_lock_timeout(lock_timeout))

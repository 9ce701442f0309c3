"""Database layer for trustledger."""

from trustledger.database.base import Database
from trustledger.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]

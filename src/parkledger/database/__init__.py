"""Database layer for parkledger application."""

from parkledger.database.base import Database
from parkledger.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]

"""
SQLite Database Adapter

This module implements the DatabaseAdapter interface for SQLite.
All SQLite-specific configuration and behavior is encapsulated here.

Key characteristics:
- File-based (single .db file)
- Single writer at a time: concurrent writers wait on the busy timeout,
  so conditional updates and unique inserts are serialized by the file lock
- Foreign keys are off by default and are switched on per connection so
  that deleting a redirect cascades to its visits
"""

from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.pool import NullPool

from firstlink.db.interface import DatabaseAdapter


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter implementation.
    """
    
    def __init__(self, busy_timeout: float = 30.0):
        """
        Args:
            busy_timeout: Seconds to wait for a competing writer before failing
        """
        self.busy_timeout = busy_timeout
    
    def configure_engine(self, engine: AsyncEngine) -> None:
        event.listen(engine.sync_engine, "connect", _enable_foreign_keys)
    
    def get_pool_class(self) -> type[NullPool]:
        """
        SQLite uses NullPool: every session gets its own short-lived
        connection, which keeps concurrent sessions independent.
        """
        return NullPool
    
    def get_connect_args(self) -> dict[str, Any]:
        return {
            "check_same_thread": False,
            "timeout": self.busy_timeout,
        }
    
    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False  # Set to True only for SQL debugging in development
        }
    
    def get_dialect_name(self) -> str:
        return "sqlite"


def get_database_adapter(database_url: str, busy_timeout: float = 30.0) -> DatabaseAdapter:
    """
    Factory function to get the database adapter.
    
    Returns PostgreSQLAdapter for postgresql:// URLs and SQLiteAdapter otherwise.
    
    Args:
        database_url: Connection string the engine will be built from
        busy_timeout: SQLite busy timeout in seconds
    
    Returns:
        DatabaseAdapter instance
    """
    if database_url.startswith("postgresql"):
        from firstlink.db.postgres_adapter import PostgreSQLAdapter
        return PostgreSQLAdapter()
    return SQLiteAdapter(busy_timeout=busy_timeout)

"""
PostgreSQL Database Adapter

Server-based backend for production and multi-instance deployments.
Row-level locking lets the conditional first-use UPDATE serialize on the
single redirect row, and the unique constraint on visits rejects a racing
duplicate insert.
"""

from typing import Any, Optional

from sqlalchemy.pool import Pool

from firstlink.db.interface import DatabaseAdapter


class PostgreSQLAdapter(DatabaseAdapter):
    """
    PostgreSQL (asyncpg) adapter implementation.
    """
    
    def __init__(self, pool_size: int = 10, max_overflow: int = 20):
        self.pool_size = pool_size
        self.max_overflow = max_overflow
    
    def get_pool_class(self) -> Optional[type[Pool]]:
        # asyncpg engines default to AsyncAdaptedQueuePool
        return None
    
    def get_connect_args(self) -> dict[str, Any]:
        return {}
    
    def get_engine_kwargs(self) -> dict[str, Any]:
        return {
            "echo": False,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_pre_ping": True,
        }
    
    def get_dialect_name(self) -> str:
        return "postgresql"

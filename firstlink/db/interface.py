"""
Database Abstraction Interface

This module defines the database abstraction layer that allows switching between
different database backends (SQLite, PostgreSQL) without changing the
rest of the codebase.

The first-use guarantees rest on two primitives every backend provides:
a conditional UPDATE that reports rows affected, and a unique constraint
that rejects a duplicate INSERT. Adapters only tune connections; they do
not change those semantics.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import Pool


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.
    
    To add a new database backend:
    1. Create a new class inheriting from DatabaseAdapter
    2. Implement all abstract methods
    3. Update the factory function to return the new adapter
    """
    
    def create_engine(self, database_url: str, **kwargs) -> AsyncEngine:
        """
        Create and configure the async database engine.
        
        Args:
            database_url: Connection string for the database
            **kwargs: Additional engine configuration options
        
        Returns:
            Configured AsyncEngine instance
        """
        engine_kwargs = self.get_engine_kwargs()
        engine_kwargs.update(kwargs)
        
        pool_class = self.get_pool_class()
        if pool_class is not None:
            engine_kwargs["poolclass"] = pool_class
        
        engine = create_async_engine(
            database_url,
            connect_args=self.get_connect_args(),
            **engine_kwargs
        )
        self.configure_engine(engine)
        return engine
    
    def configure_engine(self, engine: AsyncEngine) -> None:
        """Hook for backend-specific event listeners. No-op by default."""
    
    @abstractmethod
    def get_pool_class(self) -> Optional[type[Pool]]:
        """
        Get the connection pool class for this database type.
        
        Returns:
            Pool class, or None to use the driver default
        """
        pass
    
    @abstractmethod
    def get_connect_args(self) -> dict[str, Any]:
        """
        Get connection arguments specific to this database type.
        
        Returns:
            Dictionary of connection arguments
        """
        pass
    
    @abstractmethod
    def get_engine_kwargs(self) -> dict[str, Any]:
        """
        Get additional engine configuration specific to this database type.
        
        Returns:
            Dictionary of engine configuration options
        """
        pass
    
    @abstractmethod
    def get_dialect_name(self) -> str:
        """
        Get the SQLAlchemy dialect name for this database.
        
        Returns:
            Dialect name (e.g., 'sqlite', 'postgresql')
        """
        pass

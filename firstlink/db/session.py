"""
Database Session Management

This module handles async database connections using SQLAlchemy's async engine.
Uses a database abstraction layer to support different database backends.

Key Features:
- Database abstraction: Easy to switch between SQLite and PostgreSQL
- Async session management: Proper async context management
- Error handling: Automatic rollback on exceptions
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession as SQLModelAsyncSession

from firstlink.core.setting import settings
from firstlink.db import models  # noqa: F401  registers tables on the metadata
from firstlink.db.sqlite_adapter import get_database_adapter

db_adapter = get_database_adapter(
    settings.DATABASE_URL,
    busy_timeout=settings.SQLITE_BUSY_TIMEOUT,
)

engine = db_adapter.create_engine(
    settings.DATABASE_URL
)


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        bind,
        class_=SQLModelAsyncSession,
        expire_on_commit=False,  # Prevents SQLAlchemy from expiring objects after commit
        autoflush=False,
    )


async_session_maker = build_session_maker(engine)


async def init_models(bind: AsyncEngine = engine) -> None:
    """Create any missing tables from the SQLModel metadata."""
    async with bind.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function for FastAPI to get database session.
    
    This function:
    - Creates a new async session
    - Yields it to the endpoint
    - Automatically commits on success
    - Rolls back on exception
    - Closes session automatically (context manager handles it)
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

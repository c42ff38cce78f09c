"""
Shared test fixtures.

Each test gets its own file-backed SQLite database built with the
production SQLiteAdapter, so concurrent sessions really contend on the
database file the way separate service instances would.
"""

from typing import Optional

import httpx
import pytest
import pytest_asyncio
from sqlmodel import SQLModel

from firstlink.api.endpoints import get_first_use_policy
from firstlink.core.setting import FirstUsePolicy
from firstlink.db.models import Redirect
from firstlink.db.session import build_session_maker, get_session
from firstlink.db.sqlite_adapter import SQLiteAdapter
from firstlink.main import app
from firstlink.services.redirect_store import RedirectStore


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = SQLiteAdapter(busy_timeout=30.0).create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'firstlink_test.db'}"
    )
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return build_session_maker(db_engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_redirect(session_maker):
    """Create a redirect in its own session, like the admin API would."""
    async def _make(
        slug: str = "ABCDE",
        first_url: str = "https://a.example",
        next_url: str = "https://b.example",
    ) -> Redirect:
        async with session_maker() as session:
            return await RedirectStore(session).create(slug, first_url, next_url)
    return _make


@pytest.fixture
def fetch_redirect(session_maker):
    """Read a redirect back in a fresh session."""
    async def _fetch(slug: str) -> Optional[Redirect]:
        async with session_maker() as session:
            return await RedirectStore(session).get_by_slug(slug)
    return _fetch


@pytest.fixture
def policy():
    return FirstUsePolicy.PER_VISITOR


@pytest_asyncio.fixture
async def client(session_maker, policy):
    """In-process HTTP client bound to the test database and policy."""
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_first_use_policy] = lambda: policy

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

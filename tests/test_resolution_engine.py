"""
Tests for the ResolutionEngine first-visit policies.

Concurrency tests run every resolver in its own session (its own SQLite
connection) and start them together with asyncio.gather. Where a test
needs every resolver to read before any of them writes, the store waits
on an asyncio.Barrier after the lookup.
"""

import asyncio

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select, func

from firstlink.core.exceptions import DatabaseError, RedirectNotFoundError
from firstlink.core.setting import FirstUsePolicy
from firstlink.db.models import Redirect, Visit
from firstlink.services.redirect_store import RedirectStore
from firstlink.services.resolution_engine import Resolution, ResolutionEngine
from firstlink.services.visit_ledger import VisitLedger

FIRST = "https://a.example"
NEXT = "https://b.example"
ALL_POLICIES = list(FirstUsePolicy)


class BarrierStore(RedirectStore):
    """RedirectStore that holds every lookup until all resolvers have read."""

    def __init__(self, session, barrier: asyncio.Barrier):
        super().__init__(session)
        self.barrier = barrier

    async def get_by_slug(self, slug):
        redirect = await super().get_by_slug(slug)
        await self.barrier.wait()
        return redirect


class FailingStore(RedirectStore):
    async def get_by_slug(self, slug):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))


async def resolve_once(session_maker, policy, slug="ABCDE", visitor="1.2.3.4") -> Resolution:
    async with session_maker() as session:
        engine = ResolutionEngine.from_session(session, policy)
        return await engine.resolve(slug, visitor)


async def resolve_after_barrier(session_maker, policy, barrier, slug="ABCDE", visitor="1.2.3.4") -> Resolution:
    async with session_maker() as session:
        engine = ResolutionEngine(BarrierStore(session, barrier), VisitLedger(session), policy)
        return await engine.resolve(slug, visitor)


class TestSequentialResolution:
    """First resolution gets the first URL, every later one the next URL."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", ALL_POLICIES)
    async def test_first_then_next(self, session_maker, make_redirect, policy):
        await make_redirect()

        first = await resolve_once(session_maker, policy)
        second = await resolve_once(session_maker, policy)

        assert first == Resolution(FIRST, first_visit=True)
        assert second == Resolution(NEXT, first_visit=False)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", ALL_POLICIES)
    async def test_monotonic_after_first_use(self, session_maker, make_redirect, policy):
        await make_redirect()
        await resolve_once(session_maker, policy)

        later = [await resolve_once(session_maker, policy) for _ in range(5)]

        assert [r.destination_url for r in later] == [NEXT] * 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", [FirstUsePolicy.GLOBAL, FirstUsePolicy.GLOBAL_ATOMIC])
    async def test_global_flag_is_set(self, session_maker, make_redirect, fetch_redirect, policy):
        await make_redirect()
        assert (await fetch_redirect("ABCDE")).first_used is False

        await resolve_once(session_maker, policy)

        assert (await fetch_redirect("ABCDE")).first_used is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", [FirstUsePolicy.GLOBAL, FirstUsePolicy.GLOBAL_ATOMIC])
    async def test_global_flag_ignores_visitor(self, session_maker, make_redirect, policy):
        await make_redirect()

        first = await resolve_once(session_maker, policy, visitor="1.2.3.4")
        other = await resolve_once(session_maker, policy, visitor="5.6.7.8")

        assert first.destination_url == FIRST
        assert other.destination_url == NEXT

    @pytest.mark.asyncio
    async def test_per_visitor_is_independent(self, session_maker, make_redirect, fetch_redirect):
        """1.2.3.4 and 5.6.7.8 each get the first URL once."""
        await make_redirect()
        policy = FirstUsePolicy.PER_VISITOR

        assert (await resolve_once(session_maker, policy, visitor="1.2.3.4")).destination_url == FIRST
        assert (await resolve_once(session_maker, policy, visitor="5.6.7.8")).destination_url == FIRST
        assert (await resolve_once(session_maker, policy, visitor="1.2.3.4")).destination_url == NEXT
        assert (await resolve_once(session_maker, policy, visitor="5.6.7.8")).destination_url == NEXT

        # The per-visitor policy never touches the global flag
        assert (await fetch_redirect("ABCDE")).first_used is False

    @pytest.mark.asyncio
    async def test_per_visitor_requires_identity(self, session):
        engine = ResolutionEngine.from_session(session, FirstUsePolicy.PER_VISITOR)

        with pytest.raises(ValueError):
            await engine.resolve("ABCDE", None)


class TestNotFound:
    """Unknown slugs raise NotFound and never write."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", ALL_POLICIES)
    async def test_unknown_slug_is_idempotent(self, session_maker, make_redirect, fetch_redirect, policy):
        await make_redirect()

        for _ in range(3):
            with pytest.raises(RedirectNotFoundError):
                await resolve_once(session_maker, policy, slug="ZZZZZ")

        async with session_maker() as session:
            visits = (await session.exec(select(func.count(Visit.id)))).one()
            redirects = (await session.exec(select(func.count(Redirect.id)))).one()
        assert visits == 0
        assert redirects == 1
        assert (await fetch_redirect("ABCDE")).first_used is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("policy", ALL_POLICIES)
    async def test_store_failure_is_internal_error(self, session, policy):
        engine = ResolutionEngine(FailingStore(session), VisitLedger(session), policy)

        with pytest.raises(DatabaseError) as exc_info:
            await engine.resolve("ABCDE", "1.2.3.4")

        assert isinstance(exc_info.value.original_error, OperationalError)


class TestConcurrentResolution:
    """Single-winner guarantees under concurrent first resolutions."""

    @pytest.mark.asyncio
    async def test_global_policy_can_award_first_url_twice(self, session_maker, make_redirect, fetch_redirect):
        """Known defect of the non-atomic policy: both readers see first_used == false."""
        await make_redirect()
        barrier = asyncio.Barrier(2)

        results = await asyncio.gather(*(
            resolve_after_barrier(session_maker, FirstUsePolicy.GLOBAL, barrier)
            for _ in range(2)
        ))

        assert [r.destination_url for r in results] == [FIRST, FIRST]
        assert (await fetch_redirect("ABCDE")).first_used is True

    @pytest.mark.asyncio
    async def test_atomic_policy_single_winner_after_shared_read(self, session_maker, make_redirect, fetch_redirect):
        """Same interleaving as above; the conditional update lets only one through."""
        await make_redirect()
        barrier = asyncio.Barrier(5)

        results = await asyncio.gather(*(
            resolve_after_barrier(session_maker, FirstUsePolicy.GLOBAL_ATOMIC, barrier)
            for _ in range(5)
        ))

        destinations = [r.destination_url for r in results]
        assert destinations.count(FIRST) == 1
        assert destinations.count(NEXT) == 4
        assert (await fetch_redirect("ABCDE")).first_used is True

    @pytest.mark.asyncio
    async def test_atomic_policy_single_winner(self, session_maker, make_redirect, fetch_redirect):
        await make_redirect()

        results = await asyncio.gather(*(
            resolve_once(session_maker, FirstUsePolicy.GLOBAL_ATOMIC, visitor=f"10.0.0.{i}")
            for i in range(10)
        ))

        destinations = [r.destination_url for r in results]
        assert destinations.count(FIRST) == 1
        assert destinations.count(NEXT) == 9
        assert (await fetch_redirect("ABCDE")).first_used is True

    @pytest.mark.asyncio
    async def test_per_visitor_single_winner_same_identity(self, session_maker, make_redirect):
        await make_redirect()
        barrier = asyncio.Barrier(5)

        results = await asyncio.gather(*(
            resolve_after_barrier(session_maker, FirstUsePolicy.PER_VISITOR, barrier, visitor="1.2.3.4")
            for _ in range(5)
        ))

        destinations = [r.destination_url for r in results]
        assert destinations.count(FIRST) == 1
        assert destinations.count(NEXT) == 4

        async with session_maker() as session:
            ledger = VisitLedger(session)
            redirect = await RedirectStore(session).get_by_slug("ABCDE")
            assert await ledger.count_visits(redirect.id) == 1

    @pytest.mark.asyncio
    async def test_per_visitor_distinct_identities_all_win(self, session_maker, make_redirect):
        await make_redirect()
        visitors = [f"192.168.1.{i}" for i in range(8)]

        results = await asyncio.gather(*(
            resolve_once(session_maker, FirstUsePolicy.PER_VISITOR, visitor=visitor)
            for visitor in visitors
        ))

        assert [r.destination_url for r in results] == [FIRST] * len(visitors)

        again = await resolve_once(session_maker, FirstUsePolicy.PER_VISITOR, visitor=visitors[0])
        assert again.destination_url == NEXT

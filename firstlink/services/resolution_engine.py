"""
Resolution Engine

Decides, for one resolution of a slug, whether the caller gets the
redirect's first URL or its next URL, and records that decision.

Policies (see FirstUsePolicy):
- GLOBAL: read first_used, then write it. The read and the write are
  separate statements, so two concurrent first resolutions can both see
  first_used == false and both get the first URL. This is a known defect
  kept for side-by-side comparison; new deployments should not use it.
- GLOBAL_ATOMIC: the flip is a conditional UPDATE; at most one
  resolution per slug ever wins it.
- PER_VISITOR: one ledger insert per (redirect, visitor); the unique
  constraint picks the winner and losers fall back to the next URL.

The engine holds no state between calls. All coordination happens in the
database so that several service instances can share one store.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from firstlink.core.exceptions import DatabaseError, FirstLinkException, RedirectNotFoundError
from firstlink.core.setting import FirstUsePolicy
from firstlink.db.models import Redirect
from firstlink.services.redirect_store import RedirectStore
from firstlink.services.visit_ledger import VisitLedger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    """Outcome of a successful resolution."""
    destination_url: str
    first_visit: bool


class ResolutionEngine:
    """
    Core first-visit decision for a single slug resolution.
    """
    
    def __init__(
        self,
        store: RedirectStore,
        ledger: VisitLedger,
        policy: FirstUsePolicy = FirstUsePolicy.PER_VISITOR,
    ):
        self.store = store
        self.ledger = ledger
        self.policy = policy
    
    @classmethod
    def from_session(
        cls,
        session: AsyncSession,
        policy: FirstUsePolicy = FirstUsePolicy.PER_VISITOR,
    ) -> "ResolutionEngine":
        return cls(RedirectStore(session), VisitLedger(session), policy)
    
    async def resolve(self, slug: str, visitor_identity: Optional[str] = None) -> Resolution:
        """
        Resolve a slug to its destination for this request.
        
        Args:
            slug: Public slug
            visitor_identity: Caller identity, required for PER_VISITOR
        
        Returns:
            Resolution with the destination URL
        
        Raises:
            RedirectNotFoundError: If no redirect has this slug (nothing is written)
            DatabaseError: If the store fails
        """
        if self.policy is FirstUsePolicy.PER_VISITOR and not visitor_identity:
            raise ValueError("visitor_identity is required for the per_visitor policy")
        
        try:
            redirect = await self.store.get_by_slug(slug)
            if redirect is None:
                raise RedirectNotFoundError(slug)
            
            if self.policy is FirstUsePolicy.GLOBAL:
                return await self._resolve_global(redirect)
            if self.policy is FirstUsePolicy.GLOBAL_ATOMIC:
                return await self._resolve_global_atomic(redirect)
            return await self._resolve_per_visitor(redirect, visitor_identity)
        except FirstLinkException:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to resolve slug '{slug}'", original_error=e) from e
    
    # The helpers copy the record's fields before writing: a rollback in the
    # store expires loaded instances, and async sessions cannot lazy-load.

    async def _resolve_global(self, redirect: Redirect) -> Resolution:
        first_url, next_url = redirect.first_url, redirect.next_url
        if redirect.first_used:
            return Resolution(next_url, first_visit=False)

        # Not isolated from the read above: concurrent callers may all get here
        await self.store.mark_first_used(redirect.id)
        return Resolution(first_url, first_visit=True)

    async def _resolve_global_atomic(self, redirect: Redirect) -> Resolution:
        first_url, next_url, slug = redirect.first_url, redirect.next_url, redirect.slug
        if redirect.first_used:
            return Resolution(next_url, first_visit=False)

        if await self.store.claim_first_use(redirect.id):
            return Resolution(first_url, first_visit=True)

        logger.debug(f"Lost first-use race for slug '{slug}'")
        return Resolution(next_url, first_visit=False)

    async def _resolve_per_visitor(self, redirect: Redirect, visitor_identity: str) -> Resolution:
        redirect_id, first_url, next_url = redirect.id, redirect.first_url, redirect.next_url
        if await self.ledger.has_visited(redirect_id, visitor_identity):
            return Resolution(next_url, first_visit=False)

        if await self.ledger.record_first_visit(redirect_id, visitor_identity):
            return Resolution(first_url, first_visit=True)

        return Resolution(next_url, first_visit=False)

"""
Redirect Admin Service

Create, read, list and delete redirect records for the admin API.
This is the only writer of redirect rows besides the ResolutionEngine's
first-use flip, and it never touches first-use state.

Design Decisions:
- Input is validated before any database access
- Slug uniqueness is checked before insert; the unique index still
  catches a concurrent duplicate, which is reported the same way
- Omitted slugs are generated, retrying on collision
"""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from firstlink.core.exceptions import (
    InvalidRedirectError,
    RedirectNotFoundError,
    SlugConflictError,
)
from firstlink.core.validators import generate_slug, is_valid_url, sanitize_slug
from firstlink.db.models import Redirect
from firstlink.services.redirect_store import RedirectStore
from firstlink.services.visit_ledger import VisitLedger

logger = logging.getLogger(__name__)

SLUG_GENERATION_ATTEMPTS = 5


class RedirectAdminService:
    """
    Business logic behind the /api/redirects endpoints.
    """
    
    def __init__(self, session: AsyncSession, slug_length: int = 5):
        self.session = session
        self.slug_length = slug_length
        self.store = RedirectStore(session)
        self.ledger = VisitLedger(session)
    
    async def create_redirect(
        self,
        slug: Optional[str],
        first_url: Optional[str],
        next_url: Optional[str],
    ) -> Redirect:
        """
        Create a redirect.
        
        Args:
            slug: Requested slug, or None/empty to generate one
            first_url: Destination for the first visit
            next_url: Destination for later visits
        
        Returns:
            The stored Redirect
        
        Raises:
            InvalidRedirectError: If a field is missing or malformed
            SlugConflictError: If the slug is already taken
            DatabaseError: If the database operation fails
        """
        if not first_url or not next_url:
            raise InvalidRedirectError("Missing required fields: firstUrl, nextUrl")
        
        first_url = first_url.strip()
        next_url = next_url.strip()
        if not is_valid_url(first_url) or not is_valid_url(next_url):
            raise InvalidRedirectError("Invalid URL format")
        
        if slug is None or not slug.strip():
            return await self._create_with_generated_slug(first_url, next_url)
        
        sanitized_slug = sanitize_slug(slug)
        if not sanitized_slug:
            raise InvalidRedirectError("Invalid slug format", slug)
        
        if await self.store.get_by_slug(sanitized_slug) is not None:
            raise SlugConflictError(sanitized_slug)
        
        redirect = await self.store.create(sanitized_slug, first_url, next_url)
        logger.info(f"Created redirect '{redirect.slug}' ({redirect.id})")
        return redirect
    
    async def _create_with_generated_slug(self, first_url: str, next_url: str) -> Redirect:
        for attempt in range(1, SLUG_GENERATION_ATTEMPTS + 1):
            candidate = generate_slug(self.slug_length)
            if await self.store.get_by_slug(candidate) is not None:
                continue
            try:
                redirect = await self.store.create(candidate, first_url, next_url)
            except SlugConflictError:
                logger.warning(f"Generated slug '{candidate}' collided on insert (attempt {attempt})")
                continue
            logger.info(f"Created redirect '{redirect.slug}' ({redirect.id}) with generated slug")
            return redirect
        
        raise SlugConflictError(f"<generated after {SLUG_GENERATION_ATTEMPTS} attempts>")
    
    async def get_redirect(self, redirect_id: str) -> tuple[Redirect, int]:
        """
        Fetch one redirect with its visit count.
        
        Raises:
            RedirectNotFoundError: If the id is unknown
        """
        redirect = await self.store.get_by_id(redirect_id)
        if redirect is None:
            raise RedirectNotFoundError(redirect_id)
        return redirect, await self.ledger.count_visits(redirect.id)
    
    async def list_redirects(self) -> list[tuple[Redirect, int]]:
        """All redirects, newest first, with visit counts."""
        return await self.store.list_with_visit_counts()
    
    async def delete_redirect(self, redirect_id: str) -> str:
        """
        Delete a redirect and its ledger entries.
        
        Returns:
            Slug of the deleted redirect
        
        Raises:
            RedirectNotFoundError: If the id is unknown
        """
        redirect = await self.store.get_by_id(redirect_id)
        if redirect is None:
            raise RedirectNotFoundError(redirect_id)
        
        slug = redirect.slug
        await self.store.delete(redirect)
        logger.info(f"Deleted redirect '{slug}' ({redirect_id})")
        return slug

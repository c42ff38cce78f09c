"""
Redirect Service

This service handles URL redirection logic for the public GET /{slug}
route. It derives the visitor identity when the active policy needs one
and delegates the first-visit decision to the ResolutionEngine.

Design Decisions:
- Thin wrapper: no decision logic lives here
- Identity extraction only runs for the per-visitor policy
"""

import logging
from typing import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from firstlink.core.identity import extract_visitor_identity
from firstlink.core.setting import FirstUsePolicy
from firstlink.core.validators import sanitize_slug
from firstlink.core.exceptions import RedirectNotFoundError
from firstlink.services.resolution_engine import ResolutionEngine

logger = logging.getLogger(__name__)


class RedirectService:
    """
    Service for handling slug resolutions.
    """
    
    def __init__(self, session: AsyncSession, policy: FirstUsePolicy):
        """
        Initialize the redirect service with a database session.
        
        Args:
            session: Async database session for database operations
            policy: Active first-use policy
        """
        self.session = session
        self.policy = policy
        self.engine = ResolutionEngine.from_session(session, policy)
    
    async def get_redirect_url(self, slug: str, headers: Mapping[str, str]) -> str:
        """
        Get the destination URL for this resolution of a slug.
        
        Args:
            slug: Slug from the request path
            headers: Request headers, used for the visitor identity
        
        Returns:
            The first URL or the next URL of the redirect
        
        Raises:
            RedirectNotFoundError: If the slug is malformed or unknown
            DatabaseError: If the store fails
        """
        sanitized_slug = sanitize_slug(slug)
        if not sanitized_slug:
            # Cannot exist in the store
            raise RedirectNotFoundError(slug)
        
        visitor_identity = None
        if self.policy is FirstUsePolicy.PER_VISITOR:
            visitor_identity = extract_visitor_identity(headers)
        
        resolution = await self.engine.resolve(sanitized_slug, visitor_identity)
        
        logger.debug(
            f"Resolved '{sanitized_slug}' policy={self.policy.value} "
            f"first_visit={resolution.first_visit}"
        )
        return resolution.destination_url

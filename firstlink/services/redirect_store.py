"""
Redirect Record Store

Durable mapping from slug to redirect configuration and its global
first-use flag.

Design Decisions:
- Every mutation is scoped to a single row, looked up by primary key
- Mutations commit their own unit of work, so the caller's decision is
  durable before a redirect is emitted
- Two ways to set first_used: a plain write (mark_first_used) and a
  conditional compare-and-set (claim_first_use) that reports whether
  this call performed the false -> true transition
- SQLAlchemy failures are translated into DatabaseError
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from firstlink.core.exceptions import DatabaseError, SlugConflictError
from firstlink.db.models import Redirect, Visit

logger = logging.getLogger(__name__)


class RedirectStore:
    """
    Data access for redirect records.
    """
    
    def __init__(self, session: AsyncSession):
        """
        Args:
            session: Async database session for database operations
        """
        self.session = session
    
    async def get_by_slug(self, slug: str) -> Optional[Redirect]:
        """
        Look up a redirect by its slug.
        
        Args:
            slug: Public slug from the request path
        
        Returns:
            Redirect if found, None otherwise
        """
        try:
            statement = select(Redirect).where(Redirect.slug == slug)
            result = await self.session.exec(statement)
            return result.one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to look up slug '{slug}'", original_error=e) from e
    
    async def get_by_id(self, redirect_id: str) -> Optional[Redirect]:
        """Look up a redirect by its id."""
        try:
            return await self.session.get(Redirect, redirect_id)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to look up redirect '{redirect_id}'", original_error=e) from e
    
    async def create(self, slug: str, first_url: str, next_url: str) -> Redirect:
        """
        Insert a new redirect.
        
        Raises:
            SlugConflictError: If the slug's unique index rejects the insert
            DatabaseError: If the database operation fails otherwise
        """
        redirect = Redirect(slug=slug, first_url=first_url, next_url=next_url)
        
        try:
            self.session.add(redirect)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(redirect)
            return redirect
        except IntegrityError as e:
            await self.session.rollback()
            raise SlugConflictError(slug) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to create redirect '{slug}'", original_error=e) from e
    
    async def delete(self, redirect: Redirect) -> None:
        """
        Delete a redirect and its visit ledger entries.
        
        The foreign key cascades as well; the explicit delete keeps the
        behavior identical on backends where cascades are disabled.
        """
        try:
            await self.session.exec(delete(Visit).where(Visit.redirect_id == redirect.id))
            await self.session.exec(delete(Redirect).where(Redirect.id == redirect.id))
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to delete redirect '{redirect.id}'", original_error=e) from e
    
    async def list_with_visit_counts(self) -> list[tuple[Redirect, int]]:
        """
        All redirects, newest first, each paired with its ledger size.
        """
        statement = (
            select(Redirect, func.count(Visit.id))
            .outerjoin(Visit, Visit.redirect_id == Redirect.id)
            .group_by(Redirect.id)
            .order_by(Redirect.created_at.desc())
        )
        try:
            result = await self.session.exec(statement)
            return [(redirect, visit_count) for redirect, visit_count in result.all()]
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to list redirects", original_error=e) from e
    
    async def mark_first_used(self, redirect_id: str) -> None:
        """
        Set first_used unconditionally.
        
        This is a plain write: it does not check the current value, so
        callers that read the flag beforehand can race each other.
        """
        statement = (
            update(Redirect)
            .where(Redirect.id == redirect_id)
            .values(first_used=True)
        )
        try:
            await self.session.exec(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to mark redirect '{redirect_id}' as used", original_error=e) from e
    
    async def claim_first_use(self, redirect_id: str) -> bool:
        """
        Atomically flip first_used from false to true.
        
        Uses UPDATE ... WHERE first_used = false and inspects the row count,
        so the database decides the single winner for a redirect.
        
        Returns:
            True if this call performed the flip, False if it was already set
        """
        statement = (
            update(Redirect)
            .where(Redirect.id == redirect_id, Redirect.first_used.is_(False))
            .values(first_used=True)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.exec(statement)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError(f"Failed to claim first use of '{redirect_id}'", original_error=e) from e
        
        return result.rowcount == 1

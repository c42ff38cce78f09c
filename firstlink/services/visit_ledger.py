"""
Visit Ledger

Durable set of (redirect, visitor identity) pairs that have already been
sent to the redirect's first URL.

Design Decisions:
- One row per distinct pair, inserted once and never updated
- The unique constraint on (redirect_id, visitor_ip) is the only
  arbiter between concurrent first visits; no application locking
- A duplicate insert is the expected "lost the race" outcome and is
  reported as False, not raised
"""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from firstlink.core.exceptions import DatabaseError
from firstlink.db.models import Visit

logger = logging.getLogger(__name__)


class VisitLedger:
    """
    Data access for the per-visitor visit ledger.
    """
    
    def __init__(self, session: AsyncSession):
        self.session = session
    
    async def has_visited(self, redirect_id: str, visitor_ip: str) -> bool:
        """
        Check whether a visitor already consumed the first URL.
        
        Args:
            redirect_id: Id of the redirect
            visitor_ip: Visitor identity
        
        Returns:
            True if a ledger entry exists for the pair
        """
        statement = select(Visit.id).where(
            Visit.redirect_id == redirect_id,
            Visit.visitor_ip == visitor_ip,
        )
        try:
            result = await self.session.exec(statement)
            return result.first() is not None
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to read visit ledger", original_error=e) from e
    
    async def record_first_visit(self, redirect_id: str, visitor_ip: str) -> bool:
        """
        Insert the ledger entry for a visitor's first visit.
        
        Args:
            redirect_id: Id of the redirect
            visitor_ip: Visitor identity
        
        Returns:
            True if this call inserted the entry, False if a concurrent
            request inserted it first
        
        Raises:
            DatabaseError: If the insert fails for any other reason
        """
        visit = Visit(redirect_id=redirect_id, visitor_ip=visitor_ip)
        
        try:
            self.session.add(visit)
            await self.session.flush()
            await self.session.commit()
            return True
        except IntegrityError as e:
            await self.session.rollback()
            # A foreign key violation (redirect deleted meanwhile) also lands
            # here; only an existing entry means the race was lost.
            if await self.has_visited(redirect_id, visitor_ip):
                logger.debug(
                    f"Lost first-visit race for redirect {redirect_id}, visitor {visitor_ip}"
                )
                return False
            raise DatabaseError(
                "Failed to record visit: database constraint violation",
                original_error=e
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise DatabaseError("Failed to record visit", original_error=e) from e
    
    async def count_visits(self, redirect_id: str) -> int:
        """Number of distinct visitors recorded for a redirect."""
        statement = select(func.count(Visit.id)).where(Visit.redirect_id == redirect_id)
        try:
            result = await self.session.exec(statement)
            return result.one()
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to count visits", original_error=e) from e

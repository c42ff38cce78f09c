"""
Database Models for the First-Visit Redirect Service

This module defines the SQLModel database schemas for:
- Redirect: Maps a slug to its first-visit and next-visit URLs
- Visit: Ledger of (redirect, visitor) pairs that already got the first URL

Design Decisions:
- Redirect is the aggregate root; visits cascade-delete with it
- Unique index on slug for fast lookups (the redirect hot path)
- Unique constraint on (redirect_id, visitor_ip) so that a concurrent
  duplicate insert fails in the database instead of double-awarding
- first_used only ever goes from false to true
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    false,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_redirect_id() -> str:
    return uuid4().hex


class Redirect(SQLModel, table=True):
    """
    Main table storing redirect configurations.
    
    Fields:
    - id: Opaque identifier assigned at creation
    - slug: Unique human-chosen key used in the public URL
    - first_url: Destination for the first visit
    - next_url: Destination for every later visit
    - first_used: Global first-use flag (global policies only)
    - created_at: Timestamp when the redirect was created
    """
    __tablename__ = "redirects"
    
    id: str = Field(
        default_factory=new_redirect_id,
        sa_column=Column(String(32), primary_key=True)
    )
    slug: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True, index=True),
        max_length=50
    )
    first_url: str = Field(sa_column=Column(Text, nullable=False))
    next_url: str = Field(sa_column=Column(Text, nullable=False))
    first_used: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False, server_default=false())
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )


class Visit(SQLModel, table=True):
    """
    Visit ledger for the per-visitor policy.
    
    A row exists exactly when that visitor has already been sent to the
    redirect's first URL. Rows are never updated.
    """
    __tablename__ = "visits"
    __table_args__ = (
        UniqueConstraint("redirect_id", "visitor_ip", name="uq_visits_redirect_visitor"),
    )
    
    id: Optional[int] = Field(default=None, primary_key=True)
    redirect_id: str = Field(
        sa_column=Column(
            String(32),
            ForeignKey("redirects.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    visitor_ip: str = Field(sa_column=Column(String(255), nullable=False))
    visited_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

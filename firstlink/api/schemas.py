"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateRedirectRequest(BaseModel):
    """Request model for creating a redirect."""
    model_config = ConfigDict(populate_by_name=True)

    slug: Optional[str] = Field(None, description="Slug to use; generated when omitted")
    first_url: Optional[str] = Field(None, alias="firstUrl", description="Destination for the first visit")
    next_url: Optional[str] = Field(None, alias="nextUrl", description="Destination for later visits")


class CreateRedirectResponse(BaseModel):
    """Response model for redirect creation."""
    id: str = Field(..., description="Id of the new redirect")
    slug: str = Field(..., description="The stored slug")
    link: str = Field(..., description="The complete public link")


class RedirectRecordResponse(BaseModel):
    """One redirect record with its ledger size."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    slug: str
    first_url: str = Field(..., alias="firstUrl")
    next_url: str = Field(..., alias="nextUrl")
    first_used: bool = Field(..., alias="firstUsed")
    created_at: datetime = Field(..., alias="createdAt")
    visit_count: int = Field(..., alias="visitCount")


class DeleteRedirectResponse(BaseModel):
    """Response model for redirect deletion."""
    message: str
    slug: str


class ErrorResponse(BaseModel):
    """Error payload returned for every non-redirect failure."""
    error: str

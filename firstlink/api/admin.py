"""
Admin Endpoints

CRUD over redirect records. These endpoints never call the resolution
engine and never change first-use state.

Routes:
- GET    /api/redirects        list with visit counts, newest first
- POST   /api/redirects        create (400 invalid, 409 duplicate slug)
- GET    /api/redirects/{id}   one record
- DELETE /api/redirects/{id}   delete, cascading ledger entries
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from firstlink.api.schemas import (
    CreateRedirectRequest,
    CreateRedirectResponse,
    DeleteRedirectResponse,
    ErrorResponse,
    RedirectRecordResponse,
)
from firstlink.core.setting import settings
from firstlink.db.models import Redirect
from firstlink.db.session import get_session
from firstlink.services.redirect_admin import RedirectAdminService

router = APIRouter(prefix="/api/redirects")


def to_record_response(redirect: Redirect, visit_count: int) -> RedirectRecordResponse:
    return RedirectRecordResponse(
        id=redirect.id,
        slug=redirect.slug,
        first_url=redirect.first_url,
        next_url=redirect.next_url,
        first_used=redirect.first_used,
        created_at=redirect.created_at,
        visit_count=visit_count,
    )


@router.get(
    "",
    response_model=list[RedirectRecordResponse],
    summary="List redirects",
)
async def list_redirects(
    session: AsyncSession = Depends(get_session)
) -> list[RedirectRecordResponse]:
    admin_service = RedirectAdminService(session)
    redirects = await admin_service.list_redirects()
    return [to_record_response(redirect, count) for redirect, count in redirects]


@router.post(
    "",
    response_model=CreateRedirectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a redirect",
    responses={
        400: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
    },
)
async def create_redirect(
    body: CreateRedirectRequest,
    session: AsyncSession = Depends(get_session)
) -> CreateRedirectResponse:
    """
    Create a redirect from a slug and two destination URLs.
    
    Returns:
        CreateRedirectResponse with id, slug and the complete public link
    """
    admin_service = RedirectAdminService(session, slug_length=settings.SLUG_LENGTH)
    redirect = await admin_service.create_redirect(body.slug, body.first_url, body.next_url)
    
    return CreateRedirectResponse(
        id=redirect.id,
        slug=redirect.slug,
        link=f"{settings.BASE_URL.rstrip('/')}/{redirect.slug}",
    )


@router.get(
    "/{redirect_id}",
    response_model=RedirectRecordResponse,
    summary="Get a redirect",
    responses={404: {"model": ErrorResponse}},
)
async def get_redirect(
    redirect_id: str,
    session: AsyncSession = Depends(get_session)
) -> RedirectRecordResponse:
    admin_service = RedirectAdminService(session)
    redirect, visit_count = await admin_service.get_redirect(redirect_id)
    return to_record_response(redirect, visit_count)


@router.delete(
    "/{redirect_id}",
    response_model=DeleteRedirectResponse,
    summary="Delete a redirect",
    responses={404: {"model": ErrorResponse}},
)
async def delete_redirect(
    redirect_id: str,
    session: AsyncSession = Depends(get_session)
) -> DeleteRedirectResponse:
    admin_service = RedirectAdminService(session)
    slug = await admin_service.delete_redirect(redirect_id)
    return DeleteRedirectResponse(message="Redirect deleted successfully", slug=slug)

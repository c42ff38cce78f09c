"""
Public Redirect Endpoint

GET /{slug} resolves a slug and answers with a temporary (302) redirect.
Endpoints only handle HTTP concerns; the first-visit decision lives in
the service layer.

Responses:
- 302 to the first URL or the next URL
- 404 {"error": "Redirect not found"}
- 500 {"error": "Internal server error"}; the cause is logged, never returned
"""

import logging

from fastapi import APIRouter, Request, Depends, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from firstlink.api.schemas import ErrorResponse
from firstlink.core.exceptions import FirstLinkException
from firstlink.core.setting import FirstUsePolicy, settings
from firstlink.db.session import get_session
from firstlink.services.redirect_service import RedirectService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_first_use_policy() -> FirstUsePolicy:
    """Active first-use policy; overridable as a FastAPI dependency."""
    return settings.FIRST_USE_POLICY


@router.get(
    "/{slug}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to the first or next URL",
    description="Resolves a slug and redirects to its first URL on first use, its next URL afterwards",
    responses={
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def redirect_to_url(
    slug: str,
    request: Request,
    session: AsyncSession = Depends(get_session),
    policy: FirstUsePolicy = Depends(get_first_use_policy),
):
    """
    Redirect to the destination chosen for this resolution of the slug.
    
    Args:
        slug: The slug to resolve
        request: FastAPI Request object (headers carry the visitor identity)
    
    Returns:
        RedirectResponse (HTTP 302)
    """
    redirect_service = RedirectService(session, policy)
    
    try:
        destination_url = await redirect_service.get_redirect_url(slug, request.headers)
    except FirstLinkException:
        raise
    except Exception:
        logger.error(f"Unexpected failure resolving '{slug}'", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
    
    return RedirectResponse(
        url=destination_url,
        status_code=status.HTTP_302_FOUND
    )

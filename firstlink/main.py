"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (admin API, health checks, public redirect route)
- Middleware (logging, CORS)
- Exception handlers mapping service errors to JSON payloads
- Startup/shutdown hooks (logging setup, schema creation, engine disposal)

Route order matters: the catch-all GET /{slug} is registered last.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from firstlink.api import admin, endpoints
from firstlink.core.exceptions import FirstLinkException
from firstlink.core.setting import settings
from firstlink.db.session import engine, init_models
from firstlink.middleware.logging import add_logging_middleware

logger = logging.getLogger(__name__)

app = FastAPI(
    title="First-Visit Redirect Service",
    description="Short links that send the first visit to one URL and every later visit to another",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
)


@app.exception_handler(FirstLinkException)
async def firstlink_exception_handler(request: Request, exc: FirstLinkException) -> JSONResponse:
    """Map service exceptions to {"error": ...} payloads."""
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc}",
            exc_info=getattr(exc, "original_error", None) or exc,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.public_message},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400), not 422."""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body"},
    )


add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health endpoints defined before the catch-all slug route
@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.
    
    Returns:
        Simple JSON response indicating service is running
    """
    return {
        "message": "First-Visit Redirect Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.
    
    Returns:
        Health status of the service
    """
    return {"status": "healthy"}


app.include_router(admin.router, tags=["Admin"])
app.include_router(endpoints.router, tags=["Redirect"])


@app.on_event("startup")
async def startup_event():
    """Configure logging and create missing tables."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Starting with first-use policy '{settings.FIRST_USE_POLICY.value}'")
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_models()


@app.on_event("shutdown")
async def shutdown_event():
    """Release pooled connections."""
    await engine.dispose()

"""FastAPI application entry point.

This module initializes the FastAPI application with middleware,
routers, and core endpoints.
"""

import logging
from datetime import datetime

from fastapi import Depends, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.server import __version__
from src.server.api.auth import router as auth_router
from src.server.config import settings
from src.server.models.common import ErrorResponse, HealthResponse
from src.server.services.auth_service import (
    AuthService,
    get_auth_service,
    reset_auth_service,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO if not settings.debug else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Connects user brokerage accounts to Upstox via OAuth 2.0",
    version=__version__,
    debug=settings.debug,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# Configure CORS middleware for the frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

app.include_router(auth_router)


@app.on_event("startup")
async def startup_event():
    """Application startup event handler.

    Loads the Upstox app registrations once so configuration problems
    show up in the logs at boot rather than on the first login.
    """
    logger.info(f"Starting {settings.app_name} v{__version__}")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"Frontend URL: {settings.frontend_url}")
    logger.info(f"Token store: {settings.token_store_url}")

    service = get_auth_service()
    if not service.resolver.tenant_keys() and not service.resolver.has_default:
        logger.warning(
            f"No Upstox registrations found; set {settings.credential_env_prefix}_CLIENT_ID "
            f"and {settings.credential_env_prefix}_REDIRECT_URL (optionally suffixed per user)"
        )


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event handler."""
    logger.info(f"Shutting down {settings.app_name}")
    reset_auth_service()


@app.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    tags=["health"],
    summary="Health check endpoint",
    description="Returns service health status including configured registrations",
)
async def health_check(
    service: AuthService = Depends(get_auth_service),
) -> HealthResponse:
    """Health check endpoint.

    Returns:
        Health status response with timestamp and registration count

    Example:
        >>> GET /health
        >>> {
        >>>     "status": "healthy",
        >>>     "timestamp": "2026-02-01T10:00:00",
        >>>     "registrations": 2,
        >>>     "global_registration": true
        >>> }
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.utcnow(),
        registrations=len(service.resolver.tenant_keys()),
        global_registration=service.resolver.has_default,
    )


@app.get(
    "/",
    status_code=status.HTTP_200_OK,
    tags=["root"],
    summary="Root endpoint",
    description="Returns welcome message with API information",
)
async def root():
    """Root endpoint.

    Provides basic API information and links to documentation.
    """
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "login": "/auth/login",
    }


# Error handlers
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors.

    Args:
        request: The request that caused the error
        exc: The exception that was raised

    Returns:
        JSON error response
    """
    logger.error(f"Unhandled exception: {type(exc).__name__}", exc_info=True)
    body = ErrorResponse(
        error="InternalServerError", message="An unexpected error occurred"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.server.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )

"""
FastAPI entrypoint for the SafeCommit review backend.

``create_app`` builds the application and the process-wide review client.
A missing provider API key fails here, at startup, never per request.
"""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from safecommit import __version__
from safecommit.api import health, review
from safecommit.config import Settings, get_settings
from safecommit.dependencies import build_reviewer
from safecommit.observability.logging import setup_logging
from safecommit.review.reviewer import ReviewProvider

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    reviewer: Optional[ReviewProvider] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use (defaults to the environment)
        reviewer: Review client override, e.g. a test double
        configure_logging: Install the root log handler

    Raises:
        ConfigurationError: If no reviewer is given and the configured
            provider cannot be built
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    if reviewer is None:
        reviewer = build_reviewer(settings)

    app = FastAPI(
        title="SafeCommit",
        description="Pre-commit review of staged diffs by a hosted LLM",
        version=__version__,
        docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    )
    app.state.settings = settings
    app.state.reviewer = reviewer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register routes
    app.include_router(health.router, tags=["health"])
    app.include_router(review.router, prefix="/v1/review", tags=["review"])

    logger.info(
        "SafeCommit backend ready",
        extra={
            "environment": settings.ENVIRONMENT,
            "provider": settings.LLM_PROVIDER,
            "model": settings.model_name,
        },
    )
    return app


def run(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """
    Serve the application with uvicorn.

    The provider configuration is checked in this process before uvicorn
    starts, so a missing key exits even when a reloader would supervise
    the worker.

    Raises:
        ConfigurationError: If the configured provider cannot be built
    """
    import uvicorn

    settings = get_settings()
    build_reviewer(settings)

    uvicorn.run(
        "safecommit.main:create_app",
        factory=True,
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload,
    )


if __name__ == "__main__":
    run()

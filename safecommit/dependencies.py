"""
Shared dependencies for dependency injection.

The review client and settings are built once in ``create_app`` and stored
on ``app.state``; these helpers hand them to route handlers.
"""

from fastapi import Request

from safecommit.config import Settings
from safecommit.llm.model import get_llm_client
from safecommit.review.reviewer import DiffReviewer, ReviewProvider


def build_reviewer(settings: Settings) -> DiffReviewer:
    """
    Build the process-wide review client from settings.

    Raises:
        ConfigurationError: If the provider or its API key is not configured
    """
    return DiffReviewer(
        llm_client=get_llm_client(settings),
        timeout_ms=settings.LLM_TIMEOUT_MS,
        repair_timeout_ms=settings.repair_timeout_ms,
        debug_prompts=settings.DEBUG_PROMPTS,
    )


def get_app_settings(request: Request) -> Settings:
    """Provides the settings the application was built with."""
    return request.app.state.settings


def get_reviewer(request: Request) -> ReviewProvider:
    """Provides the shared review client."""
    return request.app.state.reviewer

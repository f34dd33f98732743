"""
Health check endpoints.

Provides liveness and readiness status.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from safecommit.config import Settings
from safecommit.dependencies import get_app_settings

router = APIRouter()


class ReadinessResponse(BaseModel):
    """Readiness check response model."""
    status: str
    checks: Dict[str, Any]


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check():
    """Simple liveness probe."""
    return {"status": "ok"}


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
    description="Reports whether the review client is configured",
)
async def readiness_check(request: Request, settings: Settings = Depends(get_app_settings)):
    """
    Readiness check endpoint.

    Returns:
        ReadinessResponse: ``ready`` when the review client is wired and the
        provider key is present.
    """
    reviewer = getattr(request.app.state, "reviewer", None)
    checks = {
        "llm_provider": settings.LLM_PROVIDER,
        "llm_model": settings.model_name,
        "llm_api_key": "ok" if settings.provider_api_key else "missing",
        "reviewer": "ok" if reviewer is not None else "missing",
        "max_diff_bytes": settings.DEFAULT_MAX_DIFF_BYTES,
        "timeout_ms": settings.LLM_TIMEOUT_MS,
    }

    critical_checks = [checks["llm_api_key"], checks["reviewer"]]
    overall_status = "ready" if all(c == "ok" for c in critical_checks) else "not_ready"

    return ReadinessResponse(status=overall_status, checks=checks)

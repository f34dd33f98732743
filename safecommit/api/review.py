"""
Staged-diff review endpoint.

Validates the request, truncates the diff, runs the review client and
recomputes the summary from the validated findings.
"""

import json
import logging
import time
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from safecommit.config import Settings
from safecommit.dependencies import get_app_settings, get_reviewer
from safecommit.errors import LLMError, ReviewValidationError
from safecommit.llm.schemas import ReviewResponse
from safecommit.llm.validation import ROOT_PATH, ValidationIssue, ValidationResult, validate_review_request
from safecommit.observability.logging import LogContext
from safecommit.review.reviewer import ReviewProvider
from safecommit.review.summary import build_summary
from safecommit.review.truncation import truncate_by_bytes, utf8_length

logger = logging.getLogger(__name__)

router = APIRouter()


def error_response(status_code: int, request_id: str, error: str, **fields) -> JSONResponse:
    content = {"requestId": request_id, "error": error}
    content.update(fields)
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={"X-Request-ID": request_id},
    )


@router.post(
    "/diff",
    summary="Review a staged diff",
    description="Sends the diff to the model and returns validated findings",
)
async def review_diff(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    reviewer: ReviewProvider = Depends(get_reviewer),
):
    """
    Review endpoint.

    Returns:
        200 with findings and summary, 400 for an invalid request body,
        502 when the model fails or its output stays invalid after repair.
    """
    started = time.monotonic()
    request_id = str(uuid.uuid4())

    with LogContext(request_id=request_id):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            parsed = ValidationResult.failure(
                [ValidationIssue(path=ROOT_PATH, reason=f"Malformed JSON body: {e}")]
            )
        else:
            parsed = validate_review_request(body)

        if not parsed.ok:
            logger.info(f"Rejected review request: {parsed.error}")
            return error_response(400, request_id, "Invalid request", details=parsed.flatten())

        review_request = parsed.value
        diff_bytes = utf8_length(review_request.diff)
        truncated_diff = truncate_by_bytes(review_request.diff, settings.DEFAULT_MAX_DIFF_BYTES)
        if diff_bytes > settings.DEFAULT_MAX_DIFF_BYTES:
            logger.info(
                "Diff truncated",
                extra={"diffBytes": diff_bytes, "maxBytes": settings.DEFAULT_MAX_DIFF_BYTES},
            )

        failure_context = {
            "repoId": review_request.repo_id,
            "diffBytes": diff_bytes,
            "filesCount": len(review_request.files),
        }

        try:
            outcome = await reviewer.review_diff(truncated_diff, list(review_request.files))
        except ReviewValidationError as e:
            logger.error("Review failed", extra={**failure_context, "error": e.detail})
            return error_response(502, request_id, "Invalid findings from provider", message=str(e))
        except LLMError as e:
            logger.error("Review failed", extra={**failure_context, "error": str(e)})
            return error_response(502, request_id, "Failed to review diff", message=str(e))
        except Exception:
            logger.exception("Review failed", extra=failure_context)
            return error_response(
                502, request_id, "Failed to review diff", message="Internal error while reviewing diff"
            )

        duration_ms = int((time.monotonic() - started) * 1000)
        summary = build_summary(outcome.findings, duration_ms)
        response = ReviewResponse(
            request_id=request_id,
            findings=outcome.findings,
            summary=summary,
        )

        logger.info(
            "Review completed",
            extra={
                "totalFindings": summary.total_findings,
                "repaired": outcome.repaired,
                "durationMs": duration_ms,
            },
        )
        return JSONResponse(content=response.to_wire(), headers={"X-Request-ID": request_id})

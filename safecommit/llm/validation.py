"""
Schema validation for model output and request bodies.

Validation is structural: shapes, kinds, enums, and the line-range
constraint. Every entry point returns a ``ValidationResult`` and never
raises for any decoded JSON value.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from safecommit.llm.schemas import (
    LINE_RANGE_MESSAGE,
    ReviewPayload,
    ReviewRequest,
)

ROOT_PATH = "<root>"

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationIssue:
    """One failed constraint: dotted wire path plus reason."""
    path: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path}: {self.reason}"


@dataclass(frozen=True)
class ValidationResult(Generic[T]):
    """Tagged result: ``ok`` with ``value``, or not ``ok`` with ``issues``."""
    ok: bool
    value: Optional[T] = None
    issues: List[ValidationIssue] = field(default_factory=list)

    @classmethod
    def success(cls, value: T) -> "ValidationResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, issues: List[ValidationIssue]) -> "ValidationResult[T]":
        return cls(ok=False, issues=list(issues))

    @property
    def error(self) -> Optional[str]:
        """Human-readable description of all issues, or None on success."""
        if self.ok:
            return None
        return "; ".join(str(issue) for issue in self.issues)

    def flatten(self) -> Dict[str, Any]:
        """
        Group issues by top-level field.

        Issues at the document root go to ``formErrors``; everything else
        goes to ``fieldErrors`` keyed by the first path segment.
        """
        form_errors: List[str] = []
        field_errors: Dict[str, List[str]] = {}
        for issue in self.issues:
            if issue.path == ROOT_PATH:
                form_errors.append(issue.reason)
            else:
                key = issue.path.split(".", 1)[0]
                field_errors.setdefault(key, []).append(issue.reason)
        return {"formErrors": form_errors, "fieldErrors": field_errors}


def _issues_from_error(exc: ValidationError) -> List[ValidationIssue]:
    issues = []
    for err in exc.errors():
        path = ".".join(str(part) for part in err["loc"]) or ROOT_PATH
        reason = err["msg"]
        if reason.startswith("Value error, "):
            reason = reason[len("Value error, "):]
        if reason == LINE_RANGE_MESSAGE:
            path = "lineEnd" if path == ROOT_PATH else f"{path}.lineEnd"
        issues.append(ValidationIssue(path=path, reason=reason))
    return issues


def _validate(model: Type[BaseModel], data: Any) -> ValidationResult:
    try:
        value = model.model_validate(data)
    except ValidationError as e:
        return ValidationResult.failure(_issues_from_error(e))
    return ValidationResult.success(value)


def validate_review_payload(data: Any) -> ValidationResult[ReviewPayload]:
    """Validate a decoded model response against ``{findings, summary}``."""
    return _validate(ReviewPayload, data)


def validate_review_request(data: Any) -> ValidationResult[ReviewRequest]:
    """Validate a POST /v1/review/diff body."""
    return _validate(ReviewRequest, data)


def parse_model_output(text: str) -> ValidationResult[ReviewPayload]:
    """
    Strictly parse raw model text as JSON, then validate it.

    Parse failures and schema failures both produce a failed result.
    """
    if not isinstance(text, str):
        return ValidationResult.failure(
            [ValidationIssue(path=ROOT_PATH, reason="Model returned no text")]
        )
    try:
        data = json.loads(text.strip())
    except json.JSONDecodeError as e:
        return ValidationResult.failure(
            [ValidationIssue(path=ROOT_PATH, reason=f"Invalid JSON: {e}")]
        )
    return validate_review_payload(data)


def validate_model(model: Type[BaseModel], data: Any) -> ValidationResult:
    """Validate ``data`` against an arbitrary wire model."""
    return _validate(model, data)

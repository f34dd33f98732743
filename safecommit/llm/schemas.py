"""
Structured schemas for the review contract.

These Pydantic models define the shape of the model's JSON response and of
the HTTP request/response bodies. Wire names are camelCase; Python
attributes are snake_case.
"""

from enum import Enum
from typing import Annotated, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    """Finding severity levels, ordered nit < suggestion < warning < critical."""
    NIT = "nit"
    SUGGESTION = "suggestion"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


CANONICAL_SEVERITIES = [s.value for s in Severity]

LINE_RANGE_MESSAGE = "lineEnd must be greater than or equal to lineStart"


def _integral_float_to_int(value):
    """JSON numbers like ``3.0`` are integers; ``3.5``, bools and strings are not."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


NonEmptyStr = Annotated[str, Field(min_length=1, strict=True)]
NonNegativeInt = Annotated[int, Field(ge=0, strict=True), BeforeValidator(_integral_float_to_int)]
LineNumber = Annotated[int, Field(ge=1, strict=True), BeforeValidator(_integral_float_to_int)]


class WireModel(BaseModel):
    """Base model for camelCase JSON documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_wire(self) -> dict:
        """Serialize using wire (camelCase) names, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Finding(WireModel):
    """A single reviewer-reported issue tied to a file and line range."""

    file: NonEmptyStr = Field(..., description="Repository-relative file path")
    line_start: LineNumber = Field(..., description="First affected line")
    line_end: LineNumber = Field(..., description="Last affected line")
    severity: Severity
    title: NonEmptyStr
    message: NonEmptyStr
    rationale: NonEmptyStr
    patch: Optional[Annotated[str, Field(strict=True)]] = Field(
        None,
        description="Optional suggested patch",
    )

    @model_validator(mode="after")
    def check_line_range(self) -> "Finding":
        if self.line_end < self.line_start:
            raise ValueError(LINE_RANGE_MESSAGE)
        return self


class Summary(WireModel):
    """Severity counts and timing for one review."""

    total_findings: NonNegativeInt
    by_severity: Dict[str, NonNegativeInt]
    duration_ms: NonNegativeInt


class ReviewPayload(WireModel):
    """The document the model is asked to produce."""

    findings: List[Finding]
    summary: Summary


class ReviewRequest(WireModel):
    """Body of POST /v1/review/diff."""

    repo_id: NonEmptyStr
    diff: NonEmptyStr
    files: List[NonEmptyStr]


class ReviewResponse(WireModel):
    """Successful review response."""

    request_id: str
    findings: List[Finding]
    summary: Summary

    def has_findings_at_or_above(self, threshold: Severity) -> bool:
        return any(severity_at_or_above(f.severity, threshold) for f in self.findings)


def severity_at_or_above(severity: Severity, threshold: Severity) -> bool:
    """Check whether ``severity`` is at least as serious as ``threshold``."""
    return Severity(severity).rank >= Severity(threshold).rank

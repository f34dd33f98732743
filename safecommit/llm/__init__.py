"""
LLM integration module for diff review.

This module provides:
- Structured schemas for the model output and HTTP bodies
- Constrained prompts for review and repair
- Schema validation returning tagged results
- LLM client abstraction (Gemini/OpenAI/Anthropic)
"""

from safecommit.llm.model import LLMClient, get_llm_client
from safecommit.llm.schemas import (
    Finding,
    ReviewPayload,
    ReviewRequest,
    ReviewResponse,
    Severity,
    Summary,
)
from safecommit.llm.validation import ValidationResult, parse_model_output

__all__ = [
    "LLMClient",
    "get_llm_client",
    "Finding",
    "ReviewPayload",
    "ReviewRequest",
    "ReviewResponse",
    "Severity",
    "Summary",
    "ValidationResult",
    "parse_model_output",
]

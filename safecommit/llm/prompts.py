"""
Constrained, schema-driven prompts for staged-diff review.

The system prompt fixes the output contract; the user prompt embeds the
file list, the diff, and a literal schema example to anchor the format.
Embedded content is passed through verbatim.
"""

import json
from typing import List

from safecommit.llm.schemas import CANONICAL_SEVERITIES


SYSTEM_PROMPT_RULES = [
    "You are a careful code reviewer.",
    "Review only the staged diff provided.",
    "Return ONLY valid JSON matching the schema. No markdown, no commentary.",
    "If no issues are found, return findings as an empty array and a correct summary.",
    f"Severities must be one of: {', '.join(CANONICAL_SEVERITIES)}.",
    "Map each finding to an existing file path and line range in the file.",
    "Prefer actionable guidance and minimal patches.",
    "Make the message and rationale detailed and specific, including impact and concrete fix guidance.",
    "Be conservative; avoid nitpicks unless clearly beneficial.",
    "Summary counts must exactly match the findings array.",
]

SCHEMA_EXAMPLE = {
    "findings": [
        {
            "file": "string",
            "lineStart": 1,
            "lineEnd": 1,
            "severity": "warning",
            "title": "string",
            "message": "string",
            "rationale": "string",
            "patch": "string",
        }
    ],
    "summary": {
        "totalFindings": 1,
        "bySeverity": {
            "nit": 0,
            "suggestion": 0,
            "warning": 1,
            "critical": 0,
        },
        "durationMs": 1,
    },
}

JSON_ONLY_INSTRUCTION = (
    "Return ONLY valid JSON matching the required schema. No markdown, no commentary."
)


def build_system_prompt() -> str:
    """Fixed system instruction describing the output contract."""
    return " ".join(SYSTEM_PROMPT_RULES)


def build_user_prompt(diff: str, files: List[str]) -> str:
    """
    Build the per-request user prompt.

    Args:
        diff: Unified diff of staged changes (already truncated)
        files: Paths of the staged files

    Returns:
        Prompt string with the file list, the diff and a schema example
    """
    schema_hint = json.dumps(SCHEMA_EXAMPLE, indent=2)

    prompt_parts = [
        "You must review ONLY the staged diff below.",
        "File list:",
        "\n".join(files),
        "Staged diff:",
        diff,
        "Return ONLY valid JSON matching this schema:",
        schema_hint,
    ]
    return "\n\n".join(prompt_parts)


def build_repair_prompt(bad_output: str) -> str:
    """Ask the model to re-emit valid JSON, quoting its previous output."""
    return "\n\n".join([
        "The previous response was invalid.",
        JSON_ONLY_INSTRUCTION,
        "Here is the invalid output:",
        bad_output,
    ])

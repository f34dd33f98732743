"""
Formatters for review output.

Converts review responses into terminal text for the pre-commit hook and
the ``safecommit review`` command.
"""

from collections import OrderedDict
from typing import Dict, List

from safecommit.llm.schemas import CANONICAL_SEVERITIES, Finding, ReviewResponse, Severity


SEVERITY_COLORS = {
    Severity.CRITICAL: "red",
    Severity.WARNING: "yellow",
    Severity.SUGGESTION: "cyan",
    Severity.NIT: "white",
}


def format_location(finding: Finding) -> str:
    """``file:line`` for single-line findings, ``file:start-end`` otherwise."""
    if finding.line_start == finding.line_end:
        return f"{finding.file}:{finding.line_start}"
    return f"{finding.file}:{finding.line_start}-{finding.line_end}"


def unique_findings(findings: List[Finding]) -> List[Finding]:
    """Drop findings repeating an earlier (severity, location, title)."""
    seen = set()
    unique = []
    for finding in findings:
        key = (finding.severity, finding.file, finding.line_start, finding.line_end, finding.title)
        if key in seen:
            continue
        seen.add(key)
        unique.append(finding)
    return unique


def format_finding_line(index: int, finding: Finding) -> str:
    return f"{index}. [{finding.severity.value}] {format_location(finding)} - {finding.title}"


def format_findings_list(findings: List[Finding]) -> List[str]:
    """
    Numbered one-line entries for the hook output.

    Returns:
        ``["1. None"]`` when there are no findings
    """
    findings = unique_findings(findings)
    if not findings:
        return ["1. None"]
    return [format_finding_line(i, f) for i, f in enumerate(findings, start=1)]


def group_by_file(findings: List[Finding]) -> Dict[str, List[Finding]]:
    grouped: Dict[str, List[Finding]] = OrderedDict()
    for finding in findings:
        grouped.setdefault(finding.file, []).append(finding)
    return grouped


def format_summary_line(response: ReviewResponse) -> str:
    counts = response.summary.by_severity
    parts = [f"{counts.get(s, 0)} {s}" for s in reversed(CANONICAL_SEVERITIES)]
    return (
        f"{response.summary.total_findings} finding(s): {', '.join(parts)} "
        f"({response.summary.duration_ms} ms)"
    )


def format_detailed_review(response: ReviewResponse) -> str:
    """
    Full review report grouped by file, with message, rationale and patch.
    """
    lines = [format_summary_line(response)]
    for file_path, findings in group_by_file(unique_findings(response.findings)).items():
        lines.append("")
        lines.append(file_path)
        for finding in findings:
            lines.append(f"  [{finding.severity.value}] {format_location(finding)} - {finding.title}")
            lines.append(f"    {finding.message}")
            lines.append(f"    Why: {finding.rationale}")
            if finding.patch:
                lines.append("    Patch:")
                lines.extend(f"      {line}" for line in finding.patch.splitlines())
    return "\n".join(lines)

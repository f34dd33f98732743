"""
Summary builder.

Severity counts are always recomputed from validated findings; a summary
supplied by the model is never trusted.
"""

from typing import Dict, Iterable

from safecommit.llm.schemas import CANONICAL_SEVERITIES, Finding, Summary


def count_by_severity(findings: Iterable[Finding]) -> Dict[str, int]:
    """Count findings per severity, with all canonical keys present."""
    by_severity = {severity: 0 for severity in CANONICAL_SEVERITIES}
    for finding in findings:
        key = getattr(finding.severity, "value", finding.severity)
        by_severity[key] = by_severity.get(key, 0) + 1
    return by_severity


def build_summary(findings: Iterable[Finding], duration_ms: int) -> Summary:
    """
    Build the response summary for a list of findings.

    Args:
        findings: Validated findings
        duration_ms: Elapsed review time in milliseconds

    Returns:
        Summary with ``total_findings == len(findings)``
    """
    findings = list(findings)
    return Summary(
        total_findings=len(findings),
        by_severity=count_by_severity(findings),
        duration_ms=max(int(duration_ms), 0),
    )

"""Severity aggregation across a run."""

from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from specgate.models.finding import Finding, Severity
from specgate.models.result import FileReport, RunSummary


def count_severity(findings: Iterable[Finding], severity: Severity) -> int:
    return sum(1 for finding in findings if finding.severity is severity)


def summarize(files: FileReport) -> RunSummary:
    """Compute error/warning totals over every file of a run.

    A run with no files is clean with both counts zero.
    """
    errors = 0
    warnings = 0
    for findings in files.values():
        errors += count_severity(findings, Severity.ERROR)
        warnings += count_severity(findings, Severity.WARNING)
    return RunSummary(error_count=errors, warning_count=warnings)


def summarize_findings(findings: Sequence[Finding]) -> Tuple[int, int]:
    """Return ``(errors, warnings)`` for a flat finding list."""
    return count_severity(findings, Severity.ERROR), count_severity(findings, Severity.WARNING)

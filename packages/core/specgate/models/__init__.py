"""Data models for SpecGate"""

from specgate.models.finding import Finding, Location, Severity, SEVERITY_RANK
from specgate.models.result import (
    DualRunResult,
    FileFailure,
    PhaseFindings,
    RunResult,
    RunSummary,
)
from specgate.models.tool_output import ToolRecord, adapt_record

__all__ = [
    "Finding",
    "Location",
    "Severity",
    "SEVERITY_RANK",
    "DualRunResult",
    "FileFailure",
    "PhaseFindings",
    "RunResult",
    "RunSummary",
    "ToolRecord",
    "adapt_record",
]

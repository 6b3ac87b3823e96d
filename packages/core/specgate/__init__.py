"""
SpecGate - pull request gates for OpenAPI specification repositories
"""

from specgate.models.finding import Finding, Location, Severity
from specgate.models.result import DualRunResult, RunResult
from specgate.reporters.json_reporter import JSONReporter
from specgate.reporters.markdown_reporter import MarkdownReporter
from specgate.reporters.report import ReportBuilder

__version__ = "0.1.0"

__all__ = [
    "Finding",
    "Location",
    "Severity",
    "RunResult",
    "DualRunResult",
    "ReportBuilder",
    "MarkdownReporter",
    "JSONReporter",
]

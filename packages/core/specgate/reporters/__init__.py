"""Report builders and renderers"""

from specgate.reporters.json_reporter import JSONReporter
from specgate.reporters.markdown_reporter import MarkdownReporter
from specgate.reporters.report import Report, ReportBody, ReportBuilder, diff_phases

__all__ = [
    "JSONReporter",
    "MarkdownReporter",
    "Report",
    "ReportBody",
    "ReportBuilder",
    "diff_phases",
]

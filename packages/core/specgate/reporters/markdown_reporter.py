"""Markdown output reporter"""

from pathlib import Path
from typing import List, Optional, Tuple, Union

from specgate.config import DocsConfig, PullRequestConfig
from specgate.models.finding import Finding, Location, Severity
from specgate.models.tool_output import TOOL_BREAKING_CHANGE
from specgate.reporters.report import Report

SEVERITY_ICONS = {
    Severity.ERROR: ":x:",
    Severity.WARNING: ":warning:",
    Severity.INFO: ":speech_balloon:",
    Severity.UNKNOWN: ":grey_question:",
}

CLEAN_ICON = ":white_check_mark:"
TABLE_HEADER = "| | Rule | Location | Message |"
TABLE_DIVIDER = "|-|------|----------|---------|"


def short_name(path: str) -> str:
    """Render ``dir/file`` with a zero-width break and the file name in bold."""
    head, _, tail = path.rpartition("/")
    if not head:
        return f"<strong>{tail}</strong>"
    return f"{head}/&#8203;<strong>{tail}</strong>"


def _escape_cell(text: str) -> str:
    return text.replace("|", "\\|").replace("\r", "").replace("\n", "<br>")


class MarkdownReporter:
    """Renders reports as the pull request comment Markdown"""

    @staticmethod
    def save(
        report: Report,
        output_path: Union[str, Path],
        pr_config: Optional[PullRequestConfig] = None,
    ) -> None:
        """
        Save a report to a Markdown file

        Args:
            report: Report to save
            output_path: Path to output Markdown file
            pr_config: Pull request metadata used for file links
        """
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        markdown = MarkdownReporter.generate(report, pr_config)
        output_file.write_text(markdown, encoding="utf-8")

    @staticmethod
    def summary_markdown(report: Report) -> str:
        """Summary block with one icon per count line"""
        error_icon = SEVERITY_ICONS[Severity.ERROR] if report.error_count else CLEAN_ICON
        warning_icon = SEVERITY_ICONS[Severity.WARNING] if report.warning_count else CLEAN_ICON

        lines = []
        for sentence in report.summary:
            if sentence.endswith("new error.") or sentence.endswith("new errors."):
                lines.append(f"- {error_icon} **{sentence[:-1]}**")
            elif sentence.endswith("new warning.") or sentence.endswith("new warnings."):
                lines.append(f"- {warning_icon} **{sentence[:-1]}**")
            elif sentence.endswith("introduces:"):
                if report.target_branch:
                    sentence = sentence.replace(
                        f"({report.target_branch})", f"(**{report.target_branch}**)", 1
                    )
                lines.append(sentence)
                lines.append("")
            else:
                lines.append(sentence)
                lines.append("")
        return "\n".join(lines)

    @staticmethod
    def _location_cell(locations: Tuple[Location, ...], pr_config: PullRequestConfig) -> str:
        links = []
        for location in locations:
            href = f"{pr_config.blob_href(location.path)}#L{location.line}"
            text = f"{short_name(location.path)}#L{location.line}"
            prefix = f"{location.tag}: " if len(locations) > 1 else ""
            links.append(f"{prefix}[{text}]({href})")
        return "<br>".join(links) if links else "-"

    @staticmethod
    def _row(finding: Finding, pr_config: PullRequestConfig) -> str:
        icon = SEVERITY_ICONS.get(finding.severity, "")
        rule = _escape_cell(finding.rule_id) or "-"
        if finding.doc_url:
            rule = f"[{rule}]({finding.doc_url})"
        location = MarkdownReporter._location_cell(finding.locations, pr_config)
        return f"| {icon} | {rule} | {location} | {_escape_cell(finding.message)} |"

    @staticmethod
    def generate(report: Report, pr_config: Optional[PullRequestConfig] = None) -> str:
        """
        Generate markdown content from a report

        Args:
            report: Report to render
            pr_config: Pull request metadata used for file links

        Returns:
            Markdown formatted string
        """
        pr_config = pr_config or PullRequestConfig()
        body = report.body
        lines: List[str] = []

        lines.append(f"# {report.title}")
        lines.append("")
        lines.append(MarkdownReporter.summary_markdown(report))
        lines.append("")

        if body.new_files:
            lines.append("### The following files look to be newly added in this PR:")
            for path in body.new_files:
                lines.append(f"- [{short_name(path)}]({pr_config.blob_href(path)})")
            lines.append("")

        lines.append("### OpenAPI diff results" if report.tool == TOOL_BREAKING_CHANGE else "### Results")
        lines.append("")
        if body.empty_message:
            lines.append(f"**{body.empty_message}**")
            lines.append("")
        for table in body.tables:
            lines.append(f"#### [{short_name(table.path)}]({pr_config.blob_href(table.path)})")
            lines.append("")
            lines.append(TABLE_HEADER)
            lines.append(TABLE_DIVIDER)
            for finding in table.findings:
                lines.append(MarkdownReporter._row(finding, pr_config))
            lines.append("")

        if body.failures:
            lines.append("### The following files could not be processed:")
            for failure in body.failures:
                lines.append(f"- {_escape_cell(failure.describe())}")
            lines.append("")

        issues_url = DocsConfig.ISSUES_URLS.get(report.tool)
        if issues_url:
            lines.append("---")
            lines.append("")
            lines.append(
                "Thanks for using breaking change tool to review. "
                f"If you encounter any issue(s), please open issue(s) at {issues_url}."
                if report.tool == TOOL_BREAKING_CHANGE
                else f"If you encounter any issue(s), please open issue(s) at {issues_url}."
            )
            lines.append("")

        return "\n".join(lines)

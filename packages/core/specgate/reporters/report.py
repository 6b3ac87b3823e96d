"""Format-independent report structure.

``ReportBuilder`` turns run results into a title, a short summary and a body
(new files, per-file finding tables, failures). It performs no I/O; the
Markdown and JSON reporters render the returned :class:`Report`.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from specgate.models.finding import Finding
from specgate.models.result import DualRunResult, FileFailure, RunResult
from specgate.triage.aggregator import summarize, summarize_findings
from specgate.triage.sorter import sort_findings, sorted_items, sorted_paths

NO_FINDINGS_MESSAGE = "There were no files containing new errors or warnings."


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


@dataclass(frozen=True)
class FileTable:
    """Findings of one file, already in report order"""

    path: str
    findings: Tuple[Finding, ...]


@dataclass(frozen=True)
class ReportBody:
    new_files: Tuple[str, ...] = ()
    tables: Tuple[FileTable, ...] = ()
    failures: Tuple[FileFailure, ...] = ()

    @property
    def has_findings(self) -> bool:
        return bool(self.tables)

    @property
    def empty_message(self) -> Optional[str]:
        """Sentence shown instead of the findings table when nothing was found."""
        return None if self.tables else NO_FINDINGS_MESSAGE


@dataclass(frozen=True)
class Report:
    """Title, summary and body of one run"""

    title: str
    summary: Tuple[str, ...]
    body: ReportBody
    tool: str
    error_count: int = 0
    warning_count: int = 0
    # None for comparison reports, which make no pass/fail decision.
    is_clean: Optional[bool] = None
    target_branch: Optional[str] = None

    @property
    def summary_text(self) -> str:
        return " ".join(self.summary)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "summary": list(self.summary),
            "tool": self.tool,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "is_clean": self.is_clean,
            "target_branch": self.target_branch,
            "new_files": list(self.body.new_files),
            "files": {
                table.path: [finding.to_dict() for finding in table.findings]
                for table in self.body.tables
            },
            "failures": [failure.to_dict() for failure in self.body.failures],
        }


def diff_phases(
    before: Sequence[Finding], after: Sequence[Finding]
) -> Tuple[List[Finding], List[Finding]]:
    """Split a file's before/after findings into (introduced, resolved).

    Findings are matched on severity, rule id and message, ignoring
    locations (line numbers shift with unrelated edits). Matching is
    multiset based: two identical findings after and one before leave one
    introduced.
    """
    remaining = Counter(finding.identity() for finding in before)
    introduced: List[Finding] = []
    for finding in after:
        key = finding.identity()
        if remaining[key] > 0:
            remaining[key] -= 1
        else:
            introduced.append(finding)

    still_present = Counter(finding.identity() for finding in after)
    resolved: List[Finding] = []
    for finding in before:
        key = finding.identity()
        if still_present[key] > 0:
            still_present[key] -= 1
        else:
            resolved.append(finding)
    return introduced, resolved


@dataclass
class ReportBuilder:
    """Build reports for one tool.

    Args:
        tool: Tool name the findings came from.
        subject: Noun used in the pass/fail title
            (``"No potential breaking changes"``).
        call_to_action: Sentence prefixed to the summary when errors exist.
    """

    tool: str
    subject: str = "potential breaking change"
    call_to_action: str = (
        "There are potential breaking changes in this PR. Please review before moving forward. Thanks!"
    )
    default_target: str = "the target branch"
    _failure_preview: int = field(default=5, repr=False)

    def _title(self, errors: int) -> str:
        count = "No" if errors == 0 else str(errors)
        return f"{count} {self.subject}{'' if errors == 1 else 's'}"

    def _summary(
        self,
        errors: int,
        warnings: int,
        target_branch: Optional[str],
        failures: Sequence[FileFailure],
    ) -> Tuple[str, ...]:
        target = f"the target branch ({target_branch})" if target_branch else self.default_target
        sentences: List[str] = []
        if errors > 0:
            sentences.append(self.call_to_action)
        sentences.append(f"Compared to {target}, this pull request introduces:")
        sentences.append(f"{_plural(errors, 'new error')}.")
        sentences.append(f"{_plural(warnings, 'new warning')}.")
        if failures:
            paths = sorted_paths({failure.path for failure in failures})
            preview = ", ".join(paths[: self._failure_preview])
            if len(paths) > self._failure_preview:
                preview += f" and {len(paths) - self._failure_preview} more"
            sentences.append(f"{_plural(len(paths), 'file')} could not be processed: {preview}.")
        return tuple(sentences)

    @staticmethod
    def _tables(items: Iterable[Tuple[str, Sequence[Finding]]]) -> Tuple[FileTable, ...]:
        return tuple(
            FileTable(path=path, findings=tuple(sort_findings(findings)))
            for path, findings in items
            if findings
        )

    @staticmethod
    def _failures(failures: Sequence[FileFailure]) -> Tuple[FileFailure, ...]:
        return tuple(sorted(failures, key=lambda f: (f.path, f.phase or "")))

    def build(self, result: RunResult) -> Report:
        """Build the pass/fail report of a single-state run."""
        summary = summarize(result.files)
        body = ReportBody(
            new_files=tuple(sorted_paths(result.new_files)),
            tables=self._tables(sorted_items(result.files)),
            failures=self._failures(result.failures),
        )
        return Report(
            title=self._title(summary.error_count),
            summary=self._summary(
                summary.error_count, summary.warning_count, result.target_branch, result.failures
            ),
            body=body,
            tool=self.tool,
            error_count=summary.error_count,
            warning_count=summary.warning_count,
            is_clean=summary.is_clean,
            target_branch=result.target_branch,
        )

    def build_dual(self, result: DualRunResult) -> Report:
        """Build the comparison report of a before/after run.

        Tables list the findings introduced by the pull request. No pass/fail
        decision is made (``is_clean`` stays None).
        """
        introduced_by_file = [
            (path, diff_phases(phases.before, phases.after)[0])
            for path, phases in sorted_items(result.files)
        ]
        errors = 0
        warnings = 0
        for _path, introduced in introduced_by_file:
            file_errors, file_warnings = summarize_findings(introduced)
            errors += file_errors
            warnings += file_warnings

        target = result.target_branch or "target branch"
        body = ReportBody(
            new_files=tuple(sorted_paths(result.new_files)),
            tables=self._tables(introduced_by_file),
            failures=self._failures(result.failures),
        )
        return Report(
            title=f"{_plural(errors, 'new error')} and {_plural(warnings, 'new warning')} vs. {target}",
            summary=self._summary(errors, warnings, result.target_branch, result.failures)[
                (1 if errors > 0 else 0):
            ],
            body=body,
            tool=self.tool,
            error_count=errors,
            warning_count=warnings,
            is_clean=None,
            target_branch=result.target_branch,
        )

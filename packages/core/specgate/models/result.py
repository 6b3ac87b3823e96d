"""Run result data models"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple

from specgate.models.finding import Finding

FileReport = Mapping[str, Tuple[Finding, ...]]


@dataclass(frozen=True)
class RunSummary:
    """Aggregated counts for one run. Always derived, never mutated."""

    error_count: int = 0
    warning_count: int = 0

    @property
    def is_clean(self) -> bool:
        return self.error_count == 0

    def to_dict(self) -> dict:
        return {
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "is_clean": self.is_clean,
        }


@dataclass(frozen=True)
class FileFailure:
    """A per-file tool or parse failure that did not abort the run"""

    path: str
    kind: str
    message: str
    phase: Optional[str] = None

    def describe(self) -> str:
        phase = f" [{self.phase}]" if self.phase else ""
        return f"{self.path}{phase}: {self.kind}: {self.message}"

    def to_dict(self) -> dict:
        return {"path": self.path, "kind": self.kind, "message": self.message, "phase": self.phase}


@dataclass
class RunResult:
    """Results of one single-state pipeline run"""

    files: Dict[str, Tuple[Finding, ...]] = field(default_factory=dict)
    new_files: FrozenSet[str] = frozenset()
    failures: List[FileFailure] = field(default_factory=list)
    target_branch: Optional[str] = None

    @property
    def summary(self) -> RunSummary:
        from specgate.triage.aggregator import summarize

        return summarize(self.files)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "target_branch": self.target_branch,
            "files": {
                path: [finding.to_dict() for finding in findings]
                for path, findings in sorted(self.files.items())
            },
            "new_files": sorted(self.new_files),
            "failures": [failure.to_dict() for failure in self.failures],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class PhaseFindings:
    """Findings for one file in the reference ("before") and current ("after") states"""

    before: Tuple[Finding, ...] = ()
    after: Tuple[Finding, ...] = ()

    def to_dict(self) -> dict:
        return {
            "before": [finding.to_dict() for finding in self.before],
            "after": [finding.to_dict() for finding in self.after],
        }


@dataclass
class DualRunResult:
    """Results of a before/after comparison run. Carries no pass/fail decision."""

    files: Dict[str, PhaseFindings] = field(default_factory=dict)
    new_files: FrozenSet[str] = frozenset()
    failures: List[FileFailure] = field(default_factory=list)
    target_branch: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "target_branch": self.target_branch,
            "files": {path: phases.to_dict() for path, phases in sorted(self.files.items())},
            "new_files": sorted(self.new_files),
            "failures": [failure.to_dict() for failure in self.failures],
        }

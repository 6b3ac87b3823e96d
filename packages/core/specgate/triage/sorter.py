"""Deterministic ordering of findings and files.

Findings within a file are ordered by severity rank ascending
(``Info < Unknown < Warning < Error``) and then by rule id. The most severe
findings therefore come LAST in every per-file table. This mirrors the
long-standing report layout that downstream readers already rely on, even
though it buries errors at the bottom of a top-to-bottom read.

``sorted`` is stable, so findings with equal severity and rule id keep their
stream order and re-sorting a sorted sequence is a no-op.
"""

from __future__ import annotations

from typing import Iterable, List, Mapping, Sequence, Tuple, TypeVar

from specgate.models.finding import Finding

V = TypeVar("V")


def finding_sort_key(finding: Finding) -> Tuple[int, str]:
    return (finding.rank, finding.rule_id)


def sort_findings(findings: Iterable[Finding]) -> List[Finding]:
    """Return findings in report order (least severe first)."""
    return sorted(findings, key=finding_sort_key)


def sorted_paths(paths: Iterable[str]) -> List[str]:
    """Return file paths in lexicographic order."""
    return sorted(paths)


def sorted_items(report: Mapping[str, V]) -> List[Tuple[str, V]]:
    """Return ``(path, value)`` pairs of a per-file mapping in path order."""
    return [(path, report[path]) for path in sorted_paths(report)]


def is_sorted(findings: Sequence[Finding]) -> bool:
    keys = [finding_sort_key(finding) for finding in findings]
    return all(left <= right for left, right in zip(keys, keys[1:]))

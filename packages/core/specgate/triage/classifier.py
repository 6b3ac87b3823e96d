"""Normalize raw tool records into findings."""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Sequence, Tuple

from specgate.config import DocsConfig
from specgate.models.finding import Finding, Location, Severity
from specgate.models.tool_output import ToolRecord, adapt_record

_FILE_URI_PREFIX = re.compile(r"^file:/{2,3}")
_SPEC_ROOT_MARKER = "specification/"


def normalize_spec_path(path: str) -> str:
    """Return a repository-relative, forward-slash path.

    ``file:///C:\\repo\\specification\\a.json`` -> ``specification/a.json``.
    Blob URLs are cut down the same way. Other http(s) URLs are returned
    unchanged.
    """
    if path.startswith(("http://", "https://")):
        marker = path.find(f"/{_SPEC_ROOT_MARKER}")
        return path[marker + 1 :] if marker >= 0 else path
    normalized = _FILE_URI_PREFIX.sub("", path).replace("\\", "/")
    marker = normalized.find(_SPEC_ROOT_MARKER)
    if marker > 0:
        normalized = normalized[marker:]
    return normalized


def resolve_severity(record: ToolRecord) -> Severity:
    """Map ``type``/``level`` to a severity.

    ``type`` wins when it names a severity. The model validator sets
    ``type: "Result"`` and carries the real severity in ``level``, so ``level``
    is consulted next. Anything else is ``Severity.UNKNOWN``.
    """
    for candidate in (record.type, record.level):
        severity = Severity.parse(candidate)
        if severity is not None:
            return severity
    return Severity.UNKNOWN


def resolve_rule_id(record: ToolRecord) -> str:
    if record.id and record.code:
        return f"{record.id} - {record.code}"
    return record.id or record.code or ""


def resolve_locations(record: ToolRecord) -> Tuple[Location, ...]:
    locations: List[Location] = []
    for tag, path, line in record.candidate_locations():
        if not path or line is None:
            continue
        locations.append(Location(tag=tag, path=normalize_spec_path(path), line=line))
    return tuple(locations)


def classify(raw: Any, tool: str) -> Finding:
    """Build a :class:`Finding` from one raw record.

    Args:
        raw: Record as parsed from the tool output. Not mutated.
        tool: Tool name selecting the record adapter and doc links.

    Returns:
        Immutable finding.
    """
    record = adapt_record(tool, raw)
    return Finding(
        severity=resolve_severity(record),
        rule_id=resolve_rule_id(record),
        message=record.message,
        locations=resolve_locations(record),
        tool=tool,
        doc_url=DocsConfig.rule_doc_url(tool, record.id, record.code),
    )


def classify_all(records: Iterable[Any], tool: str) -> List[Finding]:
    """Classify every record of one file, preserving stream order."""
    return [classify(raw, tool) for raw in records]


def dedupe_findings(findings: Sequence[Finding]) -> List[Finding]:
    """Drop exact duplicates within one file, keeping the first occurrence."""
    seen: set[Finding] = set()
    unique: List[Finding] = []
    for finding in findings:
        if finding in seen:
            continue
        seen.add(finding)
        unique.append(finding)
    return unique

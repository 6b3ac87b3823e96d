"""Per-file pipeline: tool output -> repaired records -> sorted findings."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from specgate.errors import MalformedOutput, ToolInvocationFailed
from specgate.models.finding import Finding
from specgate.models.result import FileFailure, RunResult
from specgate.parsing.repair import repair_stream
from specgate.triage.classifier import classify_all, dedupe_findings
from specgate.triage.sorter import sort_findings

logger = logging.getLogger(__name__)

# Capability: file path -> raw tool output. Raises ToolInvocationFailed.
RunTool = Callable[[str], str]


class MalformedPolicy(str, Enum):
    """What to do when a file's tool output cannot be repaired"""
    FATAL = "fatal"  # Abort the whole run
    SKIP = "skip"  # Record a failure for that file and continue


@dataclass
class FileBatch:
    """Join-point accumulator for one batch of per-file pipelines"""

    files: Dict[str, Tuple[Finding, ...]] = field(default_factory=dict)
    failures: List[FileFailure] = field(default_factory=list)


def unique_paths(paths: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    out: List[str] = []
    for path in paths:
        if path in seen:
            continue
        seen.add(path)
        out.append(path)
    return out


def process_output(raw: str, tool: str, path: str) -> Tuple[Finding, ...]:
    """Repair, classify, dedupe and sort one file's tool output."""
    records = repair_stream(raw, path=path)
    findings = dedupe_findings(classify_all(records, tool))
    return tuple(sort_findings(findings))


def run_file(path: str, run_tool: RunTool, tool: str) -> Tuple[Finding, ...]:
    logger.debug("Running %s on %s", tool, path)
    raw = run_tool(path)
    return process_output(raw, tool, path)


def run_files(
    paths: Sequence[str],
    run_tool: RunTool,
    tool: str,
    *,
    malformed_policy: MalformedPolicy = MalformedPolicy.FATAL,
    max_workers: Optional[int] = None,
    phase: Optional[str] = None,
) -> FileBatch:
    """Run the per-file pipeline for ``paths`` in parallel and join the results.

    Tool failures are isolated to their file. Malformed output is isolated
    or fatal depending on ``malformed_policy``; when fatal, the error of the
    first failing file in input order is raised.
    """
    batch = FileBatch()
    if not paths:
        return batch

    workers = max(1, min(max_workers or len(paths), len(paths)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [(path, executor.submit(run_file, path, run_tool, tool)) for path in paths]

        for path, future in futures:
            try:
                batch.files[path] = future.result()
            except ToolInvocationFailed as exc:
                logger.warning("Tool failed for %s: %s", path, exc)
                batch.failures.append(
                    FileFailure(path=path, kind="ToolInvocationFailed", message=str(exc), phase=phase)
                )
            except MalformedOutput as exc:
                if malformed_policy is MalformedPolicy.FATAL:
                    raise
                logger.warning("Skipping unparseable output for %s: %s", path, exc)
                batch.failures.append(
                    FileFailure(path=path, kind="MalformedOutput", message=exc.reason, phase=phase)
                )

    return batch


def run_pipeline(
    paths: Iterable[str],
    run_tool: RunTool,
    tool: str,
    *,
    new_files: Iterable[str] = (),
    malformed_policy: MalformedPolicy = MalformedPolicy.FATAL,
    max_workers: Optional[int] = None,
    target_branch: Optional[str] = None,
) -> RunResult:
    """Process every changed file that also exists on the target branch.

    Args:
        paths: Changed file paths.
        run_tool: Capability returning the raw tool output for a path.
        tool: Tool name (selects record adapter and doc links).
        new_files: Paths absent from the target branch; never processed.
        malformed_policy: Scope of a MalformedOutput failure.
        max_workers: Upper bound on parallel per-file pipelines.
        target_branch: Recorded on the result for reporting.

    Returns:
        A fresh RunResult owned by this call.
    """
    new_file_set = frozenset(new_files)
    targets = [path for path in unique_paths(paths) if path not in new_file_set]
    for path in sorted(new_file_set):
        logger.info("File %s looks to be newly added; skipping", path)

    batch = run_files(
        targets,
        run_tool,
        tool,
        malformed_policy=malformed_policy,
        max_workers=max_workers,
    )
    return RunResult(
        files=batch.files,
        new_files=new_file_set,
        failures=batch.failures,
        target_branch=target_branch,
    )

"""Before/after comparison runs against the target branch."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Callable, ContextManager, Dict, Iterable, Optional

from specgate.errors import ReferenceStateUnavailable
from specgate.models.result import DualRunResult, PhaseFindings
from specgate.scanner.pipeline import MalformedPolicy, RunTool, unique_paths, run_files

logger = logging.getLogger(__name__)

PHASE_BEFORE = "before"
PHASE_AFTER = "after"

# Capability: returns a context manager that checks out the reference state
# on enter and restores the working tree on exit.
ReferenceState = Callable[[], ContextManager[object]]


def run_dual(
    paths: Iterable[str],
    run_tool: RunTool,
    tool: str,
    reference_state: ReferenceState,
    *,
    new_files: Iterable[str] = (),
    malformed_policy: MalformedPolicy = MalformedPolicy.FATAL,
    max_workers: Optional[int] = None,
    target_branch: Optional[str] = None,
) -> DualRunResult:
    """Run ``run_tool`` on every file in the current and the reference state.

    The "after" phase runs first against the working tree. The reference
    state is then entered exactly once and every "before" run happens inside
    it, so all of them observe the same snapshot.

    Files that failed in either phase are left out of ``files`` and reported
    in ``failures``; a half-populated entry would read as "no prior issues".

    Raises:
        ReferenceStateUnavailable: If the reference state cannot be entered.
            Aborts the whole comparison.
    """
    new_file_set = frozenset(new_files)
    targets = [path for path in unique_paths(paths) if path not in new_file_set]

    after = run_files(
        targets,
        run_tool,
        tool,
        malformed_policy=malformed_policy,
        max_workers=max_workers,
        phase=PHASE_AFTER,
    )

    before_files: Dict[str, tuple] = {}
    before_failures = []
    if targets:
        ref = target_branch or "<reference>"
        with ExitStack() as stack:
            try:
                stack.enter_context(reference_state())
            except ReferenceStateUnavailable:
                raise
            except (OSError, RuntimeError) as exc:
                raise ReferenceStateUnavailable(ref, str(exc)) from exc

            logger.debug("Reference state %s entered; running %d file(s)", ref, len(targets))
            before = run_files(
                targets,
                run_tool,
                tool,
                malformed_policy=malformed_policy,
                max_workers=max_workers,
                phase=PHASE_BEFORE,
            )
        before_files = before.files
        before_failures = before.failures

    failures = after.failures + before_failures
    failed_paths = {failure.path for failure in failures}
    files = {
        path: PhaseFindings(before=before_files[path], after=after.files[path])
        for path in targets
        if path not in failed_paths
    }

    return DualRunResult(
        files=files,
        new_files=new_file_set,
        failures=failures,
        target_branch=target_branch,
    )

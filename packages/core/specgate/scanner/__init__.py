"""Tool orchestration: per-file pipelines, dual runs, subprocess and git helpers."""

from specgate.scanner.dual_run import PHASE_AFTER, PHASE_BEFORE, run_dual
from specgate.scanner.pipeline import MalformedPolicy, process_output, run_files, run_pipeline

__all__ = [
    "PHASE_AFTER",
    "PHASE_BEFORE",
    "MalformedPolicy",
    "process_output",
    "run_dual",
    "run_files",
    "run_pipeline",
]

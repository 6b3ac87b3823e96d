"""External tool invocation.

Each runner turns a file path into the raw text the tool printed. The text is
returned even when the tool exits non-zero, because linters report findings
through their exit code. Only a tool that could not start, timed out, was
cancelled, or exited without printing anything raises ToolInvocationFailed.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from specgate.errors import ToolInvocationFailed
from specgate.scanner.git import GitError, show_file_at_ref

logger = logging.getLogger(__name__)

# AutoRest prints this on stderr when a plugin crashed rather than reporting.
CANCELLED_MARKER = "Process() cancelled due to exception"

_OUTPUT_LIMIT_CHARS = 2_000


def _truncate(text: str, *, limit: int = _OUTPUT_LIMIT_CHARS) -> str:
    if len(text) <= limit:
        return text
    omitted = len(text) - limit
    return text[:limit] + f"\n...<truncated {omitted} chars>"


def build_argv(template: str, **fields: str) -> List[str]:
    """Fill a command template and split it into argv.

    Substituted values are shell-quoted first so paths containing spaces stay
    a single argument.

    Raises:
        ValueError: If the template references an unknown field or does not
            split into a non-empty argv.
    """
    quoted = {key: shlex.quote(str(value)) for key, value in fields.items()}
    try:
        command = template.format(**quoted)
    except (KeyError, IndexError) as exc:
        raise ValueError(f"Command template {template!r} references unknown field {exc}") from exc
    argv = shlex.split(command)
    if not argv:
        raise ValueError(f"Command template {template!r} is empty")
    return argv


def run_command(argv: Sequence[str], *, cwd: Path, timeout_seconds: float) -> str:
    """Run ``argv`` without a shell and return stdout followed by stderr."""
    command = shlex.join(argv)
    logger.debug("Executing: %s", command)
    try:
        completed = subprocess.run(
            list(argv),
            cwd=cwd,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except FileNotFoundError as exc:
        raise ToolInvocationFailed(command, f"executable not found: {exc.filename or argv[0]}") from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolInvocationFailed(command, f"timed out after {timeout_seconds:.0f}s") from exc
    except OSError as exc:
        raise ToolInvocationFailed(command, f"could not start: {exc.strerror or exc}") from exc

    stdout = completed.stdout or ""
    stderr = completed.stderr or ""
    if completed.returncode != 0 and CANCELLED_MARKER in stderr:
        raise ToolInvocationFailed(
            command,
            "cancelled due to exception",
            exit_code=completed.returncode,
            stderr=_truncate(stderr),
        )
    output = stdout + stderr
    if completed.returncode != 0 and not output.strip():
        raise ToolInvocationFailed(command, "exited without output", exit_code=completed.returncode)
    return output


@dataclass
class ToolRunner:
    """``run_tool`` capability for tools that take a single file path"""

    tool: str
    template: str
    cwd: Path
    timeout_seconds: float

    def argv_for(self, path: str) -> List[str]:
        return build_argv(self.template, path=path)

    def __call__(self, path: str) -> str:
        return run_command(self.argv_for(path), cwd=self.cwd, timeout_seconds=self.timeout_seconds)


@dataclass
class BreakingChangeRunner(ToolRunner):
    """Runs the diff tool on the reference copy (``{old}``) and the working copy (``{new}``).

    The reference copy is read from ``base_commit`` with ``git show`` into
    ``scratch_dir``, so no checkout is needed and every file is compared
    against the same commit.
    """

    base_commit: str = ""
    scratch_dir: Optional[Path] = None

    def materialize_reference(self, path: str) -> Path:
        source = f"git show {self.base_commit}:{path}"
        if self.scratch_dir is None:
            raise ToolInvocationFailed(source, "no scratch directory")
        try:
            content = show_file_at_ref(self.cwd, self.base_commit, path)
        except (GitError, ValueError) as exc:
            raise ToolInvocationFailed(source, str(exc)) from exc
        target = self.scratch_dir / path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ToolInvocationFailed(source, f"could not write reference copy: {exc}") from exc
        return target

    def __call__(self, path: str) -> str:
        old = self.materialize_reference(path)
        argv = build_argv(self.template, old=str(old), new=path, path=path)
        return run_command(argv, cwd=self.cwd, timeout_seconds=self.timeout_seconds)

"""Git helpers: changed files, new-file detection and reference checkouts."""

from __future__ import annotations

import fnmatch
import logging
import re
import subprocess
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Sequence

from specgate.errors import ReferenceStateUnavailable

logger = logging.getLogger(__name__)

# Allows alphanumeric, dots, slashes, hyphens, underscores, tildes and carets.
# Blocks shell metacharacters and option-style refs.
GIT_REF_PATTERN = re.compile(r"^[\w./@^~-]+$")


class GitError(RuntimeError):
    pass


def validate_git_ref(ref: str) -> None:
    """Validate a git ref to prevent option or command injection.

    Raises:
        ValueError: If the ref is empty, option-like or has invalid characters
    """
    if not ref:
        raise ValueError("Git ref cannot be empty")
    if ref.startswith("-"):
        raise ValueError(f"Invalid git ref: {ref!r} (option-style refs are not allowed)")
    if ".." in ref:
        raise ValueError(f"Invalid git ref: {ref!r} (ranges are not allowed here)")
    if not GIT_REF_PATTERN.match(ref):
        raise ValueError(f"Invalid git ref: {ref!r} (contains invalid characters)")


def run_git(
    repo: Path,
    args: Sequence[str],
    *,
    refs: Sequence[str] = (),
    timeout_seconds: float = 60.0,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run a git subcommand in ``repo``.

    ``refs`` names the user-supplied refs embedded in ``args``; each is
    validated before git is started.

    Raises:
        ValueError: If one of ``refs`` is not a valid ref.
        GitError: If git cannot run, times out, or (with ``check``) exits non-zero.
    """
    for ref in refs:
        validate_git_ref(ref)
    command = f"git {' '.join(args)}"
    try:
        completed = subprocess.run(
            ["git", *args],
            cwd=repo,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except FileNotFoundError as e:
        raise GitError("git CLI not found (install git and ensure it's on PATH).") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"{command} timed out after {timeout_seconds:.0f}s.") from e
    except OSError as e:
        raise GitError(f"{command} could not start: {e}") from e

    if check and completed.returncode != 0:
        details = (completed.stderr or "").strip() or (completed.stdout or "").strip() or "<no output>"
        raise GitError(f"{command} failed (exit={completed.returncode}): {details}")
    return completed


def matches_patterns(
    path: str, patterns: Sequence[str], excluded_segments: Sequence[str] = ()
) -> bool:
    """Return True if ``path`` matches any glob and contains no excluded segment."""
    if any(segment in f"/{path}" for segment in excluded_segments):
        return False
    return any(fnmatch.fnmatch(path, pattern) for pattern in patterns)


def get_changed_files(
    repo: Path,
    base: str,
    patterns: Sequence[str],
    excluded_segments: Sequence[str] = (),
) -> List[str]:
    """List files changed between ``base`` and HEAD, filtered by glob patterns.

    Deleted files are left out: there is nothing to lint in the current state.
    """
    completed = run_git(
        repo, ["diff", "--name-only", "--diff-filter=d", f"{base}...HEAD"], refs=(base,)
    )
    paths = [line.strip() for line in completed.stdout.splitlines() if line.strip()]
    return [path for path in paths if matches_patterns(path, patterns, excluded_segments)]


def resolve_ref(repo: Path, ref: str) -> str:
    """Resolve ``ref`` to a commit hash so every later read sees one snapshot."""
    completed = run_git(repo, ["rev-parse", "--verify", f"{ref}^{{commit}}"], refs=(ref,))
    commit = completed.stdout.strip()
    if not commit:
        raise GitError(f"git rev-parse {ref!r} returned empty output.")
    return commit


def file_exists_at_ref(repo: Path, ref: str, path: str) -> bool:
    completed = run_git(repo, ["cat-file", "-e", f"{ref}:{path}"], refs=(ref,), check=False)
    return completed.returncode == 0


def find_new_files(repo: Path, ref: str, paths: Sequence[str]) -> List[str]:
    """Return the paths that do not exist on ``ref`` (newly added in the PR)."""
    return [path for path in paths if not file_exists_at_ref(repo, ref, path)]


def show_file_at_ref(repo: Path, ref: str, path: str) -> str:
    """Return the content of ``path`` as of ``ref``."""
    return run_git(repo, ["show", f"{ref}:{path}"], refs=(ref,)).stdout


def get_current_ref(repo: Path) -> str:
    """Return the checked-out branch, or the commit hash when HEAD is detached."""
    branch = run_git(repo, ["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()
    if branch and branch != "HEAD":
        return branch
    return run_git(repo, ["rev-parse", "HEAD"]).stdout.strip()


def _restore(repo: Path, original: str) -> None:
    run_git(repo, ["checkout", "--quiet", original])
    logger.debug("Restored %s", original)


@contextmanager
def checkout_reference(repo: Path, ref: str) -> Iterator[str]:
    """Check out ``ref`` for the duration of the block, then restore HEAD.

    If the block raises and HEAD cannot be restored, the restore failure is
    logged and the block's exception propagates.

    Raises:
        ReferenceStateUnavailable: If ``ref`` cannot be checked out.
        GitError: If HEAD cannot be restored after a successful block.
    """
    try:
        validate_git_ref(ref)
        original = get_current_ref(repo)
        run_git(repo, ["checkout", "--quiet", ref])
    except (ValueError, GitError) as exc:
        raise ReferenceStateUnavailable(ref, str(exc)) from exc

    logger.debug("Checked out %s (was %s)", ref, original)
    try:
        yield ref
    except BaseException:
        try:
            _restore(repo, original)
        except GitError as restore_error:
            logger.error("Could not restore %s after %s: %s", original, ref, restore_error)
        raise
    _restore(repo, original)

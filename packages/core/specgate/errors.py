"""Error taxonomy for SpecGate runs."""

from __future__ import annotations

from typing import Optional


class SpecGateError(RuntimeError):
    """Base class for failures surfaced by a SpecGate run."""


class MalformedOutput(SpecGateError):
    """Tool output could not be repaired into a JSON array."""

    def __init__(self, reason: str, *, path: Optional[str] = None, excerpt: str = "") -> None:
        self.reason = reason
        self.path = path
        self.excerpt = excerpt
        super().__init__(f"{reason} (file: {path})" if path else reason)


class ReferenceStateUnavailable(SpecGateError):
    """The reference (target branch) state could not be materialized."""

    def __init__(self, ref: str, reason: str) -> None:
        self.ref = ref
        self.reason = reason
        super().__init__(f"Reference state {ref!r} is unavailable: {reason}")


class ToolInvocationFailed(SpecGateError):
    """An external tool failed to start or exited abnormally."""

    def __init__(
        self,
        command: str,
        reason: str,
        *,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ) -> None:
        self.command = command
        self.reason = reason
        self.exit_code = exit_code
        self.stderr = stderr
        details = f"{command} failed: {reason}"
        if exit_code is not None:
            details += f" (exit={exit_code})"
        super().__init__(details)

"""Shared test fixtures."""

import pytest

from specgate.models.finding import Finding, Location, Severity


@pytest.fixture
def make_finding():
    """Factory for findings with sensible defaults."""

    def _make(
        severity=Severity.WARNING,
        rule_id="R1000 - SampleRule",
        message="Sample message",
        path="specification/a/a.json",
        line=1,
        tool="lint",
    ):
        locations = (Location(tag="Source", path=path, line=line),) if path else ()
        return Finding(
            severity=severity,
            rule_id=rule_id,
            message=message,
            locations=locations,
            tool=tool,
        )

    return _make


@pytest.fixture
def make_script(tmp_path):
    """Factory for small shell scripts standing in for external tools."""

    def _make(body, name="tool.sh", mode=0o755):
        script = tmp_path / name
        script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        script.chmod(mode)
        return script

    return _make

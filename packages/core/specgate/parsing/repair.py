"""Repair concatenated JSON emitted by specification tools.

The diff tool and the AutoRest linter print one JSON object per finding,
separated by whitespace and interleaved with progress lines, instead of a JSON
array. ``repair_stream`` rewrites that text into an array literal and parses
it. The rewrite is regex based and best effort: anything it cannot fix
surfaces as :class:`~specgate.errors.MalformedOutput`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from specgate.errors import MalformedOutput

logger = logging.getLogger(__name__)

# AutoRest progress lines, e.g. "Processing batch task - {"input-file":"a.json"} .\n"
NOISE_LINE_PATTERN = re.compile(r"Processing batch task - \{.*\} \.\n")
OBJECT_BOUNDARY_PATTERN = re.compile(r"\}\s+\{")

_EXCERPT_LIMIT = 200


def _excerpt(text: str) -> str:
    if len(text) <= _EXCERPT_LIMIT:
        return text
    return text[:_EXCERPT_LIMIT] + f"...<truncated {len(text) - _EXCERPT_LIMIT} chars>"


def _parse_existing_array(text: str) -> Optional[List[Any]]:
    """Return the parsed array when ``text`` is already a JSON array."""
    if not text.startswith("["):
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, list) else None


def repair_stream(raw: Optional[str], *, path: Optional[str] = None) -> List[Any]:
    """Turn a raw tool output chunk into an ordered list of records.

    Args:
        raw: stdout/stderr text of one tool invocation.
        path: File the chunk was produced for, used in error messages.

    Returns:
        Records in stream order. Empty when the chunk holds no ``{``.

    Raises:
        MalformedOutput: If the repaired text is still not valid JSON.
    """
    if not raw or "{" not in raw:
        return []

    existing = _parse_existing_array(raw.strip())
    if existing is not None:
        return existing

    text = NOISE_LINE_PATTERN.sub("", raw)
    start = text.find("{")
    if start == -1:
        return []
    text = text[start:].strip()
    repaired = "[" + OBJECT_BOUNDARY_PATTERN.sub("},{", text) + "]"

    try:
        records = json.loads(repaired)
    except json.JSONDecodeError as exc:
        logger.debug("Unrepairable tool output for %s: %s", path or "<stream>", exc)
        raise MalformedOutput(
            f"Tool output is not valid JSON after repair: {exc.msg} "
            f"(line {exc.lineno}, column {exc.colno})",
            path=path,
            excerpt=_excerpt(repaired),
        ) from exc

    return records

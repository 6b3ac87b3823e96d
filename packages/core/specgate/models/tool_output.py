"""Pydantic adapters that normalise raw tool output records.

The diff tool, the AutoRest linter and the model validator disagree on field
names (``type`` vs ``level``, ``Position`` vs ``position``, nested ``details``
vs flat ``paths``). Each adapter folds those variants into a common shape
before classification so callers never touch raw dict keys directly.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

logger = logging.getLogger(__name__)

TOOL_BREAKING_CHANGE = "breaking-change"
TOOL_LINT = "lint"
TOOL_MODEL_VALIDATION = "model-validation"

# "file:///specification/a.json:12:5" or "specification/a.json:12"
_LOCATION_PATTERN = re.compile(r"^(?P<path>.+?):(?P<line>\d+)(?::(?P<column>\d+))?$")
# "https://github.com/org/repo/blob/sha/specification/a.json#L12"
_ANCHOR_PATTERN = re.compile(r"^(?P<path>.+?)#L(?P<line>\d+)$")

CandidateLocation = Tuple[str, Optional[str], Optional[int]]


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _coerce_line(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        line = int(value)
    except (TypeError, ValueError):
        return None
    return line if line > 0 else None


def split_location(value: Any) -> Tuple[Optional[str], Optional[int]]:
    """Split ``path:line[:column]`` or ``path#Lline`` into its parts."""
    text = _coerce_text(value)
    if not text:
        return None, None
    for pattern in (_ANCHOR_PATTERN, _LOCATION_PATTERN):
        match = pattern.match(text)
        if match:
            return match.group("path"), _coerce_line(match.group("line"))
    return text, None


class Position(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line: Optional[int] = None
    column: Optional[int] = None

    @field_validator("line", "column", mode="before")
    @classmethod
    def coerce_numbers(cls, v):
        return _coerce_line(v)


class ToolRecord(BaseModel):
    """Common shape shared by every tool adapter"""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Optional[str] = Field(None, description="Severity (diff tool, linter) or record kind")
    level: Optional[str] = Field(None, description="Severity when 'type' is a record kind")
    id: Optional[str] = Field(None, description="Rule identifier")
    code: Optional[str] = Field(None, description="Rule name / code")
    message: str = Field("", description="Human-readable message")

    @field_validator("type", "level", "id", "code", mode="before")
    @classmethod
    def coerce_scalars(cls, v):
        return _coerce_text(v)

    @field_validator("message", mode="before")
    @classmethod
    def coerce_message(cls, v):
        if isinstance(v, (dict, list)):
            return ""
        return "" if v is None else str(v)

    def candidate_locations(self) -> List[CandidateLocation]:
        """Return ``(tag, path, line)`` triples; incomplete ones are dropped later."""
        return []


class DiffSide(BaseModel):
    model_config = ConfigDict(extra="ignore")

    location: Optional[str] = None
    ref: Optional[str] = None

    @field_validator("location", "ref", mode="before")
    @classmethod
    def coerce_text(cls, v):
        return _coerce_text(v)


class DiffRecord(ToolRecord):
    """One record of the API-diff (breaking change) tool"""

    new: Optional[DiffSide] = None
    old: Optional[DiffSide] = None

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            for side in ("new", "old"):
                value = data.get(side)
                if isinstance(value, str):
                    data[side] = {"location": value}
                elif value is not None and not isinstance(value, dict):
                    data[side] = None
        return data

    def candidate_locations(self) -> List[CandidateLocation]:
        locations: List[CandidateLocation] = []
        for tag, side in (("New", self.new), ("Old", self.old)):
            if side is None:
                continue
            path, line = split_location(side.location)
            locations.append((tag, path, line))
        return locations


class LinterSource(BaseModel):
    model_config = ConfigDict(extra="ignore")

    document: Optional[str] = None
    position: Optional[Position] = None

    @model_validator(mode="before")
    @classmethod
    def alias_position(cls, data: Any) -> Any:
        if isinstance(data, dict) and "position" not in data and "Position" in data:
            data = {**data, "position": data["Position"]}
        return data


class LinterRecord(ToolRecord):
    """One record of the AutoRest linter (``--message-format=json``)"""

    source: List[LinterSource] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        # Older AutoRest builds emit 'sources' as "document:line:column" strings.
        if "source" not in data and isinstance(data.get("sources"), list):
            converted = []
            for item in data["sources"]:
                path, line = split_location(item)
                converted.append({"document": path, "position": {"line": line}})
            data["source"] = converted
        if isinstance(data.get("source"), dict):
            data["source"] = [data["source"]]
        if not isinstance(data.get("source", []), list):
            data["source"] = []
        data["source"] = [item for item in data.get("source", []) if isinstance(item, dict)]
        return data

    def candidate_locations(self) -> List[CandidateLocation]:
        if not self.source:
            return []
        first = self.source[0]
        line = first.position.line if first.position else None
        return [("Source", first.document, line)]


class ValidationDetails(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: Optional[str] = None
    url: Optional[str] = None
    position: Optional[Position] = None
    json_url: Optional[str] = Field(None, alias="jsonUrl")
    json_position: Optional[Position] = Field(None, alias="jsonPosition")


class ModelValidationRecord(ToolRecord):
    """One record of the model/example validator"""

    details: Optional[ValidationDetails] = None
    paths: List[Dict[str, Any]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def normalize_input(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        details = data.get("details")
        if details is not None and not isinstance(details, dict):
            data["details"] = details = None
        if not data.get("message") and isinstance(details, dict) and details.get("message"):
            data["message"] = details["message"]
        paths = data.get("paths")
        data["paths"] = [p for p in paths if isinstance(p, dict)] if isinstance(paths, list) else []
        return data

    def candidate_locations(self) -> List[CandidateLocation]:
        locations: List[CandidateLocation] = []
        if self.details is not None:
            locations.append(
                (
                    "Url",
                    self.details.url,
                    self.details.position.line if self.details.position else None,
                )
            )
            locations.append(
                (
                    "JsonUrl",
                    self.details.json_url,
                    self.details.json_position.line if self.details.json_position else None,
                )
            )
            return locations

        # Records already in pipeline format carry "path#L12" strings.
        for entry in self.paths:
            path, line = split_location(entry.get("path"))
            locations.append((str(entry.get("tag") or "Url"), path, line))
        return locations


TOOL_ADAPTERS: Dict[str, Type[ToolRecord]] = {
    TOOL_BREAKING_CHANGE: DiffRecord,
    TOOL_LINT: LinterRecord,
    TOOL_MODEL_VALIDATION: ModelValidationRecord,
}


def adapt_record(tool: str, raw: Any) -> ToolRecord:
    """Validate ``raw`` with the adapter registered for ``tool``.

    Unknown tools fall back to the bare :class:`ToolRecord` shape. Non-object
    records become an empty record so a stray scalar in the stream never
    aborts classification.
    """
    adapter = TOOL_ADAPTERS.get(tool, ToolRecord)
    if not isinstance(raw, dict):
        return adapter(message=_coerce_text(raw) or "")
    try:
        return adapter.model_validate(raw)
    except ValidationError as exc:
        logger.debug("Falling back to bare record for %s output: %s", tool, exc)
        return ToolRecord.model_validate(raw)

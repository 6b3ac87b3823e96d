"""Finding data model"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class Severity(str, Enum):
    """Finding severity levels.

    ``UNKNOWN`` is the neutral default for records whose ``type``/``level``
    field is missing or not recognised. It ranks between ``INFO`` and
    ``WARNING`` so such findings are displayed after informational ones but
    never counted as warnings or errors.
    """
    INFO = "Info"
    UNKNOWN = "Unknown"
    WARNING = "Warning"
    ERROR = "Error"

    @classmethod
    def _missing_(cls, value):
        """Handle case-insensitive matching and aliases"""
        if isinstance(value, str):
            value = value.strip().lower()
            if value in ("information", "informational", "verbose", "hint"):
                return cls.INFO
            if value == "fatal":
                return cls.ERROR
            for member in cls:
                if member.value.lower() == value:
                    return member
        return None

    @classmethod
    def parse(cls, value: object) -> Optional["Severity"]:
        """Return the matching severity or None when ``value`` is not one."""
        try:
            return cls(value)
        except ValueError:
            return None


# Ascending: least severe first. Sorting by this rank puts errors LAST.
SEVERITY_RANK = {
    Severity.INFO.value: 0,
    Severity.UNKNOWN.value: 1,
    Severity.WARNING.value: 2,
    Severity.ERROR.value: 3,
}


@dataclass(frozen=True)
class Location:
    """A clickable position inside a specification file"""

    tag: str
    path: str
    line: int

    @property
    def anchor(self) -> str:
        """Path with a GitHub-style line anchor (``path#L12``)"""
        return f"{self.path}#L{self.line}"

    def to_dict(self) -> dict:
        return {"tag": self.tag, "path": self.path, "line": self.line}


@dataclass(frozen=True)
class Finding:
    """One issue reported by an external tool about a specification file"""

    severity: Severity
    rule_id: str
    message: str
    locations: Tuple[Location, ...] = field(default_factory=tuple)
    tool: str = ""
    doc_url: Optional[str] = None

    @property
    def rank(self) -> int:
        return SEVERITY_RANK[self.severity.value]

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    @property
    def is_warning(self) -> bool:
        return self.severity is Severity.WARNING

    def identity(self) -> Tuple[str, str, str]:
        """Location-independent identity used to compare before/after runs."""
        return (self.severity.value, self.rule_id, self.message)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {
            "severity": self.severity.value,
            "rule_id": self.rule_id,
            "message": self.message,
            "locations": [location.to_dict() for location in self.locations],
            "tool": self.tool,
            "doc_url": self.doc_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Finding":
        """Rebuild a finding from :meth:`to_dict` output"""
        return cls(
            severity=Severity.parse(data.get("severity")) or Severity.UNKNOWN,
            rule_id=str(data.get("rule_id", "")),
            message=str(data.get("message", "")),
            locations=tuple(
                Location(tag=str(loc["tag"]), path=str(loc["path"]), line=int(loc["line"]))
                for loc in data.get("locations") or []
            ),
            tool=str(data.get("tool", "")),
            doc_url=data.get("doc_url"),
        )

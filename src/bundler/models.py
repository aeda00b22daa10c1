"""
Data models for the bundle builder.

These are intentionally lightweight (stdlib only). Content records are
opaque payloads and stay plain dicts throughout.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


METADATA_KEY = "metadata"
SOURCE_ID_FIELD = "id"

# Validation outcome statuses
OK = "OK"
IGNORED = "IGNORED"
FATAL = "FATAL"

# Causes of a FATAL outcome
CAUSE_VALIDATOR_UNAVAILABLE = "validator_unavailable"
CAUSE_VALIDATION_FAILURE = "validation_failure"


def is_number(value: Any) -> bool:
    """True for finite ints/floats. Booleans are not timestamps."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def source_id(descriptor: Any) -> Optional[str]:
    """Return the identifier of a source descriptor, or None if absent."""
    if not isinstance(descriptor, dict):
        return None
    sid = descriptor.get(SOURCE_ID_FIELD)
    if isinstance(sid, str) and sid:
        return sid
    return None


@dataclass
class BundleMetadata:
    sources: List[Dict[str, Any]]
    edition: str
    date_added: int
    date_last_modified: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the on-disk key names."""
        return {
            "sources": self.sources,
            "edition": self.edition,
            "dateAdded": self.date_added,
            "dateLastModified": self.date_last_modified,
        }


@dataclass
class Bundle:
    metadata: BundleMetadata
    content: Dict[str, List[Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Metadata always comes first, followed by content in merge order."""
        out: Dict[str, Any] = {METADATA_KEY: self.metadata.to_dict()}
        for key, records in self.content.items():
            out[key] = records
        return out


@dataclass
class OracleResult:
    """Raw result of one external validator invocation."""
    passed: bool
    diagnostic: str = ""


@dataclass
class ValidationOutcome:
    """Classification of one validated artifact: OK | IGNORED | FATAL."""
    status: str
    detail: str = ""
    cause: Optional[str] = None

    @property
    def is_fatal(self) -> bool:
        return self.status == FATAL

    @classmethod
    def ok(cls) -> "ValidationOutcome":
        return cls(OK)

    @classmethod
    def ignored(cls, reason: str) -> "ValidationOutcome":
        return cls(IGNORED, reason)

    @classmethod
    def fatal(cls, diagnostic: str, cause: str = CAUSE_VALIDATION_FAILURE) -> "ValidationOutcome":
        return cls(FATAL, diagnostic, cause)

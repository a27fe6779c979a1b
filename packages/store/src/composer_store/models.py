"""Session telemetry data models.

Decoupled from composer_core so the store layer can be used by the
automation agent without pulling in stats or overlay code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

PERSISTED = "persisted"
FAILED = "failed"
SKIPPED = "skipped"


def require_timestamp(value: Any, key: str = "timestamp") -> int | float:
    """Return ``value`` if it is an epoch-ms number, else raise ValueError."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a numeric {key}, got {value!r}")
    return value


@dataclass
class GeneratedField:
    """One form field the AI filled in during a generation."""

    label: str
    type: str
    value: str
    status: str = "success"  # "success" | "warning" | "error"


@dataclass
class GenerationEntry:
    """A completed AI form-fill attempt with its before/after evidence.

    ``id`` is assigned by the caller and must be unique within one website's
    list. Screenshots are base64-encoded PNG strings.
    """

    id: str
    url: str
    created_at: int  # epoch milliseconds
    resource_description: str = ""
    fields: list[GeneratedField] = field(default_factory=list)
    screenshot_before: str | None = None
    screenshot_after: str | None = None


@dataclass
class HintReceivedEntry:
    """A ghost-writer hint surfaced on a website."""

    base_url: str
    timestamp: int  # epoch milliseconds


@dataclass
class PersistResult:
    """Outcome of a store mutation.

    Stores never raise on persistence failures; callers that care inspect
    ``ok`` or ``status`` instead.
    """

    status: str
    path: str = ""
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == PERSISTED

    @classmethod
    def persisted(cls, path: str) -> PersistResult:
        return cls(status=PERSISTED, path=path)

    @classmethod
    def failed(cls, path: str, reason: str) -> PersistResult:
        return cls(status=FAILED, path=path, reason=reason)

    @classmethod
    def skipped(cls, reason: str = "telemetry disabled") -> PersistResult:
        return cls(status=SKIPPED, reason=reason)

"""Data models for recorded traces and trace queries."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

StepType = Literal["generation", "search", "filter", "evaluation", "ranking", "custom"]
TraceStatus = Literal["running", "completed", "error"]

STEP_TYPES: tuple[str, ...] = ("generation", "search", "filter", "evaluation", "ranking", "custom")
TERMINAL_STATUSES: tuple[str, ...] = ("completed", "error")

# Serialized shapes, as produced by Step.to_json() / Trace.to_json()
StepRecord = dict[str, Any]
TraceRecord = dict[str, Any]

DEFAULT_LIMIT = 100


def _non_negative_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 0 else default


@dataclass
class TraceQuery:
    """Filtering and pagination options for listing stored traces."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0
    status: str | None = None  # exact match
    name: str | None = None  # case-sensitive substring

    def __post_init__(self):
        # 0 and None both mean "use the default page size"
        if not self.limit:
            self.limit = DEFAULT_LIMIT
        if self.offset is None:
            self.offset = 0
        if self.limit < 0 or self.offset < 0:
            raise ValueError("limit and offset must not be negative")

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "TraceQuery":
        """Build a query from loosely typed parameters (e.g. a URL query string)."""
        return cls(
            limit=_non_negative_int(params.get("limit"), DEFAULT_LIMIT),
            offset=_non_negative_int(params.get("offset"), 0),
            status=params.get("status") or None,
            name=params.get("name") or None,
        )

    def matches(self, record: TraceRecord) -> bool:
        if self.status and record.get("status") != self.status:
            return False
        if self.name and self.name not in (record.get("name") or ""):
            return False
        return True

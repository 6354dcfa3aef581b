"""Storage adapters for recorded traces.

The recorder only talks to the :class:`StorageAdapter` interface, so traces
can be kept anywhere. :class:`InMemoryStorage` keeps them in process memory,
which is what the server and the tests use.
"""

import copy
import logging
import threading
from typing import Any

from .models import TraceQuery, TraceRecord
from .utils import format_timestamp, now, parse_timestamp

logger = logging.getLogger(__name__)


class StorageAdapter:
    """Base class for trace storage. Subclasses must implement every method."""

    def save_trace(self, trace: TraceRecord) -> TraceRecord:
        """Insert or replace ``trace`` by id, stamping ``savedAt``."""
        raise NotImplementedError("save_trace must be implemented")

    def get_traces(self, query: TraceQuery | None = None, **options: Any) -> list[TraceRecord]:
        """Return traces newest first, filtered then paginated."""
        raise NotImplementedError("get_traces must be implemented")

    def get_trace(self, trace_id: str) -> TraceRecord | None:
        raise NotImplementedError("get_trace must be implemented")

    def delete_trace(self, trace_id: str) -> bool:
        raise NotImplementedError("delete_trace must be implemented")

    def clear(self) -> None:
        raise NotImplementedError("clear must be implemented")

    def count(self) -> int:
        raise NotImplementedError("count must be implemented")


def _as_query(query: TraceQuery | None, options: dict[str, Any]) -> TraceQuery:
    if query is not None and options:
        raise TypeError("Pass either a TraceQuery or keyword options, not both")
    if query is not None:
        return query
    return TraceQuery(**options)


class InMemoryStorage(StorageAdapter):
    """Thread-safe storage keeping trace records in a dict keyed by id."""

    def __init__(self):
        self._traces: dict[str, TraceRecord] = {}
        self._lock = threading.RLock()

    def save_trace(self, trace: TraceRecord) -> TraceRecord:
        record = copy.deepcopy(trace)
        record["savedAt"] = format_timestamp(now())
        with self._lock:
            replaced = trace["id"] in self._traces
            self._traces[trace["id"]] = record
        logger.debug("%s trace %s", "Replaced" if replaced else "Saved", trace["id"])
        return copy.deepcopy(record)

    def get_traces(self, query: TraceQuery | None = None, **options: Any) -> list[TraceRecord]:
        query = _as_query(query, options)
        with self._lock:
            traces = [t for t in self._traces.values() if query.matches(t)]
            traces.sort(key=lambda t: parse_timestamp(t["startTime"]), reverse=True)
            page = traces[query.offset : query.offset + query.limit]
            return copy.deepcopy(page)

    def get_trace(self, trace_id: str) -> TraceRecord | None:
        with self._lock:
            record = self._traces.get(trace_id)
            return copy.deepcopy(record) if record is not None else None

    def delete_trace(self, trace_id: str) -> bool:
        with self._lock:
            return self._traces.pop(trace_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._traces.clear()

    def count(self) -> int:
        with self._lock:
            return len(self._traces)

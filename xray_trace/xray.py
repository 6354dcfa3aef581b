"""Library entry point binding trace creation to a storage adapter."""

import copy
from collections.abc import Mapping
from typing import Any

from .models import TraceQuery, TraceRecord
from .storage import InMemoryStorage, StorageAdapter
from .trace import Trace


class XRay:
    """Creates traces against one storage adapter and reads them back.

    ``default_metadata`` is merged into every trace this instance starts;
    metadata passed to :meth:`start_trace` wins on conflicting keys.
    """

    def __init__(
        self,
        storage: StorageAdapter | None = None,
        default_metadata: Mapping[str, Any] | None = None,
    ):
        self.storage = storage if storage is not None else InMemoryStorage()
        self.default_metadata = copy.deepcopy(dict(default_metadata or {}))

    def start_trace(self, name: str, metadata: Mapping[str, Any] | None = None) -> Trace:
        # Trace deep-copies the merged mapping, so nested defaults are never shared
        return Trace(name, {**self.default_metadata, **(metadata or {})}, self.storage)

    def get_traces(self, query: TraceQuery | None = None, **options: Any) -> list[TraceRecord]:
        return self.storage.get_traces(query, **options)

    def get_trace(self, trace_id: str) -> TraceRecord | None:
        return self.storage.get_trace(trace_id)

    def delete_trace(self, trace_id: str) -> bool:
        return self.storage.delete_trace(trace_id)

    def clear_traces(self) -> None:
        self.storage.clear()

    def get_storage(self) -> StorageAdapter:
        return self.storage

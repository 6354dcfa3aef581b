"""Trace recorder: the ordered decision trail of one pipeline execution."""

import copy
import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .errors import InvalidStateError
from .models import TERMINAL_STATUSES, StepType, TraceRecord, TraceStatus
from .step import Step
from .utils import duration_ms, format_timestamp, generate_id, now

if TYPE_CHECKING:
    from .storage import StorageAdapter

logger = logging.getLogger(__name__)


def _filter_descriptors(filters: Any) -> list[tuple[str, Mapping[str, Any] | None]]:
    """Normalize a ``name -> config`` mapping or a list of ``{name, ...}`` records."""
    if not filters:
        return []
    if isinstance(filters, Mapping):
        descriptors = list(filters.items())
    else:
        descriptors = []
        for descriptor in filters:
            if not isinstance(descriptor, Mapping) or "name" not in descriptor:
                raise ValueError(f"Filter descriptor needs a \"name\" key, got {descriptor!r}")
            config = {k: v for k, v in descriptor.items() if k != "name"}
            descriptors.append((descriptor["name"], config))

    for name, config in descriptors:
        if config is not None and not isinstance(config, Mapping):
            raise ValueError(f"Filter {name!r} config must be a mapping, got {config!r}")
    return descriptors


class Trace:
    """A pipeline execution made of ordered steps.

    A trace starts ``running`` and moves exactly once to ``completed`` (via
    :meth:`end`) or ``error`` (via :meth:`fail`). The terminal transition is
    what persists the trace to its storage adapter; a trace that is never
    ended is never saved.

    Used as a context manager, the trace fails and re-raises on exception and
    ends itself on a clean exit::

        with xray.start_trace("competitor_selection") as trace:
            trace.step("keyword_generation", "generation").output(keywords).end()
    """

    def __init__(
        self,
        name: str,
        metadata: Mapping[str, Any] | None = None,
        storage: "StorageAdapter | None" = None,
    ):
        self.id = generate_id("trace")
        self.name = name
        self._metadata = copy.deepcopy(dict(metadata or {}))
        self.storage = storage
        self.steps: list[Step] = []
        self.status: TraceStatus = "running"
        self.result: Any = None
        self.error: str | None = None

        self._started = now()
        self._ended = None
        self.duration: int | None = None

    @property
    def metadata(self) -> Mapping[str, Any]:
        """Read-only view of the metadata fixed when the trace started."""
        return MappingProxyType(copy.deepcopy(self._metadata))

    @property
    def start_time(self) -> str:
        return format_timestamp(self._started)

    @property
    def end_time(self) -> str | None:
        return format_timestamp(self._ended) if self._ended else None

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def _check_running(self, action: str) -> None:
        if self.is_finished:
            raise InvalidStateError(
                f"Cannot {action}: trace {self.id} is already {self.status}"
            )

    def step(self, name: str, type: StepType = "custom") -> Step:
        """Append a new step and return it for fluent configuration."""
        self._check_running("add a step")
        step = Step(name, type, self)
        self.steps.append(step)
        return step

    def add_step_data(self, data: Mapping[str, Any]) -> "Trace":
        """Record a complete step from a plain mapping instead of the fluent API."""
        self._check_running("add a step")
        if "name" not in data:
            raise ValueError("Step data needs a \"name\" key")
        filters = _filter_descriptors(data.get("filters"))
        step = self.step(data["name"], data.get("type") or "custom")

        if data.get("input") is not None:
            step.input(data["input"])
        if data.get("output") is not None:
            step.output(data["output"])
        if data.get("reasoning") is not None:
            step.reasoning(data["reasoning"])
        for name, config in filters:
            step.filter(name, config)
        if data.get("evaluations"):
            step.evaluations(data["evaluations"])
        if data.get("metadata"):
            step.meta(data["metadata"])

        return step.end()

    def _finish(self, status: TraceStatus) -> None:
        self._ended = now()
        self.duration = duration_ms(self._started, self._ended)
        self.status = status

    def end(self, result: Any = None) -> "Trace":
        """Mark the trace completed with an optional final result and persist it."""
        self._check_running("end trace")
        self.result = result
        self._finish("completed")
        logger.debug("Trace %s (%s) completed in %sms", self.id, self.name, self.duration)
        self._persist()
        return self

    def fail(self, error: BaseException | str) -> "Trace":
        """Mark the trace failed and persist it. Raising is left to the caller."""
        self._check_running("fail trace")
        self.error = str(error)
        self._finish("error")
        logger.debug(
            "Trace %s (%s) failed after %sms: %s", self.id, self.name, self.duration, self.error
        )
        self._persist()
        return self

    def to_json(self) -> TraceRecord:
        record: TraceRecord = {
            "id": self.id,
            "name": self.name,
            "metadata": copy.deepcopy(self._metadata),
            "steps": [s.to_json() for s in self.steps],
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "status": self.status,
            "error": self.error,
        }
        # result only exists once the trace has completed successfully
        if self.status == "completed":
            record["result"] = self.result
        return record

    def get_summary(self) -> dict[str, Any]:
        """Catalog view of the trace, without step bodies, result or error."""
        return {
            "id": self.id,
            "name": self.name,
            "metadata": copy.deepcopy(self._metadata),
            "stepCount": len(self.steps),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "status": self.status,
        }

    def _persist(self) -> None:
        if self.storage is None:
            return
        try:
            self.storage.save_trace(self.to_json())
        except Exception:
            # Persistence is fire-and-forget for the pipeline being traced
            logger.exception("Failed to persist trace %s (%s)", self.id, self.name)

    def __enter__(self) -> "Trace":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if self.is_finished:
            return False
        if exc is not None:
            self.fail(exc)
        else:
            self.end()
        return False

    def __repr__(self) -> str:
        return f"<Trace {self.id} {self.name!r} status={self.status} steps={len(self.steps)}>"

"""A single recorded decision point inside a trace."""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from .errors import InvalidStateError
from .models import STEP_TYPES, StepRecord, StepType
from .utils import duration_ms, format_timestamp, generate_id, now

if TYPE_CHECKING:
    from .trace import Trace

_UNSET = object()


class Step:
    """Fluent recorder for one decision point.

    Every setter returns the step so calls can be chained; ``end()`` returns
    the owning trace so the chain can continue with the next step::

        trace.step("apply_filters", "filter") \\
            .input({"candidates": 50}) \\
            .filter("min_rating", {"value": 3.8, "rule": ">= 3.8"}) \\
            .output({"remaining": 12}) \\
            .end()
    """

    def __init__(self, name: str, type: StepType, trace: "Trace"):
        if type not in STEP_TYPES:
            raise ValueError(
                f"Unknown step type {type!r}, expected one of {', '.join(STEP_TYPES)}"
            )
        self.id = generate_id("step")
        self.name = name
        self.type = type
        self.trace = trace

        self._input: Any = None
        self._output: Any = None
        self._reasoning: str | None = None
        self._filters: list[dict[str, Any]] = []
        self._evaluations: list[Any] = []
        self._metadata: dict[str, Any] = {}

        self._started = now()
        self._ended = None
        self.duration: int | None = None

    @property
    def start_time(self) -> str:
        return format_timestamp(self._started)

    @property
    def end_time(self) -> str | None:
        return format_timestamp(self._ended) if self._ended else None

    @property
    def ended(self) -> bool:
        return self._ended is not None

    def _check_writable(self) -> None:
        if self.trace.is_finished:
            raise InvalidStateError(
                f"Step {self.name!r} belongs to trace {self.trace.id} "
                f"which is already {self.trace.status}"
            )

    def input(self, data: Any) -> "Step":
        """Record what went into this step."""
        self._check_writable()
        self._input = data
        return self

    def output(self, data: Any) -> "Step":
        """Record what came out of this step."""
        self._check_writable()
        self._output = data
        return self

    def reasoning(self, text: str) -> "Step":
        """Record a human-readable explanation of the decision."""
        self._check_writable()
        self._reasoning = text
        return self

    def filter(self, name: str, config: Mapping[str, Any] | None = None) -> "Step":
        """Append a filter descriptor, e.g. ``filter("price", {"value": 50, "rule": "<= $50"})``."""
        self._check_writable()
        if config is not None and not isinstance(config, Mapping):
            raise ValueError(
                f"Filter {name!r} config must be a mapping, got {type(config).__name__}"
            )
        self._filters.append({"name": name, **(config or {})})
        return self

    def filters(self, filters: Mapping[str, Mapping[str, Any]]) -> "Step":
        """Append one filter descriptor per ``name -> config`` entry."""
        for name, config in filters.items():
            self.filter(name, config)
        return self

    def evaluate(self, candidate: Any, results: Any, qualified: bool) -> "Step":
        """Append a structured evaluation of one candidate."""
        return self.add_evaluation(
            {"candidate": candidate, "filterResults": results, "qualified": qualified}
        )

    def add_evaluation(self, evaluation: Any) -> "Step":
        self._check_writable()
        self._evaluations.append(evaluation)
        return self

    def evaluations(self, evaluations: Iterable[Any]) -> "Step":
        self._check_writable()
        self._evaluations.extend(evaluations)
        return self

    def meta(self, key: str | Mapping[str, Any], value: Any = _UNSET) -> "Step":
        """Merge one key, or a whole mapping, into the step metadata."""
        self._check_writable()
        if isinstance(key, Mapping):
            self._metadata.update(key)
        elif value is _UNSET:
            raise TypeError("meta() needs a value when called with a single key")
        else:
            self._metadata[key] = value
        return self

    def end(self) -> "Trace":
        """Stamp the end time and hand control back to the owning trace."""
        self._check_writable()
        if self.ended:
            raise InvalidStateError(f"Step {self.name!r} ({self.id}) has already ended")
        self._ended = now()
        self.duration = duration_ms(self._started, self._ended)
        return self.trace

    def to_json(self) -> StepRecord:
        record: StepRecord = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "input": self._input,
            "output": self._output,
            "reasoning": self._reasoning,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
        }

        # Optional sections are only written when they carry data
        if self._filters:
            record["filters"] = list(self._filters)
        if self._evaluations:
            record["evaluations"] = list(self._evaluations)
        if self._metadata:
            record["metadata"] = dict(self._metadata)

        return record

    def __repr__(self) -> str:
        return f"<Step {self.id} {self.name!r} type={self.type}>"

"""X-Ray: record the decision trail of multi-step, non-deterministic pipelines."""

from .errors import InvalidStateError, TraceAPIError, XRayError
from .models import STEP_TYPES, TraceQuery
from .step import Step
from .storage import InMemoryStorage, StorageAdapter
from .trace import Trace
from .utils import generate_id
from .xray import XRay

__all__ = [
    "STEP_TYPES",
    "InMemoryStorage",
    "InvalidStateError",
    "Step",
    "StorageAdapter",
    "Trace",
    "TraceAPIError",
    "TraceQuery",
    "XRay",
    "XRayError",
    "generate_id",
]

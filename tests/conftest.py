import pytest

from xray_trace import InMemoryStorage, XRay


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def xray(storage):
    return XRay(storage=storage, default_metadata={"service": "competitor-selection"})


def make_record(
    trace_id,
    name="competitor_selection",
    status="completed",
    start="2024-01-01T00:00:00.000Z",
):
    return {
        "id": trace_id,
        "name": name,
        "metadata": {},
        "steps": [],
        "startTime": start,
        "endTime": start,
        "duration": 0,
        "status": status,
        "error": None,
    }

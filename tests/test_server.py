import pytest
from starlette.testclient import TestClient

from xray_trace import XRay
from xray_trace.server import create_app

from conftest import make_record


@pytest.fixture
def client(xray):
    storage = xray.get_storage()
    rows = [
        ("t1", "competitor_selection", "completed"),
        ("t2", "keyword_search", "error"),
        ("t3", "competitor_selection", "completed"),
    ]
    for second, (trace_id, name, status) in enumerate(rows, start=1):
        start = f"2024-01-01T00:00:{second:02d}.000Z"
        storage.save_trace(make_record(trace_id, name=name, status=status, start=start))
    return TestClient(create_app(xray))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_traces(client):
    response = client.get("/api/traces")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["count"] == 3
    assert [t["id"] for t in body["traces"]] == ["t3", "t2", "t1"]
    assert "steps" in body["traces"][0]


def test_list_traces_with_query(client):
    body = client.get("/api/traces", params={"status": "completed", "limit": 1, "offset": 1}).json()
    assert [t["id"] for t in body["traces"]] == ["t1"]
    body = client.get("/api/traces", params={"name": "keyword"}).json()
    assert [t["id"] for t in body["traces"]] == ["t2"]


def test_list_traces_ignores_bad_numbers(client):
    body = client.get("/api/traces", params={"limit": "lots", "offset": "-3"}).json()
    assert body["count"] == 3


def test_get_trace(client):
    response = client.get("/api/traces/t2")
    assert response.status_code == 200
    assert response.json()["trace"]["status"] == "error"


def test_get_missing_trace(client):
    response = client.get("/api/traces/nope")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Trace not found"}


def test_delete_trace(client):
    response = client.delete("/api/traces/t1")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Trace deleted"}
    assert client.get("/api/traces/t1").status_code == 404


def test_delete_unknown_trace_is_not_an_http_error(client):
    response = client.delete("/api/traces/nope")
    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "Trace not found"}
    assert client.get("/api/traces").json()["count"] == 3


def test_clear_traces(client):
    response = client.delete("/api/traces")
    assert response.json() == {"success": True, "message": "All traces cleared"}
    assert client.get("/api/traces").json()["count"] == 0


class _ExplodingStorage:
    def get_traces(self, query=None, **options):
        raise RuntimeError("storage offline")


def test_internal_errors_become_500():
    client = TestClient(create_app(XRay(storage=_ExplodingStorage())))
    response = client.get("/api/traces")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "storage offline"}


def test_cors_headers(client):
    response = client.get("/api/traces", headers={"Origin": "http://localhost:5173"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_traces_recorded_through_facade_are_served(xray):
    trace = xray.start_trace("competitor_selection")
    trace.step("search", "search").output({"total": 1}).end()
    trace.end({"selection": "X"})

    body = TestClient(create_app(xray)).get(f"/api/traces/{trace.id}").json()
    assert body["trace"]["result"] == {"selection": "X"}
    assert body["trace"]["metadata"]["service"] == "competitor-selection"

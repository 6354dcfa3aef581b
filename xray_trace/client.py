"""HTTP client for a running traces API."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .errors import TraceAPIError
from .models import TraceRecord

logger = logging.getLogger(__name__)


def _trace_path(trace_id: str) -> str:
    return f"/api/traces/{quote(trace_id, safe='')}"


class TraceClient:
    """Read and delete traces served by :func:`xray_trace.server.create_app`.

    An existing ``httpx.Client`` can be passed in (for example a Starlette
    ``TestClient``); otherwise one is created for ``base_url`` and closed by
    :meth:`close`.
    """

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:3001",
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self.client = client or httpx.Client(timeout=httpx.Timeout(timeout))

    def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> "TraceClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            raise TraceAPIError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _payload(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError:
            data = {"error": response.text}

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise TraceAPIError(
                message or f"HTTP {response.status_code}", status_code=response.status_code
            )
        return data

    def health(self) -> bool:
        try:
            response = self._request("GET", "/health")
        except TraceAPIError:
            logger.warning("Traces API at %s is unreachable", self.base_url)
            return False
        return response.status_code == 200

    def list_traces(
        self,
        limit: int | None = None,
        offset: int | None = None,
        status: str | None = None,
        name: str | None = None,
    ) -> list[TraceRecord]:
        options = {"limit": limit, "offset": offset, "status": status, "name": name}
        params = {key: value for key, value in options.items() if value is not None}
        return self._payload(self._request("GET", "/api/traces", params=params))["traces"]

    def get_trace(self, trace_id: str) -> TraceRecord | None:
        response = self._request("GET", _trace_path(trace_id))
        if response.status_code == 404:
            return None
        return self._payload(response)["trace"]

    def delete_trace(self, trace_id: str) -> bool:
        response = self._request("DELETE", _trace_path(trace_id))
        return bool(self._payload(response)["success"])

    def clear_traces(self) -> None:
        self._payload(self._request("DELETE", "/api/traces"))

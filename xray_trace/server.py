"""HTTP API serving recorded traces to the dashboard."""

import logging
from collections.abc import Awaitable, Callable, Sequence

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .models import TraceQuery
from .xray import XRay

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


def _error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


def _guarded(handler: Handler) -> Handler:
    """Turn unexpected exceptions into ``500 {success: false, error}``."""

    async def wrapper(request: Request) -> Response:
        try:
            return await handler(request)
        except Exception as e:
            logger.exception("%s %s failed", request.method, request.url.path)
            return _error_response(str(e), 500)

    return wrapper


class TraceAPI:
    """Request handlers for the ``/api/traces`` routes."""

    def __init__(self, xray: XRay):
        self.xray = xray

    async def list_traces(self, request: Request) -> Response:
        query = TraceQuery.from_params(request.query_params)
        traces = self.xray.get_traces(query)
        return JSONResponse({"success": True, "count": len(traces), "traces": traces})

    async def get_trace(self, request: Request) -> Response:
        trace = self.xray.get_trace(request.path_params["trace_id"])
        if trace is None:
            return _error_response("Trace not found", 404)
        return JSONResponse({"success": True, "trace": trace})

    async def delete_trace(self, request: Request) -> Response:
        # Unknown ids are reported in the body, not with a 404
        deleted = self.xray.get_storage().delete_trace(request.path_params["trace_id"])
        return JSONResponse(
            {"success": deleted, "message": "Trace deleted" if deleted else "Trace not found"}
        )

    async def clear_traces(self, request: Request) -> Response:
        self.xray.clear_traces()
        return JSONResponse({"success": True, "message": "All traces cleared"})


def create_app(xray: XRay, cors_origins: Sequence[str] = ("*",)) -> Starlette:
    """Create the Starlette application."""
    api = TraceAPI(xray)

    async def health(request: Request) -> Response:
        return JSONResponse({"status": "ok"})

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/api/traces", _guarded(api.list_traces), methods=["GET"]),
            Route("/api/traces", _guarded(api.clear_traces), methods=["DELETE"]),
            Route("/api/traces/{trace_id}", _guarded(api.get_trace), methods=["GET"]),
            Route("/api/traces/{trace_id}", _guarded(api.delete_trace), methods=["DELETE"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=list(cors_origins),
                allow_methods=["GET", "DELETE"],
                allow_headers=["*"],
            )
        ],
    )
    app.state.xray = xray

    return app

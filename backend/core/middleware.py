"""Request tracking and exception handlers.

Every response carries X-Request-ID (echoed when the client sent one)
and X-Process-Time. The request id and the X-User-ID operator are bound
into the structlog context, so generator and lifecycle log lines
written during a request can be traced back to it.
"""

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from core.exceptions import EngineError, TransientStorageError
from core.logging_config import bind_request_context, clear_request_context

logger = logging.getLogger(__name__)

# Polled by dashboards and probes; logged only on failure
_QUIET_PATHS = frozenset({
    "/api/health/",
    "/api/v1/health/",
    "/api/v1/engine/status",
    "/api/v1/instances/counts",
})


def _error_body(request: Request, detail: str, error_code: str) -> dict:
    return {
        "detail": detail,
        "error_code": error_code,
        "request_id": getattr(request.state, "request_id", None),
    }


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Request id, timing header and one access log line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        request.state.request_id = request_id
        bind_request_context(request_id, request.headers.get("X-User-ID"))
        started = time.monotonic()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Unhandled exception on %s %s: %s",
                request.method, request.url.path, exc,
                exc_info=True,
            )
            detail = "Internal server error"
            if not get_settings().is_production and str(exc):
                detail = str(exc)
            response = JSONResponse(
                status_code=500,
                content={"detail": detail, "error_code": "internal_error", "request_id": request_id},
            )
        finally:
            clear_request_context()

        elapsed_ms = (time.monotonic() - started) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"
        self._log(request, response.status_code, elapsed_ms)
        return response

    @staticmethod
    def _log(request: Request, status_code: int, elapsed_ms: float) -> None:
        if status_code < 400 and request.url.path in _QUIET_PATHS:
            return
        logger.log(
            logging.WARNING if status_code >= 400 else logging.INFO,
            "%s %s -> %s (%.0fms)",
            request.method, request.url.path, status_code, elapsed_ms,
        )


def setup_exception_handlers(app: FastAPI) -> None:
    """Map engine exceptions to JSON error responses.

    EngineError subclasses carry their HTTP status and a stable
    ``error_code``: not_found 404, validation_error 422, invalid_state
    409, storage_busy 503 (sent with Retry-After).
    """

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        headers = {"Retry-After": "1"} if isinstance(exc, TransientStorageError) else None
        if exc.status_code >= 500:
            logger.warning("Engine error %s: %s", exc.error_code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.error_code),
            headers=headers,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(
            status_code=400,
            content=_error_body(request, str(exc), "bad_request"),
        )

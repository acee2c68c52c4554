"""API middleware for request correlation, timing and error responses."""

import time
from collections.abc import Callable
from datetime import UTC, datetime

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import settings
from ..core.correlation import generate_request_id, set_request_id
from ..core.exceptions import KidGuardException
from ..utils.logging import get_logger

logger = get_logger(__name__)

_IS_PRODUCTION = settings.ENVIRONMENT == "production"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to the request, the log context and the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()

        request.state.request_id = request_id
        set_request_id(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Add request timing and log slow requests."""

    def __init__(self, app, slow_threshold: float | None = None):
        super().__init__(app)
        self._slow_threshold = (
            settings.SLOW_REQUEST_THRESHOLD if slow_threshold is None else slow_threshold
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        process_time = time.perf_counter() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        if process_time > self._slow_threshold:
            logger.warning(
                "Slow request: %s %s took %.2fs",
                request.method,
                request.url.path,
                process_time,
            )

        return response


def exception_handler(request: Request, exc: KidGuardException) -> JSONResponse:
    """Render KidGuard exceptions with their own payload."""
    logger.error(
        "KidGuardException: %s - %s (status=%d) for %s %s",
        exc.error_code,
        exc.detail,
        exc.status_code,
        request.method,
        request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(
        "Unhandled exception for %s %s: %s", request.method, request.url.path, str(exc)
    )

    detail = "An unexpected error occurred" if _IS_PRODUCTION else str(exc)

    return JSONResponse(
        status_code=500,
        content={
            "error": "INTERNAL_SERVER_ERROR",
            "detail": detail,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )

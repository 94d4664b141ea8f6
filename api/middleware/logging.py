"""Request logging middleware."""

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("kitchencogs.api")

# Liveness probes are polled constantly; keep them out of INFO logs.
QUIET_PATHS = ("/health",)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with timing. Reuses an incoming X-Request-ID so the
    order-intake side and this service can be correlated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        path = request.url.path
        quiet = path.startswith(QUIET_PATHS)

        start_time = time.perf_counter()
        if not quiet:
            logger.info(f"[{request_id}] {request.method} {path} - Started")

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"[{request_id}] {request.method} {path} - "
                f"Error after {elapsed_ms:.2f}ms: {e}"
            )
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.2f}"

        if response.status_code >= 400:
            log_level = logging.WARNING
        elif quiet:
            log_level = logging.DEBUG
        else:
            log_level = logging.INFO
        logger.log(
            log_level,
            f"[{request_id}] {request.method} {path} - "
            f"{response.status_code} in {elapsed_ms:.2f}ms"
        )

        return response

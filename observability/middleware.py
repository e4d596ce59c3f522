"""
FastAPI middleware for observability.

Provides:
- Request correlation ID injection
- HTTP request metrics
"""

import re
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging import get_logger, correlation_id_context
from .metrics import http_requests_total, http_request_duration_seconds

logger = get_logger(__name__)

_SOURCE_PATH_PATTERN = re.compile(r"^/api/sources/[^/]+")


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Adds a correlation ID to every request and records RED metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")

        with correlation_id_context(correlation_id) as req_id:
            request.state.correlation_id = req_id
            path = self._sanitize_path(request.url.path)
            method = request.method
            start_time = time.time()

            try:
                response = await call_next(request)
            except Exception as exc:
                http_requests_total.labels(method=method, endpoint=path, status=500).inc()
                http_request_duration_seconds.labels(method=method, endpoint=path).observe(
                    time.time() - start_time
                )
                logger.error(
                    "Request failed",
                    extra={"method": method, "path": path, "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise

            duration = time.time() - start_time
            http_requests_total.labels(method=method, endpoint=path, status=response.status_code).inc()
            http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)
            response.headers["X-Request-ID"] = req_id

            if duration > 2.0 and not self._is_health_check(request):
                logger.warning(
                    "Slow request detected",
                    extra={
                        "method": method,
                        "path": path,
                        "duration_seconds": round(duration, 3),
                        "status_code": response.status_code,
                    },
                )
            return response

    def _sanitize_path(self, path: str) -> str:
        """Collapse source names so metric label cardinality stays bounded."""
        return _SOURCE_PATH_PATTERN.sub("/api/sources/{name}", path)

    def _is_health_check(self, request: Request) -> bool:
        return request.url.path.startswith("/health") or request.url.path.startswith("/metrics")

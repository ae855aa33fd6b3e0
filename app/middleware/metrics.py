"""Prometheus metrics middleware — HTTP count, duration and in-flight gauge.

The endpoint label is the URL path.  The service has a fixed set of
routes, so unknown paths are folded into "other" to keep label
cardinality bounded when scanners probe random URLs.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

_KNOWN_PATHS = frozenset({"/", "/login", "/callback", "/health", "/ready"})


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect Prometheus metrics for every HTTP request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Don't count Prometheus scrapes.
        if request.url.path == "/metrics":
            return await call_next(request)

        endpoint = request.url.path if request.url.path in _KNOWN_PATHS else "other"
        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code: str | None = None

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        except Exception:
            status_code = "500"
            raise
        finally:
            duration = time.monotonic() - start
            ACTIVE_REQUESTS.dec()
            REQUEST_COUNT.labels(
                method=request.method,
                endpoint=endpoint,
                status_code=status_code if status_code is not None else "500",
            ).inc()
            REQUEST_DURATION.labels(
                method=request.method,
                endpoint=endpoint,
            ).observe(duration)

        return response

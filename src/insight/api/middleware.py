"""Request context and per-client rate limiting."""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections import deque
from typing import Callable

from cachetools import TTLCache
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from insight.shared.metrics import MetricsCollector

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def request_id_of(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request.headers.get(REQUEST_ID_HEADER, "unknown")


def metrics_path(path: str) -> str:
    """Collapse uuid segments to ``{id}`` so each route is one label value."""
    return "/".join("{id}" if _UUID_RE.match(part) else part for part in path.split("/"))


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assigns a request id, logs each request and records ``http.request.*`` metrics."""

    def __init__(self, app, metrics: MetricsCollector) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        tags = {"method": request.method, "path": metrics_path(request.url.path)}

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.error(
                "%s %s failed after %.0fms [%s]",
                request.method, request.url.path, duration_ms, request_id,
                exc_info=True,
            )
            self.metrics.timing("http.request.duration", duration_ms, {**tags, "status": "500"})
            self.metrics.increment("http.request.error", tags)
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.0fms [%s]",
            request.method, request.url.path, response.status_code, duration_ms, request_id,
        )
        status_tags = {**tags, "status": str(response.status_code)}
        self.metrics.timing("http.request.duration", duration_ms, status_tags)
        self.metrics.increment("http.request.count", status_tags)
        if response.status_code >= 400:
            self.metrics.increment("http.request.error", status_tags)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window limit per client IP, applied to ``/api/`` paths only."""

    def __init__(
        self,
        app,
        *,
        window_seconds: float,
        max_requests: int,
        prefix: str = "/api/",
        clock: Callable[[], float] = time.monotonic,
        max_clients: int = 100_000,
    ) -> None:
        super().__init__(app)
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self.prefix = prefix
        self.clock = clock
        # An idle client expires after one window.
        self._hits: TTLCache = TTLCache(maxsize=max_clients, ttl=window_seconds, timer=clock)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if not request.url.path.startswith(self.prefix):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        retry_after = self._admit(client)
        if retry_after is not None:
            logger.warning("Rate limit hit for %s on %s", client, request.url.path)
            return JSONResponse(
                status_code=429,
                content={
                    "success": False,
                    "error": {
                        "message": "Too many requests from this IP, please try again later.",
                        "code": "RATE_LIMITED",
                    },
                    "request_id": request_id_of(request),
                },
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _admit(self, client: str) -> int | None:
        """Count a request from ``client``; the Retry-After seconds when over the limit."""
        now = self.clock()
        hits: deque[float] = self._hits.get(client) or deque()
        while hits and hits[0] <= now - self.window_seconds:
            hits.popleft()

        if len(hits) >= self.max_requests:
            return max(1, int(hits[0] + self.window_seconds - now))

        hits.append(now)
        # Re-inserting restarts the entry's TTL and purges expired clients.
        self._hits[client] = hits
        return None

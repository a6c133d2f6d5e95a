"""Request tracing for the dashboard API."""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import request_id_ctx_var

# Polled by the load balancer; logged at DEBUG to keep access logs readable.
QUIET_PATHS = frozenset({"/api/healthz", "/api/readyz"})


class RequestContextLogMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ``X-Request-ID`` and logs ``request_completed``.

    A caller-supplied ``X-Request-ID`` (e.g. from the cron scheduler) is kept
    so ingestion logs can be matched to the triggering job.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        request_token = request_id_ctx_var.set(request_id)
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            path = request.url.path
            status_code = response.status_code if response else 500
            logger.bind(
                method=request.method,
                path=path,
                status=status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            ).log("DEBUG" if path in QUIET_PATHS and status_code < 400 else "INFO", "request_completed")
            if response is not None:
                response.headers.setdefault("X-Request-ID", request_id)
            request_id_ctx_var.reset(request_token)

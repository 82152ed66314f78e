"""Custom FastAPI middleware."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dailyplan.core.context import request_id_ctx_var

logger = logging.getLogger("dailyplan.access")

MAX_REQUEST_ID_LENGTH = 128
QUIET_PATHS = {"/health"}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id for logs and plan traces, echo it as X-Request-Id and log the call."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = _incoming_request_id(request) or str(uuid4())
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        start = perf_counter()

        try:
            response = await call_next(request)
            if request.url.path not in QUIET_PATHS:
                logger.info(
                    "%s %s -> %s in %.1fms",
                    request.method,
                    request.url.path,
                    response.status_code,
                    (perf_counter() - start) * 1000,
                )
        finally:
            request_id_ctx_var.reset(token)

        response.headers["X-Request-Id"] = request_id
        return response


def _incoming_request_id(request: Request) -> str | None:
    value = (request.headers.get("X-Request-Id") or "").strip()
    if not value or len(value) > MAX_REQUEST_ID_LENGTH or not value.isprintable():
        return None
    return value

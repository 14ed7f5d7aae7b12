"""Request-scoped middleware: correlation ids and access logging."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from aligned.core.context import request_id_ctx_var, user_id_ctx_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"
MAX_REQUEST_ID_LENGTH = 128


def _incoming_request_id(request: Request) -> str:
    candidate = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if not candidate or len(candidate) > MAX_REQUEST_ID_LENGTH or not candidate.isprintable():
        return str(uuid4())
    return candidate


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Bind a request id, clear any bound user id, and log one line per request."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:  # type: ignore[override]
        request_id = _incoming_request_id(request)
        request.state.request_id = request_id
        request_token = request_id_ctx_var.set(request_id)
        user_token = user_id_ctx_var.set(None)
        started = perf_counter()

        try:
            response = await call_next(request)
            logger.info(
                "%s %s -> %s in %.1fms",
                request.method,
                request.url.path,
                response.status_code,
                (perf_counter() - started) * 1000,
            )
        finally:
            user_id_ctx_var.reset(user_token)
            request_id_ctx_var.reset(request_token)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

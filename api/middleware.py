"""
App-level middleware and error mapping.
"""

from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from core.errors import GENERIC_FAILURE_MESSAGE, MethodNotAllowedError, NotifierError

logger = logging.getLogger(__name__)


def register_middleware(app: FastAPI) -> None:
    """Tag every response with a request id and log one access line."""

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        response.headers["X-Request-ID"] = request_id
        level = logging.WARNING if response.status_code >= 500 else logging.DEBUG
        logger.log(
            level,
            "[%s] %s %s -> %d (%.3fs)",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response


def register_exception_handlers(app: FastAPI) -> None:
    """Map ``NotifierError`` to plain-text responses."""

    @app.exception_handler(NotifierError)
    async def notifier_error(request: Request, exc: NotifierError) -> PlainTextResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
            return PlainTextResponse(GENERIC_FAILURE_MESSAGE, status_code=exc.status_code)

        headers = {"Allow": exc.allowed} if isinstance(exc, MethodNotAllowedError) else None
        return PlainTextResponse(str(exc), status_code=exc.status_code, headers=headers)

"""Structured request logging middleware."""

from __future__ import annotations

import time
import uuid
from typing import Callable

from fastapi import Request

from ..logging import logger

QUIET_PATHS = frozenset({"/healthz"})
REQUEST_ID_HEADER = b"x-request-id"


class StructuredLoggingMiddleware:
    """One access-log event per HTTP request, tagged with a request id.

    Event streams are logged when the response starts, so ``duration_ms``
    for them is time to first byte rather than stream lifetime.
    """

    def __init__(self, app: Callable) -> None:
        self.app = app
        self.logger = logger.bind(component="access")

    async def __call__(self, scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        request = Request(scope, receive=receive)
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex

        async def send_wrapper(message: dict) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
                message["headers"] = headers
                self._log(request, request_id, message["status"], headers, start)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _log(
        self,
        request: Request,
        request_id: str,
        status_code: int,
        headers: list[tuple[bytes, bytes]],
        start: float,
    ) -> None:
        content_type = dict(headers).get(b"content-type", b"").decode("latin-1")
        fields = dict(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            query=request.url.query,
            status_code=status_code,
            client_ip=request.client.host if request.client else None,
            duration_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        if content_type.startswith("text/event-stream"):
            self.logger.info("http_stream_opened", **fields)
        elif request.url.path in QUIET_PATHS:
            self.logger.debug("http_request", **fields)
        else:
            self.logger.info("http_request", user_agent=request.headers.get("user-agent"), **fields)

"""
ASGI middleware for request correlation IDs and per-request logging.
"""

import logging
import re
import time
import uuid

from .logging import request_id_var

logger = logging.getLogger(__name__)

# Incoming IDs are echoed into headers and logs, so only short plain tokens are reused
_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")


def new_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


def accept_request_id(raw: bytes | None) -> str:
    """Reuse a well-formed incoming X-Request-ID, otherwise mint a fresh one."""
    if raw:
        try:
            candidate = raw.decode("ascii").strip()
        except UnicodeDecodeError:
            candidate = ""
        if _VALID_REQUEST_ID.fullmatch(candidate):
            return candidate
        logger.warning("Ignoring malformed X-Request-ID header")
    return new_request_id()


class CorrelationIdMiddleware:
    """
    Middleware for adding a request ID to logs and responses.

    Usage in server.py:
        app.add_middleware(CorrelationIdMiddleware)

    A well-formed incoming X-Request-ID header is reused; otherwise one is generated.
    The ID is echoed back on the response.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        raw = next((value for key, value in scope.get("headers", []) if key.lower() == b"x-request-id"), None)
        request_id = accept_request_id(raw)

        async def send_with_request_id(message):
            if message["type"] == "http.response.start":
                headers_list = list(message.get("headers", []))
                headers_list.append((b"x-request-id", request_id.encode("utf-8")))
                message["headers"] = headers_list
            await send(message)

        token = request_id_var.set(request_id)
        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            request_id_var.reset(token)


class RequestLoggingMiddleware:
    """
    Logs one line per HTTP request with method, path, status and duration.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        status_holder = {"status": 500}

        async def send_with_status(message):
            if message["type"] == "http.response.start":
                status_holder["status"] = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_with_status)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{scope.get('method')} {scope.get('path')} - {status_holder['status']}",
                extra={
                    "method": scope.get("method"),
                    "path": scope.get("path"),
                    "status": status_holder["status"],
                    "duration_ms": round(duration_ms, 2),
                },
            )

"""
Exception handlers: every failure leaves the API in the error envelope.

    {"success": false, "error": "...", "details": "...", "status_code": 400}
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from api.response_models import ErrorResponse
from engine.errors import InvalidArgument, MissingParameter
from engine.frappe_client import FrappeError, describe_error

logger = logging.getLogger(__name__)

_ERROR_LABELS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    409: "Conflict",
    422: "Validation Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def error_response(status_code: int, details: str, error: str | None = None) -> JSONResponse:
    body = ErrorResponse(
        error=error or _ERROR_LABELS.get(status_code, "Application Error"),
        details=details,
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def _missing_parameter(request: Request, exc: MissingParameter) -> JSONResponse:
    return error_response(400, str(exc), error="Missing Parameter")


async def _invalid_argument(request: Request, exc: InvalidArgument) -> JSONResponse:
    return error_response(400, str(exc), error="Invalid Argument")


async def _frappe_error(request: Request, exc: FrappeError) -> JSONResponse:
    status, message = describe_error(exc)
    logger.warning(
        f"ERP error on {request.method} {request.url.path}: {exc.message}",
        extra={"erp_status": exc.http_status, "exc_type": exc.exc_type},
    )
    return error_response(status, message)


async def _http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    details = f"{location}: {message}" if location else message
    return error_response(400, details, error="Invalid Argument")


_UNEXPECTED = "An unexpected error occurred."


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, _UNEXPECTED, error="Application Error")


class UnhandledErrorMiddleware:
    """
    Turns exceptions no handler claimed into the 500 envelope.

    Starlette serves Exception handlers from its outermost layer, past the
    CORS and request ID middleware. Added first, this sits inside them so
    500 responses still carry X-Request-ID and CORS headers.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = False

        async def send_tracking(message):
            nonlocal started
            if message["type"] == "http.response.start":
                started = True
            await send(message)

        try:
            await self.app(scope, receive, send_tracking)
        except Exception:
            if started:
                raise
            logger.exception(f"Unhandled error on {scope.get('method')} {scope.get('path')}")
            response = error_response(500, _UNEXPECTED, error="Application Error")
            await response(scope, receive, send)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MissingParameter, _missing_parameter)
    app.add_exception_handler(InvalidArgument, _invalid_argument)
    app.add_exception_handler(FrappeError, _frappe_error)
    app.add_exception_handler(HTTPException, _http_exception)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled)

"""Catch-all exception interception for request handling.

Every exception that escapes a request handler is classified into a
``(status, message)`` outcome, logged, forwarded to telemetry and answered
with a two-field JSON body.
"""
from __future__ import annotations

import logging
import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .error_response import build_error_response
from .logger import AppLogger
from .telemetry import TelemetryClient

logger = logging.getLogger(__name__)

UNEXPECTED_ERROR_MESSAGE = "Unexpected error"
DEFAULT_ERROR_STATUS = 500
VALIDATION_ERROR_STATUS = 422
# Validation errors echo the raw input, so only this fixed text reaches the body.
VALIDATION_ERROR_MESSAGE = "Validation failed"


@runtime_checkable
class HttpAwareError(Protocol):
    status_code: int


@dataclass(frozen=True)
class ClassifiedOutcome:
    status_code: int
    message: str


def _explicit_status(exc: object) -> int | None:
    if not isinstance(exc, HttpAwareError):
        return None
    status = exc.status_code
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    if not 100 <= status <= 599:
        return None
    return status


def _user_message(exc: object) -> str:
    if not isinstance(exc, BaseException):
        return UNEXPECTED_ERROR_MESSAGE
    for attribute in ("message", "detail"):
        value = getattr(exc, attribute, None)
        if isinstance(value, str) and value:
            return value
    try:
        text = str(exc)
    except Exception:  # noqa: BLE001
        text = ""
    return text or UNEXPECTED_ERROR_MESSAGE


def classify_exception(exc: object) -> ClassifiedOutcome:
    """Derive the response status and message for any raised value."""
    if isinstance(exc, RequestValidationError):
        return ClassifiedOutcome(status_code=VALIDATION_ERROR_STATUS, message=VALIDATION_ERROR_MESSAGE)
    status = _explicit_status(exc)
    return ClassifiedOutcome(
        status_code=DEFAULT_ERROR_STATUS if status is None else status,
        message=_user_message(exc),
    )


def format_stack_trace(exc: object) -> str | None:
    if not isinstance(exc, BaseException):
        return None
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


class ExceptionInterceptor:
    """Turns an intercepted exception into exactly one log, one notice and one response.

    Holds only its collaborators; every call is independent, so one instance
    serves all concurrent requests.
    """

    def __init__(self, logger: AppLogger, telemetry: TelemetryClient) -> None:
        self._logger = logger
        self._telemetry = telemetry

    def handle(self, exc: object) -> JSONResponse:
        outcome = classify_exception(exc)

        try:
            self._logger.error(outcome.message, format_stack_trace(exc))
        except Exception:  # noqa: BLE001
            logger.warning("Error logger failed while recording an intercepted exception", exc_info=True)

        try:
            self._telemetry.notice_error(exc)
        except Exception:  # noqa: BLE001
            logger.warning("Telemetry client failed to notice an intercepted exception", exc_info=True)

        headers = exc.headers if isinstance(exc, StarletteHTTPException) else None
        return build_error_response(outcome, headers if isinstance(headers, Mapping) else None)

    async def __call__(self, request: Request, exc: Exception) -> JSONResponse:
        return self.handle(exc)


class ExceptionInterceptorMiddleware:
    """ASGI middleware routing every escaping exception to the interceptor.

    Once the response has started nothing can be sent any more; the exception
    is then left to the server.
    """

    def __init__(self, app: ASGIApp, interceptor: ExceptionInterceptor) -> None:
        self.app = app
        self.interceptor = interceptor

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                raise
            response = self.interceptor.handle(exc)
            await response(scope, receive, send)


def register_exception_interceptor(app: FastAPI, interceptor: ExceptionInterceptor) -> None:
    """Bind the interceptor once for every route of ``app``.

    ``HTTPException`` and ``RequestValidationError`` are consumed by the
    framework's own exception layer, so the interceptor is their handler there;
    everything else reaches the middleware.
    """
    app.add_exception_handler(StarletteHTTPException, interceptor)
    app.add_exception_handler(RequestValidationError, interceptor)
    app.add_middleware(ExceptionInterceptorMiddleware, interceptor=interceptor)

"""
Error taxonomy and the mapping from internal failures to HTTP responses.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_DEPENDENCY_MESSAGE = "Internal server error"


class ErrorKind(enum.Enum):
    VALIDATION = 400
    AUTHENTICATION = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    PAYLOAD_TOO_LARGE = 413
    DEPENDENCY = 500
    TIMEOUT = 504

    @property
    def status_code(self) -> int:
        return self.value


class GatewayError(Exception):
    """Base error carrying the kind that decides the response status."""

    kind: ErrorKind = ErrorKind.DEPENDENCY

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GatewayError):
    kind = ErrorKind.VALIDATION


class AuthenticationError(GatewayError):
    kind = ErrorKind.AUTHENTICATION


class ForbiddenError(GatewayError):
    kind = ErrorKind.FORBIDDEN


class NotFoundError(GatewayError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(GatewayError):
    kind = ErrorKind.CONFLICT


class PayloadTooLargeError(GatewayError):
    kind = ErrorKind.PAYLOAD_TOO_LARGE


class DependencyError(GatewayError):
    """An external service failed. The message is internal detail."""

    kind = ErrorKind.DEPENDENCY

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation


class DependencyTimeoutError(DependencyError):
    kind = ErrorKind.TIMEOUT


class StartupError(RuntimeError):
    """Raised when the process cannot be configured to serve requests."""


async def call_dependency(
    operation: str,
    fn: Callable[..., T],
    *args: Any,
    timeout: float | None = None,
    **kwargs: Any,
) -> T:
    """
    Run a blocking adapter call in the default executor and await its single
    result.

    The executor future settles exactly once, either with a value or with an
    exception. On timeout the request stops waiting and the worker thread is
    left to finish on its own. Gateway errors raised by the adapter pass
    through untouched; anything else becomes a DependencyError.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))
    try:
        return await asyncio.wait_for(future, timeout=timeout)
    except GatewayError:
        raise
    except asyncio.TimeoutError as exc:
        logger.error("%s timed out after %ss", operation, timeout)
        raise DependencyTimeoutError(
            operation, f"{operation} timed out"
        ) from exc
    except Exception as exc:
        logger.exception("%s failed: %s", operation, exc)
        raise DependencyError(operation, str(exc)) from exc


def _error_response(
    status_code: int, message: str, headers: dict | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"error": message}, headers=headers
    )


def register_exception_handlers(
    app: FastAPI, *, expose_dependency_errors: bool = False
) -> None:
    """Install the handlers that render every failure as {"error": message}."""

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        message = exc.message
        if isinstance(exc, DependencyError) and not expose_dependency_errors:
            message = GENERIC_DEPENDENCY_MESSAGE
        return _error_response(exc.kind.status_code, message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.info("Rejected request body for %s: %s", request.url.path, exc.errors())
        return _error_response(
            ErrorKind.VALIDATION.status_code, "Invalid request body"
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            exc.status_code, str(exc.detail), getattr(exc, "headers", None)
        )

"""Domain errors and their HTTP mapping.

Services raise subclasses of :class:`ConnectError` before any mutating store
call. The handlers registered by :func:`register_exception_handlers` turn
them, and anything unexpected, into ``{"error": ...}`` JSON bodies.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class ConnectError(Exception):
    """Base class for errors that carry an HTTP status and a client-safe message."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Bad request"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body sent to the client."""
        return {"error": self.message}


class Unauthenticated(ConnectError):
    """No caller identity, or the bearer token did not validate."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ValidationError(ConnectError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class InvalidOperation(ConnectError):
    """The caller targeted themselves where that makes no sense."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid operation"


class Forbidden(ConnectError):
    """Blocked, not checked in, or otherwise not allowed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(ConnectError):
    """Missing conversation, check-in or user."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(ConnectError):
    """Duplicate of an existing record."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class AlreadyBlocked(Conflict):
    """A block edge already exists in this direction."""

    default_message = "User is already blocked"


class CheckedOut(ConnectError):
    """A verification ping fell outside the fence and the check-in was ended."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "You have left the check-in area and were checked out"

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.message, "checkedOut": True}


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = str(first.get("msg", "Invalid value"))
    return f"{location}: {message}" if location else message


async def connect_error_handler(request: Request, exc: ConnectError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": _first_validation_message(exc)},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": INTERNAL_ERROR_MESSAGE},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the ``{"error": ...}`` handlers on an application."""
    app.add_exception_handler(ConnectError, connect_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)

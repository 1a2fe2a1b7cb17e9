"""Domain exceptions and the FastAPI handlers that render them.

Every failure the services raise derives from :class:`AppError` and carries
its HTTP status. Handlers turn them into the JSON envelope used by the API::

    {"status": "error", "message": "...", "errors": {...}}

Unexpected exceptions are logged with a stack trace and answered with a
generic 500 whose message never leaks internals.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

ErrorMap = Dict[str, List[str]]


class AppError(Exception):
    """Base class for failures that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, errors: Optional[ErrorMap] = None) -> None:
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)

    # message sent to the client; subclasses may hide internal detail
    @property
    def public_message(self) -> str:
        return self.message


# ---------- 422 ----------
class ValidationError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    message = "Validation failed"


class DuplicateEmail(ValidationError):
    def __init__(self) -> None:
        super().__init__(errors={"email": ["The email has already been taken."]})


# ---------- 401 ----------
class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthenticated."


class InvalidCredentials(AuthenticationError):
    message = "Invalid credentials"


class InvalidToken(AuthenticationError):
    message = "Invalid token"

    @property
    def public_message(self) -> str:
        return AuthenticationError.message


class ExpiredToken(InvalidToken):
    message = "Token has expired"


class UserNotFound(InvalidToken):
    message = "Token subject does not exist"


# ---------- 403 / 404 ----------
class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You are not authorized to perform this action"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Task not found"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
_LOCATION_PREFIXES = {"body", "query", "path", "header"}


def error_map_from_pydantic(items: Iterable[Dict[str, Any]]) -> ErrorMap:
    """Group pydantic error items by field name."""
    grouped: ErrorMap = {}
    for item in items:
        loc = [str(part) for part in item.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc) or "body"
        grouped.setdefault(field, []).append(item.get("msg", "Invalid value"))
    return grouped


def error_body(message: str, errors: Optional[ErrorMap] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "error", "message": message}
    if errors:
        body["errors"] = errors
    return body


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------
def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
        logger.info("auth failure on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.public_message, exc.errors),
        headers=headers,
    )


def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(ValidationError.message, error_map_from_pydantic(exc.errors())),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("An unexpected error occurred"),
    )


def register_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

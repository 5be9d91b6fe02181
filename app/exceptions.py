"""Custom exception classes and global exception handlers."""

import logging
import traceback

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas.common import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


class SchoolBridgeException(Exception):
    """Base exception for all application-specific errors."""

    code = "ERROR"

    def __init__(self, message: str, status_code: int = 400, code: str | None = None):
        self.message = message
        self.status_code = status_code
        if code:
            self.code = code
        super().__init__(self.message)


class NotFoundException(SchoolBridgeException):
    """Resource not found exception."""

    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found", 404)


class ForbiddenException(SchoolBridgeException):
    """Access forbidden exception."""

    code = "FORBIDDEN"

    def __init__(self, message: str = "You don't have permission to perform this action"):
        super().__init__(message, 403)


class UnauthorizedException(SchoolBridgeException):
    """Authentication required exception."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message, 401)


class ValidationException(SchoolBridgeException):
    """Validation error exception with field-level errors."""

    code = "VALIDATION_ERROR"

    def __init__(self, errors: list[ErrorDetail] | str):
        if isinstance(errors, str):
            errors = [ErrorDetail(field="general", message=errors)]
        super().__init__("Validation failed", 422)
        self.errors = errors


class CSVParseException(SchoolBridgeException):
    """The uploaded file could not be parsed as CSV."""

    code = "PARSE_ERROR"

    def __init__(self, message: str):
        super().__init__(message, 400)


class InvalidStateException(SchoolBridgeException):
    """Operation is not allowed for the resource's current status."""

    code = "INVALID_STATE"

    def __init__(self, message: str, current_status: str | None = None):
        super().__init__(message, 409)
        self.current_status = current_status


class TenantContextError(SchoolBridgeException):
    """Tenant context not set error."""

    code = "TENANT_REQUIRED"

    def __init__(self, message: str = "Tenant context is required"):
        super().__init__(message, 400)


class UserContextError(SchoolBridgeException):
    """User context not set error."""

    code = "UNAUTHORIZED"

    def __init__(self, message: str = "User context is required"):
        super().__init__(message, 401)


class ImportRowError(Exception):
    """A single import row could not be written.

    Raised by the per-type import strategies and caught by the executor,
    which records the message against the row and moves on.
    """

    def __init__(self, message: str, field: str = ""):
        self.message = message
        self.field = field
        super().__init__(message)


def _error_response(
    status_code: int,
    message: str,
    code: str,
    errors: list[ErrorDetail] | None = None,
) -> JSONResponse:
    body = ErrorResponse(message=message, code=code, errors=errors or None)
    return JSONResponse(status_code=status_code, content=body.to_content())


def create_exception_handlers():
    """Map exception types to handlers that render the error envelope."""

    async def app_exception_handler(request: Request, exc: SchoolBridgeException):
        logger.warning(
            f"{type(exc).__name__} on {request.method} {request.url.path}: "
            f"{exc.message} (status={exc.status_code})"
        )
        return _error_response(exc.status_code, exc.message, exc.code, getattr(exc, "errors", None))

    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Unknown routes, wrong methods and explicit HTTPExceptions."""
        return _error_response(exc.status_code, str(exc.detail), "HTTP_ERROR")

    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed request bodies, query strings and form fields."""
        errors = [
            ErrorDetail(
                field=".".join(str(part) for part in err.get("loc", ())[1:]) or "body",
                message=err.get("msg", "Invalid value"),
            )
            for err in exc.errors()
        ]
        logger.warning(
            f"Request validation failed on {request.method} {request.url.path}: "
            f"{[error.field for error in errors]}"
        )
        return _error_response(422, "Validation failed", "VALIDATION_ERROR", errors)

    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}: {exc}\n"
            + "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        )
        return _error_response(500, "An unexpected error occurred", "UNEXPECTED_ERROR")

    return {
        SchoolBridgeException: app_exception_handler,
        StarletteHTTPException: http_exception_handler,
        RequestValidationError: request_validation_handler,
        Exception: generic_exception_handler,
    }

"""
Global exception handlers and custom exception classes.
"""
import logging
import traceback
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Set up logging
logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """
    Error codes returned to API clients.
    """
    VALIDATION_ERROR = "VALIDATION_ERROR"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    USER_EXISTS = "USER_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_INACTIVE = "USER_INACTIVE"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_TOKEN = "INVALID_TOKEN"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    HTTP_ERROR = "HTTP_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INTERNAL = "INTERNAL"


# Transport status for every error code
STATUS_CODES: Dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.WEAK_PASSWORD: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.USER_INACTIVE: status.HTTP_403_FORBIDDEN,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.METHOD_NOT_ALLOWED: status.HTTP_405_METHOD_NOT_ALLOWED,
    ErrorCode.HTTP_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCode.USER_EXISTS: status.HTTP_409_CONFLICT,
    ErrorCode.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppException(Exception):
    """
    Base exception class for application-specific exceptions.

    The HTTP status is derived from the error code so the taxonomy and the
    transport mapping cannot drift apart.
    """
    def __init__(
        self,
        code: ErrorCode,
        detail: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(detail)
        self.code = code
        self.status_code = STATUS_CODES[code]
        self.detail = detail
        self.details = details
        self.headers = headers


class ValidationException(AppException):
    """Exception raised when required input is missing or malformed."""
    def __init__(self, detail: str = "Missing required fields", details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.VALIDATION_ERROR, detail, details)


def error_body(code: ErrorCode, detail: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Build the JSON error envelope shared by every handler.
    """
    body: Dict[str, Any] = {
        "success": False,
        "code": code.value,
        "detail": detail,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        body["details"] = details
    return body


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code >= 500:
        logger.error(f"Application error on {request.method} {request.url.path}: {exc.code.value} {exc.detail}")
    else:
        logger.info(f"Request rejected on {request.method} {request.url.path}: {exc.code.value} {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, exc.detail, exc.details),
        headers=exc.headers,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for request validation exceptions.

    Args:
        request: The request that caused the exception
        exc: The validation exception instance

    Returns:
        JSONResponse: 400 response with validation details
    """
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.info(f"Validation error on {request.method} {request.url.path}: {errors}")
    return JSONResponse(
        status_code=STATUS_CODES[ErrorCode.VALIDATION_ERROR],
        content=error_body(ErrorCode.VALIDATION_ERROR, "Validation error", {"errors": errors}),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for framework HTTP errors such as unknown routes and wrong methods.

    Args:
        request: The request that caused the exception
        exc: The HTTP exception instance

    Returns:
        JSONResponse: Standardized error response carrying the exception status
    """
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code = ErrorCode.NOT_FOUND
        detail = f"Route {request.method} {request.url.path} not found"
    elif exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code = ErrorCode.METHOD_NOT_ALLOWED
        detail = f"Method {request.method} not allowed for {request.url.path}"
    else:
        code = ErrorCode.HTTP_ERROR
        detail = str(exc.detail)
    logger.info(f"HTTP error on {request.method} {request.url.path}: {exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(code, detail),
        headers=getattr(exc, "headers", None),
    )


def build_unhandled_exception_handler(debug: bool):
    """
    Create the catch-all handler for unexpected exceptions.

    Internals are only exposed to the client when ``debug`` is enabled.
    """
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        details = None
        if debug:
            details = {"stack": traceback.format_exception(type(exc), exc, exc.__traceback__)}
        return JSONResponse(
            status_code=STATUS_CODES[ErrorCode.INTERNAL],
            content=error_body(ErrorCode.INTERNAL, "Internal server error", details),
        )
    return unhandled_exception_handler


# Register exception handlers with FastAPI app
def register_exception_handlers(app, debug: bool = False):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
        debug: Whether 500 responses may include tracebacks
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, build_unhandled_exception_handler(debug))

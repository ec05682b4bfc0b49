"""
Authentication-specific exceptions.
"""
from typing import Iterable, Union

from ..exceptions import AppException, ErrorCode
from .models import AccountStatus

BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}


class AuthException(AppException):
    """Base class for authentication exceptions."""


class WeakPasswordException(AuthException):
    """Exception raised when a password fails the strength policy."""
    def __init__(self, reasons: Iterable[str]):
        reasons = list(reasons)
        super().__init__(ErrorCode.WEAK_PASSWORD, ", ".join(reasons), details={"reasons": reasons})
        self.reasons = reasons

class UserExistsException(AuthException):
    """Exception raised when email already exists."""
    def __init__(self, detail: str = "User with this email already exists"):
        super().__init__(ErrorCode.USER_EXISTS, detail)

class UserNotFoundException(AuthException):
    """Exception raised when the account no longer exists."""
    def __init__(self, detail: str = "User not found"):
        super().__init__(ErrorCode.USER_NOT_FOUND, detail)

class UserInactiveException(AuthException):
    """Exception raised when account status prevents authentication."""
    def __init__(self, account_status: Union[str, AccountStatus]):
        status_value = account_status.value if hasattr(account_status, 'value') else str(account_status)
        super().__init__(
            ErrorCode.USER_INACTIVE,
            f"User account is {status_value}",
            details={"status": status_value},
        )
        self.account_status = status_value

class InvalidCredentialsException(AuthException):
    """Exception raised when credentials are invalid."""
    def __init__(self, detail: str = "Invalid email or password"):
        super().__init__(ErrorCode.INVALID_CREDENTIALS, detail)

class InvalidTokenException(AuthException):
    """Exception raised when a token is malformed, forged or expired."""
    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(ErrorCode.INVALID_TOKEN, detail, headers=BEARER_CHALLENGE)

class UnauthenticatedException(AuthException):
    """Exception raised when no caller identity is available."""
    def __init__(self, detail: str = "User not authenticated"):
        super().__init__(ErrorCode.UNAUTHENTICATED, detail, headers=BEARER_CHALLENGE)

class ForbiddenException(AuthException):
    """Exception raised when user doesn't have required role."""
    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(ErrorCode.FORBIDDEN, detail)

"""
Core security utilities for password hashing and strength validation.
"""
import logging
from typing import List, Optional

from passlib.context import CryptContext

from ..config import Settings

# Set up logging
logger = logging.getLogger(__name__)

SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{}|;:,.<>?/~`'\"\\"

# bcrypt only looks at the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72


class PasswordStrength:
    """Result of password strength validation."""

    def __init__(self, is_strong: bool, reasons: List[str]):
        self.is_strong = is_strong
        self.reasons = reasons

    def __repr__(self):
        return f"<PasswordStrength(is_strong={self.is_strong}, reasons={self.reasons})>"


class PasswordHasher:
    """
    Salted, cost-parameterized password hashing backed by bcrypt.

    Args:
        rounds: bcrypt cost factor
        min_length: Minimum accepted password length
        require_uppercase: Require at least one uppercase letter
        require_lowercase: Require at least one lowercase letter
        require_digit: Require at least one digit
        require_special: Require at least one special character
    """

    def __init__(
        self,
        rounds: int = 10,
        min_length: int = 8,
        require_uppercase: bool = True,
        require_lowercase: bool = True,
        require_digit: bool = True,
        require_special: bool = True,
    ):
        self.rounds = rounds
        self.min_length = min_length
        self.require_uppercase = require_uppercase
        self.require_lowercase = require_lowercase
        self.require_digit = require_digit
        self.require_special = require_special
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
            bcrypt__truncate_error=True,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "PasswordHasher":
        return cls(
            rounds=settings.bcrypt_rounds,
            min_length=settings.password_min_length,
            require_uppercase=settings.password_require_uppercase,
            require_lowercase=settings.password_require_lowercase,
            require_digit=settings.password_require_digit,
            require_special=settings.password_require_special,
        )

    def hash(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        A fresh salt is drawn on every call, so hashing the same password
        twice yields different strings.

        Args:
            password: Plain text password

        Returns:
            str: Hashed password

        Raises:
            ValueError: If the password is longer than bcrypt can represent
        """
        return self.pwd_context.hash(password)

    def verify(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        """
        Verify a password against a hash.

        Args:
            plain_password: Plain text password
            hashed_password: Hashed password to compare against

        Returns:
            bool: True if password matches hash, False on mismatch or a malformed hash
        """
        if not plain_password or not hashed_password:
            return False
        if len(plain_password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            return False
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification against malformed hash: {e}")
            return False

    def check_strength(self, password: str) -> PasswordStrength:
        """
        Validate password strength.

        Every rule is evaluated so callers can surface all guidance at once.

        Args:
            password: Password to validate

        Returns:
            PasswordStrength: Result with every violated rule
        """
        password = password or ""
        reasons = []

        if len(password) < self.min_length:
            reasons.append(f"Password must be at least {self.min_length} characters long")

        if len(password.encode("utf-8")) > BCRYPT_MAX_BYTES:
            reasons.append(f"Password must be at most {BCRYPT_MAX_BYTES} bytes long")

        if self.require_uppercase and not any(c.isupper() for c in password):
            reasons.append("Password must contain at least one uppercase letter")

        if self.require_lowercase and not any(c.islower() for c in password):
            reasons.append("Password must contain at least one lowercase letter")

        if self.require_digit and not any(c.isdigit() for c in password):
            reasons.append("Password must contain at least one number")

        if self.require_special and not any(c in SPECIAL_CHARACTERS for c in password):
            reasons.append("Password must contain at least one special character")

        return PasswordStrength(is_strong=not reasons, reasons=reasons)

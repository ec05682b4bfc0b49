"""
JWT token creation and verification.

Access and refresh tokens are signed with separate secrets so a leaked secret
of one kind cannot be used to forge the other.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from jose import jwt, JWTError
from pydantic import BaseModel, ValidationError

from ..auth.exceptions import InvalidTokenException
from ..auth.models import UserRole
from ..config import Settings

# Set up logging
logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccessTokenClaims(BaseModel):
    """Identity and role carried by an access token."""
    account_id: int
    email: str
    role: UserRole
    iat: int
    exp: int
    type: str = ACCESS_TOKEN_TYPE


class RefreshTokenClaims(BaseModel):
    """Identity carried by a refresh token. The role is re-read on refresh."""
    account_id: int
    iat: int
    exp: int
    type: str = REFRESH_TOKEN_TYPE


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class TokenService:
    """
    Issues and verifies signed, time-limited bearer tokens.

    Args:
        access_secret: Secret for access tokens
        refresh_secret: Secret for refresh tokens
        algorithm: JWS algorithm shared by both token kinds
        access_ttl: Access token lifetime
        refresh_ttl: Refresh token lifetime
        clock: Returns the current aware UTC time
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(hours=24),
        refresh_ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utc_now,
    ):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], datetime] = utc_now) -> "TokenService":
        return cls(
            access_secret=settings.jwt_secret,
            refresh_secret=settings.refresh_token_secret,
            algorithm=settings.jwt_algorithm,
            access_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_ttl=timedelta(days=settings.refresh_token_expire_days),
            clock=clock,
        )

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_ttl.total_seconds())

    def _encode(self, claims: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        issued_at = int(self.clock().timestamp())
        to_encode = dict(claims)
        to_encode.update({
            "iat": issued_at,
            "exp": issued_at + int(ttl.total_seconds()),
        })
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def _decode(self, token: str, secret: str, token_type: str) -> Dict[str, Any]:
        """
        Verify signature, token type and expiry.

        Expiry is checked here rather than by jose so that it is strict
        (valid only while now < exp) and follows the injected clock.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenException()
        try:
            payload = jwt.decode(
                token, secret, algorithms=[self.algorithm], options={"verify_exp": False}
            )
        except JWTError as e:
            logger.debug(f"Rejected {token_type} token: {e}")
            raise InvalidTokenException()

        if payload.get("type") != token_type:
            logger.debug(f"Rejected {token_type} token: wrong type {payload.get('type')!r}")
            raise InvalidTokenException()

        exp = payload.get("exp")
        if not isinstance(exp, int) or self.clock().timestamp() >= exp:
            logger.debug(f"Rejected {token_type} token: expired or missing expiry")
            raise InvalidTokenException()

        return payload

    def issue_access_token(self, account_id: int, email: str, role: UserRole) -> str:
        """
        Create a signed access token.

        Args:
            account_id: Account primary key
            email: Account email at issue time
            role: Account role at issue time

        Returns:
            str: Encoded JWT token
        """
        claims = {
            "account_id": account_id,
            "email": email,
            "role": UserRole(role).value,
            "type": ACCESS_TOKEN_TYPE,
        }
        return self._encode(claims, self.access_secret, self.access_ttl)

    def issue_refresh_token(self, account_id: int) -> str:
        """
        Create a signed refresh token carrying only the account id.

        Args:
            account_id: Account primary key

        Returns:
            str: Encoded refresh token
        """
        claims = {"account_id": account_id, "type": REFRESH_TOKEN_TYPE}
        return self._encode(claims, self.refresh_secret, self.refresh_ttl)

    def issue_token_pair(self, account_id: int, email: str, role: UserRole) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access_token(account_id, email, role),
            refresh_token=self.issue_refresh_token(account_id),
            expires_in=self.access_expires_in,
        )

    def verify_access_token(self, token: str) -> AccessTokenClaims:
        """
        Verify and decode an access token.

        Raises:
            InvalidTokenException: On any signature, format, type or expiry failure
        """
        payload = self._decode(token, self.access_secret, ACCESS_TOKEN_TYPE)
        try:
            return AccessTokenClaims.model_validate(payload)
        except ValidationError:
            logger.debug("Rejected access token: malformed claims")
            raise InvalidTokenException()

    def verify_refresh_token(self, token: str) -> RefreshTokenClaims:
        """
        Verify and decode a refresh token.

        Raises:
            InvalidTokenException: On any signature, format, type or expiry failure
        """
        payload = self._decode(token, self.refresh_secret, REFRESH_TOKEN_TYPE)
        try:
            return RefreshTokenClaims.model_validate(payload)
        except ValidationError:
            logger.debug("Rejected refresh token: malformed claims")
            raise InvalidTokenException()

    def decode(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Read token claims without checking the signature.

        For diagnostics only; never use the result for authorization.
        """
        try:
            return jwt.get_unverified_claims(token)
        except (JWTError, AttributeError, TypeError):
            return None

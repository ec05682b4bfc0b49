"""
FastAPI dependencies for authentication and authorization.
"""
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from ..core.permissions import ADMIN_OR_ABOVE, MEDICAL_STAFF, authorize, authorize_all
from ..core.security import PasswordHasher
from ..core.tokens import AccessTokenClaims, TokenService
from ..database import get_db
from .exceptions import UnauthenticatedException
from .models import User, UserRole
from .repository import AccountRepository
from .service import AccountAdminService, AuthService

# Bearer scheme; missing credentials are reported by get_current_claims
bearer_scheme = HTTPBearer(auto_error=False)


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_account_repository(db: Session = Depends(get_db)) -> AccountRepository:
    return AccountRepository(db)


def get_auth_service(
    request: Request,
    accounts: AccountRepository = Depends(get_account_repository),
    hasher: PasswordHasher = Depends(get_password_hasher),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    settings = request.app.state.settings
    return AuthService(accounts, hasher, tokens, settings.allow_admin_self_registration)


def get_admin_service(accounts: AccountRepository = Depends(get_account_repository)) -> AccountAdminService:
    return AccountAdminService(accounts)


def get_current_claims(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> AccessTokenClaims:
    """
    Verify the bearer token from the Authorization header.

    Returns:
        AccessTokenClaims: Verified claims

    Raises:
        UnauthenticatedException: If no bearer token was sent
        InvalidTokenException: If the token does not verify
    """
    if credentials is None or not credentials.credentials:
        raise UnauthenticatedException("No valid authorization token provided")
    return tokens.verify_access_token(credentials.credentials)


def get_current_user(
    claims: AccessTokenClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
) -> User:
    """
    Get the caller's current account row.

    Raises:
        UserNotFoundException: If the account was deleted after the token was issued
    """
    return service.identify(claims.account_id)


def require_roles(*allowed_roles: UserRole):
    """
    Dependency factory to require one of the given roles.

    Args:
        allowed_roles: Roles that are allowed access

    Returns:
        Function that checks the caller's token role
    """
    allowed = frozenset(allowed_roles)

    def role_checker(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        authorize(claims.role, allowed)
        return claims
    return role_checker


def require_all_roles(*required_roles: UserRole):
    """
    Dependency factory to require every given role.
    """
    required = frozenset(required_roles)

    def all_roles_checker(claims: AccessTokenClaims = Depends(get_current_claims)) -> AccessTokenClaims:
        authorize_all(claims.role, required)
        return claims
    return all_roles_checker


# Convenience dependencies for the fixed policies
require_admin_or_above = require_roles(*ADMIN_OR_ABOVE)
require_medical_staff = require_roles(*MEDICAL_STAFF)

"""
Authentication service layer for business logic.
"""
import logging
from typing import Optional

from fastapi import Request

from ..core.audit_service import record_audit_event
from ..core.permissions import ADMIN_OR_ABOVE, authorize, can_manage
from ..core.security import PasswordHasher
from ..core.tokens import TokenService
from ..exceptions import ValidationException
from .exceptions import (
    ForbiddenException,
    InvalidCredentialsException,
    InvalidTokenException,
    UserExistsException,
    UserInactiveException,
    UserNotFoundException,
    WeakPasswordException,
)
from .models import AccountStatus, User, UserRole
from .repository import AccountRepository
from .schemas import AuthResponse, UserResponse

# Set up logging
logger = logging.getLogger(__name__)

USERS_RESOURCE = "users"


class AuthService:
    """
    Register, login, identify, refresh and logout flows.

    Args:
        accounts: Account store for the current request
        hasher: Password hasher built from settings
        tokens: Token service built from settings
        allow_admin_self_registration: Whether register may grant ADMIN or SUPER_ADMIN
    """

    def __init__(self, accounts: AccountRepository, hasher: PasswordHasher, tokens: TokenService,
                 allow_admin_self_registration: bool = True):
        self.accounts = accounts
        self.hasher = hasher
        self.tokens = tokens
        self.allow_admin_self_registration = allow_admin_self_registration

    def _audit(self, action: str, user_id: Optional[int], record_id: Optional[int],
               details: dict, request: Optional[Request]) -> None:
        record_audit_event(
            self.accounts.db,
            action=action,
            resource=USERS_RESOURCE,
            user_id=user_id,
            record_id=record_id,
            details=details,
            request=request,
        )

    def _auth_response(self, user: User) -> AuthResponse:
        pair = self.tokens.issue_token_pair(user.id, user.email, user.role)
        return AuthResponse(
            user=UserResponse.model_validate(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            token_type=pair.token_type,
            expires_in=pair.expires_in,
        )

    def register(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        phone: Optional[str] = None,
        role: Optional[UserRole] = None,
        request: Optional[Request] = None
    ) -> AuthResponse:
        """
        Register a new account and sign it in.

        Args:
            email: Login email, stored as given
            password: Plain text password
            first_name: User's first name
            last_name: User's last name
            phone: Contact number (optional)
            role: Requested role, PATIENT when omitted
            request: FastAPI request object for audit logging

        Returns:
            AuthResponse with the new account and a token pair

        Raises:
            ValidationException: If a required field is blank
            WeakPasswordException: If the password fails the strength policy
            UserExistsException: If a non-deleted account already uses the email
            ForbiddenException: If an administrative role is requested while that is disabled
        """
        required = {"email": email, "password": password, "first_name": first_name, "last_name": last_name}
        missing = [name for name, value in required.items() if not value or not str(value).strip()]
        if missing:
            raise ValidationException("Missing required fields", details={"fields": missing})

        role = UserRole(role) if role else UserRole.PATIENT
        if role in ADMIN_OR_ABOVE and not self.allow_admin_self_registration:
            logger.warning(f"Registration rejected for {email}: self-assigned role {role.value}")
            raise ForbiddenException("Administrative roles cannot be self-assigned")

        strength = self.hasher.check_strength(password)
        if not strength.is_strong:
            logger.info(f"Registration rejected for {email}: weak password")
            raise WeakPasswordException(strength.reasons)

        if self.accounts.find_by_email(email) is not None:
            logger.warning(f"Registration failed: Email {email} already registered")
            raise UserExistsException()

        user = self.accounts.insert(User(
            email=email,
            password_hash=self.hasher.hash(password),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            phone=phone,
            role=role,
            status=AccountStatus.ACTIVE,
        ))
        logger.info(f"User registered successfully: {user.id} ({user.email})")
        self._audit("USER_REGISTERED", user.id, user.id,
                    {"email": user.email, "role": user.role.value}, request)

        return self._auth_response(user)

    def login(self, email: str, password: str, request: Optional[Request] = None) -> AuthResponse:
        """
        Authenticate an account and issue tokens.

        Unknown emails and wrong passwords fail the same way so that
        responses do not reveal which accounts exist.

        Raises:
            ValidationException: If the email or password is blank
            InvalidCredentialsException: If the account is missing or the password is wrong
            UserInactiveException: If the account is not ACTIVE
        """
        missing = [name for name, value in (("email", email), ("password", password)) if not value]
        if missing:
            raise ValidationException("Missing required fields", details={"fields": missing})

        user = self.accounts.find_by_email(email)
        if user is None:
            logger.warning(f"Login failed: Invalid credentials for {email}")
            raise InvalidCredentialsException()

        if user.status != AccountStatus.ACTIVE:
            logger.warning(f"Login failed: Account status {user.status.value} for {email}")
            raise UserInactiveException(user.status)

        if not self.hasher.verify(password, user.password_hash):
            logger.warning(f"Login failed: Invalid credentials for {email}")
            raise InvalidCredentialsException()

        user = self.accounts.update_last_login(user)
        logger.info(f"User logged in successfully: {user.id} ({user.email})")
        self._audit("USER_LOGIN", user.id, user.id, {"email": user.email}, request)

        return self._auth_response(user)

    def identify(self, account_id: int) -> User:
        """
        Re-read the caller's account from the store.

        Token claims can be stale after role or status changes, so anything
        beyond the access gate uses the stored row.

        Raises:
            UserNotFoundException: If the account was deleted since the token was issued
        """
        user = self.accounts.find_by_id(account_id)
        if user is None:
            raise UserNotFoundException()
        return user

    def refresh(self, refresh_token: str, request: Optional[Request] = None) -> AuthResponse:
        """
        Exchange a refresh token for a new token pair with the current role.

        Raises:
            InvalidTokenException: If the token is invalid or its account is gone
            UserInactiveException: If the account is no longer ACTIVE
        """
        claims = self.tokens.verify_refresh_token(refresh_token)
        user = self.accounts.find_by_id(claims.account_id)
        if user is None:
            logger.warning(f"Token refresh failed: account {claims.account_id} not found")
            raise InvalidTokenException()
        if user.status != AccountStatus.ACTIVE:
            logger.warning(f"Token refresh failed: Account status {user.status.value} for {user.id}")
            raise UserInactiveException(user.status)

        logger.info(f"Token refreshed for user {user.id} ({user.email})")
        self._audit("USER_TOKEN_REFRESHED", user.id, user.id, {"email": user.email}, request)
        return self._auth_response(user)

    def logout(self, account_id: int, request: Optional[Request] = None) -> None:
        """
        Acknowledge a logout.

        Tokens are stateless; the presented token stays valid until it expires.
        """
        logger.info(f"User logged out: {account_id}")
        self._audit("USER_LOGOUT", account_id, account_id, {}, request)


class AccountAdminService:
    """
    Administrative account changes, limited by the actor's role hierarchy.
    """

    def __init__(self, accounts: AccountRepository):
        self.accounts = accounts

    def _target(self, actor: User, user_id: int) -> User:
        authorize(actor.role, ADMIN_OR_ABOVE)
        target = self.accounts.find_by_id(user_id)
        if target is None:
            raise UserNotFoundException()
        if not can_manage(actor.role, target.role):
            raise ForbiddenException(
                f"User role {actor.role.value} cannot manage {target.role.value} accounts"
            )
        return target

    def _ensure_not_self(self, actor: User, target: User) -> None:
        if actor.id == target.id:
            raise ForbiddenException("Administrators cannot change their own account")

    def get_account(self, actor: User, user_id: int) -> User:
        return self._target(actor, user_id)

    def change_status(self, actor: User, user_id: int, status: AccountStatus,
                      request: Optional[Request] = None) -> User:
        target = self._target(actor, user_id)
        self._ensure_not_self(actor, target)
        previous = target.status
        target = self.accounts.update_status(target, AccountStatus(status))
        logger.info(f"Account {target.id} status changed {previous.value} -> {target.status.value} by {actor.id}")
        record_audit_event(
            self.accounts.db, action="USER_STATUS_CHANGED", resource=USERS_RESOURCE,
            user_id=actor.id, record_id=target.id,
            details={"old_status": previous.value, "new_status": target.status.value},
            request=request,
        )
        return target

    def change_role(self, actor: User, user_id: int, role: UserRole,
                    request: Optional[Request] = None) -> User:
        target = self._target(actor, user_id)
        self._ensure_not_self(actor, target)
        role = UserRole(role)
        if not can_manage(actor.role, role):
            raise ForbiddenException(f"User role {actor.role.value} cannot assign role {role.value}")
        previous = target.role
        target = self.accounts.update_role(target, role)
        logger.info(f"Account {target.id} role changed {previous.value} -> {target.role.value} by {actor.id}")
        record_audit_event(
            self.accounts.db, action="USER_ROLE_CHANGED", resource=USERS_RESOURCE,
            user_id=actor.id, record_id=target.id,
            details={"old_role": previous.value, "new_role": target.role.value},
            request=request,
        )
        return target

    def delete_account(self, actor: User, user_id: int, request: Optional[Request] = None) -> User:
        target = self._target(actor, user_id)
        self._ensure_not_self(actor, target)
        target = self.accounts.soft_delete(target)
        record_audit_event(
            self.accounts.db, action="USER_DELETED", resource=USERS_RESOURCE,
            user_id=actor.id, record_id=target.id,
            details={"email": target.email, "role": target.role.value},
            request=request,
        )
        return target

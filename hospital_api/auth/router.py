"""
Authentication routes for the hospital API.
"""
import logging

from fastapi import APIRouter, Depends, Request, status

from ..core.tokens import AccessTokenClaims
from .dependencies import get_auth_service, get_current_claims, get_current_user
from .models import User
from .schemas import (
    AuthResponse, LoginRequest, MessageResponse, RefreshRequest, RegisterRequest, UserResponse
)
from .service import AuthService

# Set up logging
logger = logging.getLogger(__name__)

# Create API router
router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED, summary="Register Account")
def register_route(
    data: RegisterRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service)
):
    """
    Register a new account. The role defaults to PATIENT.

    Returns:
        AuthResponse with the new account and a token pair
    """
    return service.register(
        email=data.email,
        password=data.password,
        first_name=data.first_name,
        last_name=data.last_name,
        phone=data.phone,
        role=data.role,
        request=request
    )


@router.post("/login", response_model=AuthResponse, summary="User Login")
def login_route(
    login_data: LoginRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service)
):
    """
    User login endpoint.

    Returns:
        AuthResponse with access and refresh tokens
    """
    return service.login(email=login_data.email, password=login_data.password, request=request)


@router.post("/refresh", response_model=AuthResponse, summary="Refresh Access Token")
def refresh_route(
    data: RefreshRequest,
    request: Request,
    service: AuthService = Depends(get_auth_service)
):
    """
    Exchange a refresh token for a new token pair carrying the current role.
    """
    return service.refresh(data.refresh_token, request=request)


@router.get("/me", response_model=UserResponse, summary="Get Current User Profile")
def me_route(current_user: User = Depends(get_current_user)):
    """
    Return the caller's account as currently stored.
    """
    return current_user


@router.post("/logout", response_model=MessageResponse, summary="User Logout")
def logout_route(
    request: Request,
    claims: AccessTokenClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service)
):
    """
    Logout endpoint.

    No server-side invalidation happens; clients discard their tokens.
    """
    service.logout(claims.account_id, request=request)
    return {"message": "Logged out successfully"}

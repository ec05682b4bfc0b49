"""
User Schemas - Pydantic models for request validation and response serialization.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
from .models import UserRole, AccountStatus

class RegisterRequest(BaseModel):
    """
    Registration Schema - Used when a new account signs up

    Fields:
    - email: Login email
    - password: Plain text password (hashed before storage)
    - first_name / last_name: User's name
    - phone: Contact number (optional)
    - role: Requested role, PATIENT when omitted
    """
    email: EmailStr
    password: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    role: Optional[UserRole] = None

class LoginRequest(BaseModel):
    """
    Login Schema - Used for authentication
    """
    email: EmailStr
    password: str = Field(..., min_length=1)

class RefreshRequest(BaseModel):
    """
    Refresh Schema - Exchanges a refresh token for a new token pair
    """
    refresh_token: str = Field(..., min_length=1)

class StatusUpdate(BaseModel):
    """
    Status Update Schema - Used by administrators to change account status
    """
    status: AccountStatus

class RoleUpdate(BaseModel):
    """
    Role Update Schema - Used by administrators to change an account's role
    """
    role: UserRole

class UserResponse(BaseModel):
    """
    User Response Schema - Account projection returned to clients

    The password hash and soft-delete marker are never exposed.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    first_name: str
    last_name: str
    phone: Optional[str] = None
    avatar: Optional[str] = None
    role: UserRole
    status: AccountStatus
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class AuthResponse(BaseModel):
    """
    Auth Response Schema - Returned after register, login and refresh

    Fields:
    - user: Current account projection
    - access_token: Short-lived bearer token
    - refresh_token: Long-lived token for /auth/refresh
    - token_type: Always "bearer"
    - expires_in: Access token lifetime in seconds
    """
    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int

class MessageResponse(BaseModel):
    message: str

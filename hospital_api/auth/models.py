"""
User Model - Stores every account that can authenticate against the hospital API.
"""
from sqlalchemy import Column, Integer, String, DateTime, Enum, Index, text
from sqlalchemy.sql import func
import enum
from ..database import Base

class UserRole(str, enum.Enum):
    """
    Enumeration for user roles in the hospital system.

    The set is closed: every account holds exactly one of these nine roles.
    """
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    LAB_TECHNICIAN = "LAB_TECHNICIAN"
    PHARMACIST = "PHARMACIST"
    RECEPTIONIST = "RECEPTIONIST"
    ACCOUNTANT = "ACCOUNTANT"
    PATIENT = "PATIENT"

class AccountStatus(str, enum.Enum):
    """
    Enumeration for account status types.

    Status Types:
    - ACTIVE: Account may authenticate
    - INACTIVE: Account disabled by an administrator
    - SUSPENDED: Account temporarily blocked
    - ARCHIVED: Account kept for history only
    """
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"
    ARCHIVED = "ARCHIVED"

class User(Base):
    """
    User Model - Stores all account information in the system

    Fields:
    - id: Primary key for user identification
    - email: Email address used for login, unique among non-deleted accounts
    - password_hash: Salted one-way hash (never store raw passwords)
    - first_name / last_name: User's name
    - phone: Contact number (optional)
    - avatar: URL to the user's picture (optional)
    - role: Exactly one UserRole
    - status: Current AccountStatus
    - last_login: Timestamp of the last successful login
    - deleted_at: Soft-delete marker, rows are never hard-deleted
    - created_at / updated_at: Audit timestamps
    """
    __tablename__ = "users"
    __table_args__ = (
        # Email is unique among live accounts only, so soft-deleted rows keep theirs
        Index(
            "uq_users_email_active",
            "email",
            unique=True,
            sqlite_where=text("deleted_at IS NULL"),
            postgresql_where=text("deleted_at IS NULL"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.PATIENT)
    status = Column(Enum(AccountStatus), nullable=False, default=AccountStatus.ACTIVE)
    last_login = Column(DateTime(timezone=True), nullable=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}', status='{self.status}')>"

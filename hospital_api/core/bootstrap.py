"""
Bootstrap utilities for first super admin creation.
Handles automatic creation of the first super admin from settings.
"""
import logging

from sqlalchemy.orm import Session

from ..auth.models import AccountStatus, User, UserRole
from ..auth.repository import AccountRepository
from ..config import Settings
from .security import PasswordHasher

logger = logging.getLogger(__name__)


def bootstrap_admin_if_needed(db: Session, settings: Settings, hasher: PasswordHasher) -> bool:
    """
    Create the first super admin from settings if none exists.

    Args:
        db: Database session
        settings: Application settings with the bootstrap credentials
        hasher: Password hasher

    Returns:
        bool: True if a super admin was created
    """
    if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
        logger.info("Bootstrap admin credentials not configured, skipping")
        return False

    accounts = AccountRepository(db)
    if accounts.exists_with_role(UserRole.SUPER_ADMIN):
        logger.info("Super admin already exists, skipping bootstrap")
        return False

    if accounts.find_by_email(settings.bootstrap_admin_email) is not None:
        logger.warning(f"Bootstrap failed: Email {settings.bootstrap_admin_email} already exists")
        return False

    accounts.insert(User(
        email=settings.bootstrap_admin_email,
        password_hash=hasher.hash(settings.bootstrap_admin_password),
        first_name="System",
        last_name="Administrator",
        role=UserRole.SUPER_ADMIN,
        status=AccountStatus.ACTIVE,
    ))
    logger.info(f"Bootstrap super admin created: {settings.bootstrap_admin_email}")
    return True

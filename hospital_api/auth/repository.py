"""
Account store backed by SQLAlchemy.

Lookups exclude soft-deleted rows unless asked otherwise.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .exceptions import UserExistsException
from .models import User, UserRole, AccountStatus

logger = logging.getLogger(__name__)


class AccountRepository:
    """
    Reads and writes User rows through a request-scoped session.
    """

    def __init__(self, db: Session):
        self.db = db

    def _query(self, include_deleted: bool = False):
        query = self.db.query(User)
        if not include_deleted:
            query = query.filter(User.deleted_at.is_(None))
        return query

    def find_by_email(self, email: str, include_deleted: bool = False) -> Optional[User]:
        return self._query(include_deleted).filter(User.email == email).first()

    def find_by_id(self, user_id: int, include_deleted: bool = False) -> Optional[User]:
        return self._query(include_deleted).filter(User.id == user_id).first()

    def exists_with_role(self, role: UserRole) -> bool:
        return self._query().filter(User.role == role).count() > 0

    def insert(self, user: User) -> User:
        """
        Persist a new account.

        Raises:
            UserExistsException: If a live account took the email first
        """
        email = user.email
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "email" not in str(e.orig):
                raise
            logger.warning(f"Account insert rejected: email {email} already in use")
            raise UserExistsException()
        self.db.refresh(user)
        logger.info(f"Account created: {user.id} ({user.role.value})")
        return user

    def update_last_login(self, user: User) -> User:
        user.last_login = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_status(self, user: User, status: AccountStatus) -> User:
        user.status = status
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_role(self, user: User, role: UserRole) -> User:
        user.role = role
        self.db.commit()
        self.db.refresh(user)
        return user

    def soft_delete(self, user: User) -> User:
        user.deleted_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Account soft-deleted: {user.id}")
        return user

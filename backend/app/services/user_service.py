"""
User store: lookup, idempotent creation on first OTP login, admin-created accounts
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.security import hash_password, verify_password
from ..models import User, UserRole
from ..utils.clock import utcnow
from ..utils.phone import default_display_name, get_phone_last4

logger = logging.getLogger(__name__)


class DuplicateUserError(ValueError):
    """Mobile number or email already belongs to another account."""


class UserService:
    """Static helpers over the users table, in the style of the other services."""

    @staticmethod
    def find_by_mobile(db: Session, mobile_number: str) -> Optional[User]:
        return db.query(User).filter(User.mobile_number == mobile_number).first()

    @staticmethod
    def get(db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)

    @staticmethod
    def get_or_create_by_mobile(db: Session, mobile_number: str) -> User:
        """
        Return the user for a mobile number, creating it on first login.

        The insert is guarded by the UNIQUE constraint on mobile_number: when
        a concurrent verification creates the row first, our insert fails,
        and we read back the winner's row instead of creating a duplicate.
        """
        user = UserService.find_by_mobile(db, mobile_number)
        if user is not None:
            return user

        user = User(
            mobile_number=mobile_number,
            name=default_display_name(mobile_number),
            role=UserRole.USER.value,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            existing = UserService.find_by_mobile(db, mobile_number)
            if existing is None:
                raise
            logger.info(f"[Users] Concurrent first login for ...{get_phone_last4(mobile_number)}, reusing row")
            return existing

        db.refresh(user)
        logger.info(f"[Users] Created user {user.id} for ...{get_phone_last4(mobile_number)}")
        return user

    @staticmethod
    def touch_last_login(db: Session, user: User) -> User:
        user.last_login = utcnow()
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_user(
        db: Session,
        mobile_number: str,
        name: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
        role: str = UserRole.USER.value,
        created_by: Optional[int] = None,
    ) -> User:
        """
        Create an account administratively.

        Raises:
            DuplicateUserError: If the mobile number or email is taken
        """
        if UserService.find_by_mobile(db, mobile_number):
            raise DuplicateUserError("User with this mobile number already exists")
        if email and db.query(User).filter(User.email == email).first():
            raise DuplicateUserError("User with this email already exists")

        user = User(
            mobile_number=mobile_number,
            name=name,
            email=email,
            password_hash=hash_password(password) if password else None,
            role=role,
            created_by=created_by,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateUserError("User with this mobile number or email already exists") from e
        db.refresh(user)
        return user

    @staticmethod
    def authenticate(db: Session, mobile_number: str, password: str) -> Optional[User]:
        """Password check for admin-created accounts. OTP-only users have no password and never match."""
        user = UserService.find_by_mobile(db, mobile_number)
        if user is None or not verify_password(password, user.password_hash):
            return None
        return user

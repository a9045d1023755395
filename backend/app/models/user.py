from ..utils.clock import utcnow
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from ..db import Base


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    mobile_number = Column(String(16), unique=True, nullable=False, index=True)  # uniqueness closes the lazy-create race
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    password_hash = Column(String, nullable=True)  # only for admin-created accounts
    role = Column(String(16), nullable=False, default=UserRole.USER.value)
    status = Column(String(16), nullable=False, default=UserStatus.ACTIVE.value)
    last_login = Column(DateTime, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    def to_public(self) -> dict:
        """Minimal projection returned to clients after login."""
        return {
            "id": self.id,
            "mobile_number": self.mobile_number,
            "name": self.name,
            "role": self.role,
        }

# schoolms/models/user.py
import enum
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from .base import Base


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    TEACHER = "TEACHER"
    STAFF = "STAFF"
    PARENT = "PARENT"
    STUDENT = "STUDENT"


class User(Base):
    __tablename__ = "users"

    email = Column(String(254), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=True, unique=True)
    full_name = Column(String(150), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.STUDENT.value, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    need_password_change = Column(Boolean, default=False, nullable=False)
    last_login_at = Column(DateTime)

    created_by_id = Column(Uuid, nullable=True)
    updated_by_id = Column(Uuid, nullable=True)

    sessions = relationship("UserSession", back_populates="user")


class UserSession(Base):
    __tablename__ = "user_sessions"

    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    ip_address = Column(String(64))
    user_agent = Column(String(500))
    last_activity_at = Column(DateTime)
    expires_at = Column(DateTime)
    revoked_at = Column(DateTime, index=True)

    user = relationship("User", back_populates="sessions")

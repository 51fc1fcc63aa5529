"""ORM model for user accounts (credentials and RBAC role)."""

from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.models.base import Base


class Role(str, Enum):
    """Account role; determines authorization decisions."""

    USER = "USER"
    ADMIN = "ADMIN"


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    password holds the bcrypt digest, never the plain text. created_at and
    updated_at are set by the service layer.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"

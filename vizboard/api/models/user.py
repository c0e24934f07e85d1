# vizboard/api/models/user.py
from sqlalchemy import Boolean, Column, String, DateTime, func
from sqlalchemy.orm import relationship
import uuid
from vizboard.api.dependencies.database import Base


def _isoformat(value):
    return value.isoformat() if value else None


class User(Base):
    """User model"""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )
    last_login_at = Column(DateTime)

    # Relationships
    settings = relationship(
        "UserSetting", back_populates="user", cascade="all, delete-orphan"
    )
    memberships = relationship(
        "GroupMember", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.email}>"

    def to_dict(self):
        """Convert to dictionary; the password hash never leaves the model"""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "isActive": bool(self.is_active),
            "createdAt": _isoformat(self.created_at),
            "lastLoginAt": _isoformat(self.last_login_at),
        }

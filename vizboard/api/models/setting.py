# vizboard/api/models/setting.py
from sqlalchemy import (
    Boolean,
    Column,
    String,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship
import uuid
from vizboard.api.dependencies.database import Base


def _new_id():
    return str(uuid.uuid4())


class UserSetting(Base):
    """One typed setting per (user, key); the value is stored as text"""

    __tablename__ = "user_settings"
    __table_args__ = (
        UniqueConstraint("user_id", "setting_key", name="uq_user_settings_user_key"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    setting_key = Column(String(100), nullable=False)
    setting_value = Column(Text, nullable=False)
    setting_type = Column(String(20), nullable=False, default="string")
    is_global = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    user = relationship("User", back_populates="settings")

    def __repr__(self):
        return f"<UserSetting {self.user_id}:{self.setting_key}>"


class UserGroup(Base):
    """Named group whose settings are shared by its members"""

    __tablename__ = "user_groups"

    id = Column(String(36), primary_key=True, default=_new_id)
    group_name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=False, default="")
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    members = relationship(
        "GroupMember", back_populates="group", cascade="all, delete-orphan"
    )
    settings = relationship(
        "GroupSetting", back_populates="group", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<UserGroup {self.group_name}>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "groupName": self.group_name,
            "description": self.description,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


class GroupMember(Base):
    """Membership of a user in a group, with an admin or member role"""

    __tablename__ = "user_group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(
        String(36),
        ForeignKey("user_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String(20), nullable=False, default="member")
    joined_at = Column(DateTime, server_default=func.now(), nullable=False)

    # Relationships
    group = relationship("UserGroup", back_populates="members")
    user = relationship("User", back_populates="memberships")

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "groupId": self.group_id,
            "userId": self.user_id,
            "role": self.role,
            "joinedAt": self.joined_at.isoformat() if self.joined_at else None,
        }


class GroupSetting(Base):
    """Group-level counterpart of UserSetting, keyed by (group, key)"""

    __tablename__ = "group_settings"
    __table_args__ = (
        UniqueConstraint("group_id", "setting_key", name="uq_group_settings_group_key"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    group_id = Column(
        String(36),
        ForeignKey("user_groups.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    setting_key = Column(String(100), nullable=False)
    setting_value = Column(Text, nullable=False)
    setting_type = Column(String(20), nullable=False, default="string")
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    group = relationship("UserGroup", back_populates="settings")

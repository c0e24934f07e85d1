"""
ORM models for users, datasets, dashboards and settings.

Importing the package registers every mapped class, so string relationship
targets resolve regardless of which model a caller imports first.
"""

from vizboard.api.models.user import User
from vizboard.api.models.dataset import Dataset
from vizboard.api.models.dashboard import Dashboard
from vizboard.api.models.setting import (
    UserSetting,
    UserGroup,
    GroupMember,
    GroupSetting,
)

__all__ = [
    "User",
    "Dataset",
    "Dashboard",
    "UserSetting",
    "UserGroup",
    "GroupMember",
    "GroupSetting",
]

# vizboard/services/settings_service.py
"""
Per-user and per-group settings.

The store does not know which keys exist; the client keeps the catalog of
keys and their defaults. Values pass through ``setting_values`` on the way in
and out.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from vizboard.api.models.setting import (
    GroupMember,
    GroupSetting,
    UserGroup,
    UserSetting,
)
from vizboard.api.models.user import User
from vizboard.services.setting_values import (
    deserialize_setting_value,
    parse_setting_value,
)
from vizboard.utils.exceptions import (
    AlreadyExistsError,
    AuthorizationError,
    ResourceNotFoundError,
    ValidationError,
)
from vizboard.utils.logger import get_logger
from vizboard.utils.validators import validate_setting_key

logger = get_logger(__name__)

GROUP_ROLES = ("admin", "member")


def _isoformat(value):
    return value.isoformat() if value else None


def _entry(row) -> Dict[str, Any]:
    entry = {
        "value": deserialize_setting_value(
            row.setting_value, row.setting_type, row.setting_key
        ),
        "type": row.setting_type,
        "createdAt": _isoformat(row.created_at),
        "updatedAt": _isoformat(row.updated_at),
    }
    if isinstance(row, UserSetting):
        entry["isGlobal"] = bool(row.is_global)
    return entry


def _find_user_setting(db: Session, user_id: str, key: str) -> Optional[UserSetting]:
    return (
        db.query(UserSetting)
        .filter(UserSetting.user_id == user_id, UserSetting.setting_key == key)
        .first()
    )


# ----------------------------------------------------------------------------
# User settings
# ----------------------------------------------------------------------------


def get_user_settings(db: Session, user_id: str) -> Dict[str, Dict[str, Any]]:
    rows = (
        db.query(UserSetting)
        .filter(UserSetting.user_id == user_id)
        .order_by(UserSetting.setting_key)
        .all()
    )
    logger.debug("Fetched user settings", user_id=user_id, count=len(rows))
    return {row.setting_key: _entry(row) for row in rows}


def get_user_setting(db: Session, user_id: str, key: str) -> Optional[Dict[str, Any]]:
    row = _find_user_setting(db, user_id, key)
    return _entry(row) if row else None


def _stage_user_setting(
    db: Session, user_id: str, key: str, typed_value, is_global: bool
) -> UserSetting:
    row = _find_user_setting(db, user_id, key)
    if row is None:
        row = UserSetting(user_id=user_id, setting_key=key)
        db.add(row)

    row.setting_value = typed_value.serialize()
    row.setting_type = typed_value.type
    row.is_global = bool(is_global)
    return row


def _saved(row: UserSetting, typed_value) -> Dict[str, Any]:
    return {
        "key": row.setting_key,
        "value": typed_value.value,
        "type": typed_value.type,
        "isGlobal": bool(row.is_global),
        "updatedAt": _isoformat(row.updated_at),
    }


def save_user_setting(
    db: Session,
    user_id: str,
    key: str,
    value: Any,
    setting_type: str = "string",
    is_global: bool = False,
) -> Dict[str, Any]:
    """Create or replace one setting for a user"""
    validate_setting_key(key)
    typed_value = parse_setting_value(value, setting_type or "string")

    row = _stage_user_setting(db, user_id, key, typed_value, is_global)
    db.commit()
    db.refresh(row)

    logger.log_data_change("saved", "Setting", key, user_id=user_id)
    return _saved(row, typed_value)


def save_user_settings(
    db: Session, user_id: str, mapping: Dict[str, Any]
) -> List[Dict[str, Any]]:
    """
    Save several settings at once.

    Each mapping value is ``{"value": ..., "type": ..., "isGlobal": ...}``.
    Every entry is validated before anything is written, and all writes share
    one commit.
    """
    if not isinstance(mapping, dict) or not mapping:
        raise ValidationError("Settings object is required", "settings")

    staged = []
    for key, entry in mapping.items():
        validate_setting_key(key)
        if not isinstance(entry, dict):
            raise ValidationError(f"Setting '{key}' must be an object", key)
        typed_value = parse_setting_value(
            entry.get("value"), entry.get("type") or "string"
        )
        staged.append((key, typed_value, bool(entry.get("isGlobal", False))))

    rows = [
        (_stage_user_setting(db, user_id, key, typed_value, is_global), typed_value)
        for key, typed_value, is_global in staged
    ]
    db.commit()
    for row, _ in rows:
        db.refresh(row)

    logger.info("User settings saved", user_id=user_id, count=len(rows))
    return [_saved(row, typed_value) for row, typed_value in rows]


def delete_user_setting(db: Session, user_id: str, key: str) -> bool:
    row = _find_user_setting(db, user_id, key)
    if row is None:
        logger.warning("User setting to delete not found", user_id=user_id, setting_key=key)
        return False

    db.delete(row)
    db.commit()
    logger.log_data_change("deleted", "Setting", key, user_id=user_id)
    return True


# ----------------------------------------------------------------------------
# Groups
# ----------------------------------------------------------------------------


def _get_group(db: Session, group_id: str) -> UserGroup:
    group = db.query(UserGroup).filter(UserGroup.id == group_id).first()
    if group is None:
        raise ResourceNotFoundError("Group", group_id)
    return group


def _get_membership(db: Session, group_id: str, user_id: str) -> Optional[GroupMember]:
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        .first()
    )


def _require_role(db: Session, group_id: str, user_id: str, admin: bool) -> GroupMember:
    membership = _get_membership(db, group_id, user_id)
    if membership is None:
        raise AuthorizationError("You are not a member of this group")
    if admin and membership.role != "admin":
        raise AuthorizationError("Group admin role required")
    return membership


def create_user_group(
    db: Session, group_name: Any, description: Optional[str], created_by: str
) -> Dict[str, Any]:
    """Create a group; the creator joins it as admin"""
    if not isinstance(group_name, str) or not group_name.strip():
        raise ValidationError("Group name is required", "groupName")

    name = group_name.strip()
    if len(name) > 100:
        raise ValidationError("Group name cannot exceed 100 characters", "groupName")

    if db.query(UserGroup.id).filter(UserGroup.group_name == name).first():
        raise AlreadyExistsError("Group", name)

    group = UserGroup(group_name=name, description=description or "", created_by=created_by)
    db.add(group)
    db.flush()
    db.add(GroupMember(group_id=group.id, user_id=created_by, role="admin"))
    db.commit()
    db.refresh(group)

    logger.info("User group created", group_name=name, group_id=group.id, created_by=created_by)
    return group.to_dict()


def add_group_member(
    db: Session,
    group_id: str,
    user_id: str,
    role: str = "member",
    acting_user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Add a user to a group; only group admins may do this"""
    _get_group(db, group_id)

    if role not in GROUP_ROLES:
        raise ValidationError(
            f"Role must be one of: {', '.join(GROUP_ROLES)}", "role"
        )

    if acting_user_id is not None:
        _require_role(db, group_id, acting_user_id, admin=True)

    if db.query(User.id).filter(User.id == user_id).first() is None:
        raise ResourceNotFoundError("User", user_id)

    if _get_membership(db, group_id, user_id) is not None:
        raise AlreadyExistsError(
            "Group member",
            user_id,
            message="User is already a member of this group",
        )

    membership = GroupMember(group_id=group_id, user_id=user_id, role=role)
    db.add(membership)
    db.commit()
    db.refresh(membership)

    logger.info("User added to group", group_id=group_id, user_id=user_id, role=role)
    return membership.to_dict()


def get_user_groups(db: Session, user_id: str) -> List[Dict[str, Any]]:
    """Groups the user belongs to, with the user's role in each"""
    rows = (
        db.query(UserGroup, GroupMember.role)
        .join(GroupMember, GroupMember.group_id == UserGroup.id)
        .filter(GroupMember.user_id == user_id)
        .order_by(UserGroup.group_name)
        .all()
    )
    return [{**group.to_dict(), "role": role} for group, role in rows]


def get_group_settings(
    db: Session, group_id: str, user_id: str
) -> Dict[str, Dict[str, Any]]:
    _get_group(db, group_id)
    _require_role(db, group_id, user_id, admin=False)

    rows = (
        db.query(GroupSetting)
        .filter(GroupSetting.group_id == group_id)
        .order_by(GroupSetting.setting_key)
        .all()
    )
    return {row.setting_key: _entry(row) for row in rows}


def save_group_setting(
    db: Session,
    group_id: str,
    key: str,
    value: Any,
    setting_type: str = "string",
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create or replace a group setting; only group admins may write"""
    _get_group(db, group_id)
    if user_id is not None:
        _require_role(db, group_id, user_id, admin=True)

    validate_setting_key(key)
    typed_value = parse_setting_value(value, setting_type or "string")

    row = (
        db.query(GroupSetting)
        .filter(GroupSetting.group_id == group_id, GroupSetting.setting_key == key)
        .first()
    )
    if row is None:
        row = GroupSetting(group_id=group_id, setting_key=key)
        db.add(row)

    row.setting_value = typed_value.serialize()
    row.setting_type = typed_value.type
    db.commit()
    db.refresh(row)

    logger.log_data_change("saved", "Group setting", key, group_id=group_id)
    return {
        "key": key,
        "value": typed_value.value,
        "type": typed_value.type,
        "updatedAt": _isoformat(row.updated_at),
    }

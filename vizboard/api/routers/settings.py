# vizboard/api/routers/settings.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from vizboard.api.dependencies.database import get_db
from vizboard.api.dependencies.auth import get_current_user
from vizboard.api.models.user import User
from vizboard.services import settings_service
from vizboard.utils.logger import get_logger
from vizboard.utils.exceptions import ResourceNotFoundError

logger = get_logger(__name__)

router = APIRouter(prefix="/settings")


class SettingRequest(BaseModel):
    """One setting value with its type tag"""

    model_config = ConfigDict(populate_by_name=True)

    value: Any = None
    type: str = "string"
    is_global: bool = Field(False, alias="isGlobal")


class BulkSettingsRequest(BaseModel):
    """Several settings keyed by setting key"""

    settings: Optional[Dict[str, Any]] = None


class GroupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    group_name: Optional[str] = Field(None, alias="groupName")
    description: Optional[str] = None


class GroupMemberRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    role: str = "member"


@router.get("")
async def get_settings(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """All settings of the current user"""
    user_settings = settings_service.get_user_settings(db, current_user.id)
    return {
        "success": True,
        "message": "Settings retrieved successfully",
        "data": {"settings": user_settings},
    }


@router.post("/bulk")
async def save_settings_bulk(
    request: BulkSettingsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Save several settings in one transaction"""
    results = settings_service.save_user_settings(
        db, current_user.id, request.settings or {}
    )
    return {
        "success": True,
        "message": "Settings saved successfully",
        "data": {"settings": results},
    }


@router.get("/groups/my")
async def get_my_groups(
    current_user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    """Groups the current user belongs to"""
    groups = settings_service.get_user_groups(db, current_user.id)
    return {
        "success": True,
        "message": "User groups retrieved successfully",
        "data": {"groups": groups},
    }


@router.post("/groups", status_code=status.HTTP_201_CREATED)
async def create_group(
    request: GroupRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a group with the current user as admin"""
    group = settings_service.create_user_group(
        db, request.group_name, request.description, current_user.id
    )
    return {
        "success": True,
        "message": "User group created successfully",
        "data": {"group": group},
    }


@router.post("/groups/{group_id}/members", status_code=status.HTTP_201_CREATED)
async def add_group_member(
    group_id: str,
    request: GroupMemberRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Add a user to a group; requires the admin role in that group"""
    membership = settings_service.add_group_member(
        db, group_id, request.user_id, request.role, acting_user_id=current_user.id
    )
    return {
        "success": True,
        "message": "User added to group successfully",
        "data": {"member": membership},
    }


@router.get("/groups/{group_id}/settings")
async def get_group_settings(
    group_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    group_settings = settings_service.get_group_settings(db, group_id, current_user.id)
    return {
        "success": True,
        "message": "Group settings retrieved successfully",
        "data": {"settings": group_settings},
    }


@router.put("/groups/{group_id}/settings/{key}")
async def save_group_setting(
    group_id: str,
    key: str,
    request: SettingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    result = settings_service.save_group_setting(
        db, group_id, key, request.value, request.type, user_id=current_user.id
    )
    return {
        "success": True,
        "message": "Group setting saved successfully",
        "data": {"setting": result},
    }


@router.get("/{key}")
async def get_setting(
    key: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """One setting of the current user"""
    setting = settings_service.get_user_setting(db, current_user.id, key)
    if setting is None:
        raise ResourceNotFoundError("Setting", key)

    return {
        "success": True,
        "message": "Setting retrieved successfully",
        "data": {"setting": {key: setting}},
    }


@router.put("/{key}")
async def save_setting(
    key: str,
    request: SettingRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create or replace one setting of the current user"""
    result = settings_service.save_user_setting(
        db, current_user.id, key, request.value, request.type, request.is_global
    )
    return {
        "success": True,
        "message": "Setting saved successfully",
        "data": {"setting": result},
    }


@router.delete("/{key}")
async def delete_setting(
    key: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not settings_service.delete_user_setting(db, current_user.id, key):
        raise ResourceNotFoundError("Setting", key)
    return {"success": True, "message": "Setting deleted successfully"}

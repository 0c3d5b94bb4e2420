"""Pydantic schemas for webhooks, permission overrides, settings and activity."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from ..database import NotificationLevel, PermissionTargetType
from ..services.kafka_producer import EventType


# ============================================================================
# Webhooks
# ============================================================================


class WebhookCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    url: str = Field(..., min_length=1, max_length=2000)
    avatar_url: Optional[str] = Field(None, max_length=500)
    events: List[EventType] = Field(..., min_length=1)


class WebhookUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    url: Optional[str] = Field(None, min_length=1, max_length=2000)
    avatar_url: Optional[str] = Field(None, max_length=500)
    events: Optional[List[EventType]] = None
    is_active: Optional[bool] = None


class WebhookResponse(BaseModel):
    id: str
    channel_id: str
    name: str
    url: str
    avatar_url: Optional[str] = None
    events: List[str]
    is_active: bool
    created_by: str
    last_triggered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Permissions
# ============================================================================


class PermissionSet(BaseModel):
    permission_type: str = Field(..., min_length=1, max_length=50)
    target_type: PermissionTargetType
    target_id: str = Field(..., min_length=1)
    allow: bool = False
    deny: bool = False


class PermissionResponse(BaseModel):
    id: str
    channel_id: str
    permission_type: str
    target_type: PermissionTargetType
    target_id: str
    allow: bool
    deny: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PermissionOverride(BaseModel):
    permission_type: str
    allow: bool
    deny: bool


# ============================================================================
# Settings
# ============================================================================


class SettingsUpdate(BaseModel):
    """Partial settings update; omitted fields keep their stored or default value."""

    slow_mode_interval: Optional[int] = Field(None, ge=0)
    max_pins: Optional[int] = Field(None, ge=0)
    max_bookmarks: Optional[int] = Field(None, ge=0)
    allow_threads: Optional[bool] = None
    allow_reactions: Optional[bool] = None
    allow_invites: Optional[bool] = None
    auto_archive_days: Optional[int] = Field(None, ge=0)
    default_notification: Optional[NotificationLevel] = None
    custom_emoji: Optional[bool] = None
    link_previews: Optional[bool] = None
    member_limit: Optional[int] = Field(None, ge=0)


class SettingsResponse(BaseModel):
    channel_id: str
    slow_mode_interval: int
    max_pins: int
    max_bookmarks: int
    allow_threads: bool
    allow_reactions: bool
    allow_invites: bool
    auto_archive_days: int
    default_notification: NotificationLevel
    custom_emoji: bool
    link_previews: bool
    member_limit: int

    class Config:
        from_attributes = True


# ============================================================================
# Activity log
# ============================================================================


class ActivityLogResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    action: str
    target_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True

"""Pydantic schemas for bans, mutes and the moderation log."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ModerationRequest(BaseModel):
    """Ban or mute details. No ``expires_at`` means permanent."""

    reason: Optional[str] = Field(None, max_length=1000)
    expires_at: Optional[datetime] = None


class BanResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    banned_by: str
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MuteResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    muted_by: str
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ModerationEntryResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    action: str
    actor_id: str
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True

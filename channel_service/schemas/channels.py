"""Pydantic schemas for channels."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from ..database import ChannelRole, ChannelType


class ChannelCreate(BaseModel):
    """Request model for creating a channel."""

    workspace_id: str = Field(..., min_length=1, max_length=36)
    name: str = Field(..., min_length=1, max_length=100)
    type: ChannelType = ChannelType.PUBLIC
    description: Optional[str] = None
    topic: Optional[str] = Field(None, max_length=500)


class ChannelUpdate(BaseModel):
    """Request model for updating a channel. Only provided fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    topic: Optional[str] = Field(None, max_length=500)
    icon_url: Optional[str] = Field(None, max_length=500)


class CloneChannelRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    include_members: bool = False
    include_pins: bool = False
    include_settings: bool = False


class TransferOwnershipRequest(BaseModel):
    new_owner_id: str = Field(..., min_length=1)


class ChannelResponse(BaseModel):
    """Response model for a channel."""

    id: str
    workspace_id: str
    name: str
    type: str
    description: Optional[str] = None
    topic: Optional[str] = None
    icon_url: Optional[str] = None
    is_archived: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ChannelDetailResponse(BaseModel):
    """A channel as seen by a particular user."""

    channel: ChannelResponse
    member_count: int
    my_role: Optional[ChannelRole] = None


class ChannelListResponse(BaseModel):
    channels: List[ChannelResponse]
    total: int


class TopicHistoryResponse(BaseModel):
    id: str
    channel_id: str
    old_topic: Optional[str] = None
    new_topic: Optional[str] = None
    changed_by: str
    changed_at: datetime

    class Config:
        from_attributes = True


class ChannelStatsResponse(BaseModel):
    member_count: int
    pin_count: int
    thread_count: int
    follower_count: int
    voice_participants: int
    active_members_week: int


class ChannelActivityDay(BaseModel):
    date: str
    active_users: int

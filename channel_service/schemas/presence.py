"""Pydantic schemas for voice presence, followers and starred channels."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class VoiceStateUpdate(BaseModel):
    """Only the flags that are present are changed."""

    is_muted: Optional[bool] = None
    is_deafened: Optional[bool] = None
    is_screen_share: Optional[bool] = None
    is_video_on: Optional[bool] = None


class VoiceStateResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    is_muted: bool
    is_deafened: bool
    is_screen_share: bool
    is_video_on: bool
    joined_at: datetime
    disconnected_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FollowerResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    followed_at: datetime

    class Config:
        from_attributes = True


class StarredChannelResponse(BaseModel):
    id: str
    user_id: str
    channel_id: str
    position: int
    created_at: datetime

    class Config:
        from_attributes = True


class CountResponse(BaseModel):
    count: int


class FollowingResponse(BaseModel):
    channel_id: str
    following: bool

"""Pydantic schemas for threads and replies."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ThreadCreate(BaseModel):
    """Request model for starting a thread on a message."""

    message_id: str = Field(..., min_length=1, description="Root message ID that starts this thread")
    title: Optional[str] = Field(None, max_length=255)


class ThreadUpdate(BaseModel):
    """Lock, resolve or retitle a thread; omitted fields are left alone."""

    title: Optional[str] = Field(None, max_length=255)
    is_locked: Optional[bool] = None
    is_resolved: Optional[bool] = None


class ThreadResponse(BaseModel):
    id: str
    channel_id: str
    message_id: str
    title: Optional[str] = None
    created_by: str
    is_locked: bool
    is_resolved: bool
    reply_count: int
    last_reply_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReplyCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_id: Optional[str] = None


class ReplyUpdate(BaseModel):
    content: str = Field(..., min_length=1)


class ReplyResponse(BaseModel):
    id: str
    thread_id: str
    user_id: str
    content: str
    parent_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ThreadFollowerResponse(BaseModel):
    id: str
    thread_id: str
    user_id: str
    created_at: datetime

    class Config:
        from_attributes = True

"""Pydantic schemas for scheduled messages."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..database import ScheduledMessageStatus


class ScheduledMessageCreate(BaseModel):
    content: str = Field(..., min_length=1)
    scheduled_at: datetime
    thread_id: Optional[str] = None


class ScheduledMessageUpdate(BaseModel):
    content: Optional[str] = Field(None, min_length=1)
    scheduled_at: Optional[datetime] = None


class ScheduledMessageResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    content: str
    scheduled_at: datetime
    status: ScheduledMessageStatus
    sent_at: Optional[datetime] = None
    thread_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

"""Pydantic schemas for channel invites."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class InviteCreate(BaseModel):
    max_uses: int = Field(0, ge=0, description="0 means unlimited")
    expires_at: Optional[datetime] = None


class InviteResponse(BaseModel):
    id: str
    channel_id: str
    created_by: str
    code: str
    max_uses: int
    use_count: int
    expires_at: Optional[datetime] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class InvitePreviewResponse(BaseModel):
    invite: InviteResponse
    channel_name: str

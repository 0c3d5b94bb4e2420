"""Pydantic schemas for channel membership."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from ..database import ChannelRole, NotificationLevel


class MemberAdd(BaseModel):
    """Request model for adding a member to a channel."""

    user_id: str = Field(..., min_length=1)
    role: Literal["admin", "member"] = "member"


class MemberRoleUpdate(BaseModel):
    role: ChannelRole


class NotificationsUpdate(BaseModel):
    notifications: NotificationLevel


class MemberResponse(BaseModel):
    """Response model for a channel member."""

    id: str
    channel_id: str
    user_id: str
    role: ChannelRole
    notifications: NotificationLevel
    joined_at: datetime
    last_read_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MemberListResponse(BaseModel):
    members: List[MemberResponse]
    total: int


class BulkAddMembersRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1, max_length=500)
    role: Literal["admin", "member"] = "member"


class BulkAddResult(BaseModel):
    added: int


class BulkRemoveMembersRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1, max_length=500)


class BulkUpdateRolesRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1, max_length=500)
    role: Literal["admin", "member"]


class BulkActionResult(BaseModel):
    """Outcome of a bulk member operation; one error string per failure."""

    successful: int = 0
    failed: int = 0
    errors: List[str] = []

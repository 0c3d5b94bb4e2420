"""Pydantic schemas for message adjuncts: pins, reactions, bookmarks, receipts."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


# ============================================================================
# Pins
# ============================================================================


class PinCreate(BaseModel):
    message_id: str = Field(..., min_length=1)


class PinResponse(BaseModel):
    id: str
    channel_id: str
    message_id: str
    pinned_by: str
    pinned_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Reactions
# ============================================================================


class ReactionRequest(BaseModel):
    message_id: str = Field(..., min_length=1)
    emoji: str = Field(..., min_length=1, max_length=50)


class ReactionResponse(BaseModel):
    id: str
    channel_id: str
    message_id: str
    user_id: str
    emoji: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReactionSummary(BaseModel):
    """Summary of reactions for a message."""

    emoji: str
    count: int


# ============================================================================
# Bookmarks
# ============================================================================


class BookmarkCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    url: Optional[str] = Field(None, max_length=2000)
    entity_type: Optional[str] = Field(None, max_length=50)
    entity_id: Optional[str] = None


class BookmarkUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    url: Optional[str] = Field(None, max_length=2000)


class BookmarkResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    title: str
    url: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    position: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Read receipts and typing
# ============================================================================


class MarkReadRequest(BaseModel):
    message_id: str = Field(..., min_length=1)


class ReadReceiptResponse(BaseModel):
    id: str
    channel_id: str
    user_id: str
    message_id: str
    read_at: datetime

    class Config:
        from_attributes = True


class ReadCountResponse(BaseModel):
    message_id: str
    read_count: int


class TypingResponse(BaseModel):
    channel_id: str
    user_ids: List[str]

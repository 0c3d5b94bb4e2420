"""Message-scoped channel endpoints: pins, reactions, bookmarks, read receipts and typing."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id
from ..schemas.messages import (
    BookmarkCreate,
    BookmarkResponse,
    BookmarkUpdate,
    MarkReadRequest,
    PinCreate,
    PinResponse,
    ReactionRequest,
    ReactionResponse,
    ReactionSummary,
    ReadCountResponse,
    ReadReceiptResponse,
    TypingResponse,
)
from ..services.message_manager import message_manager

logger = logging.getLogger(__name__)

router = APIRouter()


# Pins


@router.post(
    "/channels/{channel_id}/pins",
    response_model=PinResponse,
    status_code=status.HTTP_201_CREATED,
)
async def pin_message(
    channel_id: str,
    pin_data: PinCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.pin_message(db, channel_id, current_user_id, pin_data.message_id)


@router.get("/channels/{channel_id}/pins", response_model=List[PinResponse])
async def list_pins(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.list_pins(db, channel_id, current_user_id)


@router.delete("/channels/{channel_id}/pins/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unpin_message(
    channel_id: str,
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await message_manager.unpin_message(db, channel_id, message_id, current_user_id)


# Reactions


@router.post(
    "/channels/{channel_id}/reactions",
    response_model=ReactionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_reaction(
    channel_id: str,
    reaction_data: ReactionRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """React to a message. One reaction per user, message and emoji."""
    return await message_manager.add_reaction(
        db, channel_id, current_user_id, reaction_data.message_id, reaction_data.emoji
    )


@router.delete("/channels/{channel_id}/reactions", status_code=status.HTTP_204_NO_CONTENT)
async def remove_reaction(
    channel_id: str,
    message_id: str = Query(...),
    emoji: str = Query(...),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await message_manager.remove_reaction(db, channel_id, current_user_id, message_id, emoji)


@router.get(
    "/channels/{channel_id}/messages/{message_id}/reactions",
    response_model=List[ReactionResponse],
)
async def list_reactions(
    channel_id: str,
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.list_reactions(db, channel_id, current_user_id, message_id)


@router.get(
    "/channels/{channel_id}/messages/{message_id}/reactions/summary",
    response_model=List[ReactionSummary],
)
async def get_reaction_summary(
    channel_id: str,
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.get_reaction_summary(
        db, channel_id, current_user_id, message_id
    )


# Bookmarks


@router.post(
    "/channels/{channel_id}/bookmarks",
    response_model=BookmarkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_bookmark(
    channel_id: str,
    bookmark_data: BookmarkCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.create_bookmark(db, channel_id, current_user_id, bookmark_data)


@router.get("/channels/{channel_id}/bookmarks", response_model=List[BookmarkResponse])
async def list_bookmarks(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """The caller's bookmarks in a channel, by position."""
    return await message_manager.list_bookmarks(db, channel_id, current_user_id)


@router.patch("/channels/{channel_id}/bookmarks/{bookmark_id}", response_model=BookmarkResponse)
async def update_bookmark(
    channel_id: str,
    bookmark_id: str,
    bookmark_data: BookmarkUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.update_bookmark(
        db, channel_id, bookmark_id, current_user_id, bookmark_data
    )


@router.delete(
    "/channels/{channel_id}/bookmarks/{bookmark_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_bookmark(
    channel_id: str,
    bookmark_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await message_manager.delete_bookmark(db, channel_id, bookmark_id, current_user_id)


# Read receipts


@router.post("/channels/{channel_id}/read", response_model=ReadReceiptResponse)
async def mark_read(
    channel_id: str,
    read_data: MarkReadRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.mark_read(db, channel_id, current_user_id, read_data.message_id)


@router.get(
    "/channels/{channel_id}/messages/{message_id}/receipts",
    response_model=List[ReadReceiptResponse],
)
async def get_read_receipts(
    channel_id: str,
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await message_manager.get_read_receipts(db, channel_id, current_user_id, message_id)


@router.get(
    "/channels/{channel_id}/messages/{message_id}/receipts/count",
    response_model=ReadCountResponse,
)
async def get_read_count(
    channel_id: str,
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    count = await message_manager.get_read_count(db, channel_id, current_user_id, message_id)
    return ReadCountResponse(message_id=message_id, read_count=count)


# Typing


@router.post("/channels/{channel_id}/typing", status_code=status.HTTP_204_NO_CONTENT)
async def set_typing(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Mark the caller as typing for a few seconds."""
    await message_manager.set_typing(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/typing", response_model=TypingResponse)
async def get_typing(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    user_ids = await message_manager.get_typing(db, channel_id, current_user_id)
    return TypingResponse(channel_id=channel_id, user_ids=user_ids)

"""Scheduled message endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id
from ..schemas.scheduled import (
    ScheduledMessageCreate,
    ScheduledMessageResponse,
    ScheduledMessageUpdate,
)
from ..services.scheduled_manager import scheduled_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/scheduled-messages",
    response_model=ScheduledMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_scheduled_message(
    channel_id: str,
    message_data: ScheduledMessageCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Schedule a message. The time must be in the future."""
    return await scheduled_manager.create_scheduled_message(
        db, channel_id, current_user_id, message_data
    )


@router.get(
    "/channels/{channel_id}/scheduled-messages",
    response_model=List[ScheduledMessageResponse],
)
async def list_scheduled_messages(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await scheduled_manager.list_scheduled_messages(db, channel_id, current_user_id)


@router.get("/users/me/scheduled-messages", response_model=List[ScheduledMessageResponse])
async def list_my_scheduled_messages(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await scheduled_manager.list_my_scheduled_messages(db, current_user_id)


@router.get("/scheduled-messages/{message_id}", response_model=ScheduledMessageResponse)
async def get_scheduled_message(
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await scheduled_manager.get_scheduled_message(db, message_id, current_user_id)


@router.patch("/scheduled-messages/{message_id}", response_model=ScheduledMessageResponse)
async def update_scheduled_message(
    message_id: str,
    message_data: ScheduledMessageUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await scheduled_manager.update_scheduled_message(
        db, message_id, current_user_id, message_data
    )


@router.post("/scheduled-messages/{message_id}/cancel", response_model=ScheduledMessageResponse)
async def cancel_scheduled_message(
    message_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a pending message."""
    return await scheduled_manager.cancel_scheduled_message(db, message_id, current_user_id)

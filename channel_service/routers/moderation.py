"""Ban, mute and moderation log endpoints. Owners and admins only."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id, get_pagination_params
from ..schemas.moderation import (
    BanResponse,
    ModerationEntryResponse,
    ModerationRequest,
    MuteResponse,
)
from ..services.moderation_manager import moderation_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/bans/{user_id}",
    response_model=BanResponse,
    status_code=status.HTTP_201_CREATED,
)
async def ban_member(
    channel_id: str,
    user_id: str,
    moderation_data: ModerationRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Ban a user and remove their membership."""
    return await moderation_manager.ban_member(
        db, channel_id, current_user_id, user_id, moderation_data
    )


@router.delete("/channels/{channel_id}/bans/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unban_member(
    channel_id: str,
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await moderation_manager.unban_member(db, channel_id, current_user_id, user_id)


@router.get("/channels/{channel_id}/bans", response_model=List[BanResponse])
async def list_bans(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await moderation_manager.list_bans(db, channel_id, current_user_id)


@router.post(
    "/channels/{channel_id}/mutes/{user_id}",
    response_model=MuteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def mute_member(
    channel_id: str,
    user_id: str,
    moderation_data: ModerationRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await moderation_manager.mute_member(
        db, channel_id, current_user_id, user_id, moderation_data
    )


@router.delete("/channels/{channel_id}/mutes/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unmute_member(
    channel_id: str,
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await moderation_manager.unmute_member(db, channel_id, current_user_id, user_id)


@router.get("/channels/{channel_id}/mutes", response_model=List[MuteResponse])
async def list_mutes(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await moderation_manager.list_mutes(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/moderation-log", response_model=List[ModerationEntryResponse])
async def get_moderation_history(
    channel_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Moderation actions taken in a channel, newest first."""
    return await moderation_manager.get_moderation_history(
        db, channel_id, current_user_id, limit=pagination["limit"], offset=pagination["offset"]
    )

"""Voice presence, channel follower and starred channel endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id, get_pagination_params
from ..schemas.presence import (
    CountResponse,
    FollowerResponse,
    FollowingResponse,
    StarredChannelResponse,
    VoiceStateResponse,
    VoiceStateUpdate,
)
from ..services.presence_manager import presence_manager

logger = logging.getLogger(__name__)

router = APIRouter()


# Voice


@router.post(
    "/channels/{channel_id}/voice/join",
    response_model=VoiceStateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def join_voice(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.join_voice(db, channel_id, current_user_id)


@router.post("/channels/{channel_id}/voice/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_voice(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await presence_manager.leave_voice(db, channel_id, current_user_id)


@router.patch("/channels/{channel_id}/voice/state", response_model=VoiceStateResponse)
async def update_voice_state(
    channel_id: str,
    state_data: VoiceStateUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Toggle mute, deafen, screen share or video for the caller."""
    return await presence_manager.update_voice_state(db, channel_id, current_user_id, state_data)


@router.get("/channels/{channel_id}/voice/participants", response_model=List[VoiceStateResponse])
async def list_voice_participants(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.list_voice_participants(db, channel_id)


@router.get("/channels/{channel_id}/voice/participants/count", response_model=CountResponse)
async def count_voice_participants(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    count = await presence_manager.count_voice_participants(db, channel_id)
    return CountResponse(count=count)


# Followers


@router.post(
    "/channels/{channel_id}/follow",
    response_model=FollowerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def follow_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.follow_channel(db, channel_id, current_user_id)


@router.delete("/channels/{channel_id}/follow", status_code=status.HTTP_204_NO_CONTENT)
async def unfollow_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await presence_manager.unfollow_channel(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/follow", response_model=FollowingResponse)
async def is_following(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    following = await presence_manager.is_following(db, channel_id, current_user_id)
    return FollowingResponse(channel_id=channel_id, following=following)


@router.get("/channels/{channel_id}/followers", response_model=List[FollowerResponse])
async def list_channel_followers(
    channel_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.list_channel_followers(
        db, channel_id, limit=pagination["limit"], offset=pagination["offset"]
    )


@router.get("/channels/{channel_id}/followers/count", response_model=CountResponse)
async def count_channel_followers(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    count = await presence_manager.count_channel_followers(db, channel_id)
    return CountResponse(count=count)


@router.get("/users/me/followed-channels", response_model=List[FollowerResponse])
async def list_followed_channels(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.list_followed_channels(db, current_user_id)


# Starred channels


@router.post(
    "/channels/{channel_id}/star",
    response_model=StarredChannelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def star_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.star_channel(db, channel_id, current_user_id)


@router.delete("/channels/{channel_id}/star", status_code=status.HTTP_204_NO_CONTENT)
async def unstar_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await presence_manager.unstar_channel(db, channel_id, current_user_id)


@router.get("/users/me/starred-channels", response_model=List[StarredChannelResponse])
async def list_starred_channels(
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await presence_manager.list_starred_channels(db, current_user_id)

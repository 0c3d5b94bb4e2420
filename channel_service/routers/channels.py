"""Channel lifecycle endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id, get_pagination_params
from ..schemas.channels import (
    ChannelActivityDay,
    ChannelCreate,
    ChannelDetailResponse,
    ChannelListResponse,
    ChannelResponse,
    ChannelStatsResponse,
    ChannelUpdate,
    CloneChannelRequest,
    TopicHistoryResponse,
    TransferOwnershipRequest,
)
from ..services.channel_manager import channel_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/channels", response_model=ChannelResponse, status_code=status.HTTP_201_CREATED)
async def create_channel(
    channel_data: ChannelCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a channel. The creator becomes its owner."""
    return await channel_manager.create_channel(db, current_user_id, channel_data)


@router.get("/channels", response_model=ChannelListResponse)
async def list_channels(
    workspace_id: str = Query(..., description="Workspace to list channels from"),
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List active channels in a workspace, newest first."""
    channels, total = await channel_manager.list_channels(
        db, workspace_id, limit=pagination["limit"], offset=pagination["offset"]
    )
    return ChannelListResponse(
        channels=[ChannelResponse.model_validate(channel) for channel in channels],
        total=total,
    )


@router.get("/channels/search", response_model=List[ChannelResponse])
async def search_channels(
    workspace_id: str = Query(...),
    q: str = Query(..., min_length=1, description="Text matched against name and description"),
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Search active channels in a workspace."""
    return await channel_manager.search_channels(db, workspace_id, q, limit=pagination["limit"])


@router.get("/users/me/channels", response_model=List[ChannelResponse])
async def list_my_channels(
    workspace_id: Optional[str] = Query(None),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List the channels the current user belongs to."""
    return await channel_manager.list_user_channels(db, current_user_id, workspace_id)


@router.get("/channels/{channel_id}", response_model=ChannelDetailResponse)
async def get_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Get channel details with member count and the caller's role."""
    return await channel_manager.get_channel(db, channel_id, current_user_id)


@router.put("/channels/{channel_id}", response_model=ChannelResponse)
async def update_channel(
    channel_id: str,
    channel_data: ChannelUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update channel details. Owners and admins only."""
    return await channel_manager.update_channel(db, channel_id, current_user_id, channel_data)


@router.delete("/channels/{channel_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Soft delete a channel. Owner only."""
    await channel_manager.delete_channel(db, channel_id, current_user_id)


@router.post("/channels/{channel_id}/archive", response_model=ChannelResponse)
async def archive_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await channel_manager.archive_channel(db, channel_id, current_user_id)


@router.post("/channels/{channel_id}/unarchive", response_model=ChannelResponse)
async def unarchive_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await channel_manager.unarchive_channel(db, channel_id, current_user_id)


@router.post(
    "/channels/{channel_id}/clone",
    response_model=ChannelResponse,
    status_code=status.HTTP_201_CREATED,
)
async def clone_channel(
    channel_id: str,
    clone_data: CloneChannelRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create a new channel from an existing one."""
    return await channel_manager.clone_channel(db, channel_id, current_user_id, clone_data)


@router.post("/channels/{channel_id}/transfer-ownership", status_code=status.HTTP_204_NO_CONTENT)
async def transfer_ownership(
    channel_id: str,
    transfer_data: TransferOwnershipRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Hand ownership to another member. The caller becomes an admin."""
    await channel_manager.transfer_ownership(
        db, channel_id, current_user_id, transfer_data.new_owner_id
    )


@router.get("/channels/{channel_id}/topic-history", response_model=List[TopicHistoryResponse])
async def get_topic_history(
    channel_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await channel_manager.get_topic_history(
        db, channel_id, current_user_id, limit=pagination["limit"], offset=pagination["offset"]
    )


@router.get("/channels/{channel_id}/stats", response_model=ChannelStatsResponse)
async def get_channel_stats(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await channel_manager.get_channel_stats(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/activity", response_model=List[ChannelActivityDay])
async def get_channel_activity(
    channel_id: str,
    days: int = Query(30, ge=1, le=365),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Distinct active users per day. Owners and admins only."""
    return await channel_manager.get_channel_activity(db, channel_id, current_user_id, days=days)

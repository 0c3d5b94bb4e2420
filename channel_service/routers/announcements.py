"""Channel announcement endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id
from ..schemas.announcements import AnnouncementCreate, AnnouncementResponse, AnnouncementUpdate
from ..services.announcement_manager import announcement_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/announcements",
    response_model=AnnouncementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_announcement(
    channel_id: str,
    announcement_data: AnnouncementCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Post an announcement. Owners and admins only."""
    return await announcement_manager.create_announcement(
        db, channel_id, current_user_id, announcement_data
    )


@router.get("/channels/{channel_id}/announcements", response_model=List[AnnouncementResponse])
async def list_announcements(
    channel_id: str,
    include_expired: bool = Query(False),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Pinned announcements first, then newest first."""
    return await announcement_manager.list_announcements(
        db, channel_id, current_user_id, include_expired=include_expired
    )


@router.patch(
    "/channels/{channel_id}/announcements/{announcement_id}",
    response_model=AnnouncementResponse,
)
async def update_announcement(
    channel_id: str,
    announcement_id: str,
    announcement_data: AnnouncementUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await announcement_manager.update_announcement(
        db, channel_id, announcement_id, current_user_id, announcement_data
    )


@router.delete(
    "/channels/{channel_id}/announcements/{announcement_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_announcement(
    channel_id: str,
    announcement_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await announcement_manager.delete_announcement(db, channel_id, announcement_id, current_user_id)


@router.post(
    "/channels/{channel_id}/announcements/{announcement_id}/pin",
    response_model=AnnouncementResponse,
)
async def toggle_pin(
    channel_id: str,
    announcement_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Flip the pinned flag of an announcement."""
    return await announcement_manager.toggle_pin(db, channel_id, announcement_id, current_user_id)

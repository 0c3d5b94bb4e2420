"""Invite link endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id
from ..schemas.invites import InviteCreate, InvitePreviewResponse, InviteResponse
from ..schemas.members import MemberResponse
from ..services.invite_manager import invite_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/invites",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_invite(
    channel_id: str,
    invite_data: InviteCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create an invite code for a channel."""
    return await invite_manager.create_invite(db, channel_id, current_user_id, invite_data)


@router.get("/channels/{channel_id}/invites", response_model=List[InviteResponse])
async def list_invites(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await invite_manager.list_invites(db, channel_id, current_user_id)


@router.delete(
    "/channels/{channel_id}/invites/{invite_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_invite(
    channel_id: str,
    invite_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Deactivate an invite."""
    await invite_manager.delete_invite(db, channel_id, invite_id, current_user_id)


@router.get("/invites/{code}", response_model=InvitePreviewResponse)
async def get_invite(
    code: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Preview an invite before joining."""
    return await invite_manager.get_invite_by_code(db, code)


@router.post("/invites/{code}/join", response_model=MemberResponse)
async def join_by_code(
    code: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Redeem an invite code and join its channel."""
    return await invite_manager.join_by_code(db, code, current_user_id)

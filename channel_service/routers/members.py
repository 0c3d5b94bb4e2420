"""Channel membership management endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import ChannelRole, get_db
from ..dependencies import get_current_user_id, get_pagination_params
from ..schemas.members import (
    BulkActionResult,
    BulkAddMembersRequest,
    BulkAddResult,
    BulkRemoveMembersRequest,
    BulkUpdateRolesRequest,
    MemberAdd,
    MemberListResponse,
    MemberResponse,
    MemberRoleUpdate,
    NotificationsUpdate,
)
from ..services.member_manager import member_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/channels/{channel_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    channel_id: str,
    member_data: MemberAdd,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Add a member to a channel.

    Owners and admins only. Fails when the channel is archived, the user
    is banned or already a member.
    """
    return await member_manager.add_member(
        db, channel_id, current_user_id, member_data.user_id, ChannelRole(member_data.role)
    )


@router.get("/channels/{channel_id}/members", response_model=MemberListResponse)
async def list_members(
    channel_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """List channel members in join order."""
    members, total = await member_manager.list_members(
        db, channel_id, limit=pagination["limit"], offset=pagination["offset"]
    )
    return MemberListResponse(
        members=[MemberResponse.model_validate(member) for member in members],
        total=total,
    )


@router.post("/channels/{channel_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
async def leave_channel(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Leave a channel. The owner must transfer ownership first."""
    await member_manager.leave_channel(db, channel_id, current_user_id)


@router.patch("/channels/{channel_id}/members/me/notifications", response_model=MemberResponse)
async def update_notifications(
    channel_id: str,
    notifications_data: NotificationsUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await member_manager.update_notifications(
        db, channel_id, current_user_id, notifications_data.notifications
    )


@router.post("/channels/{channel_id}/members/me/read", response_model=MemberResponse)
async def update_last_read(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Stamp the caller's last read time."""
    return await member_manager.update_last_read(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/members/{user_id}", response_model=MemberResponse)
async def get_member(
    channel_id: str,
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await member_manager.get_member(db, channel_id, user_id)


@router.delete("/channels/{channel_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    channel_id: str,
    user_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Remove a member from a channel. Owners and admins only."""
    await member_manager.remove_member(db, channel_id, current_user_id, user_id)


@router.patch("/channels/{channel_id}/members/{user_id}/role", response_model=MemberResponse)
async def update_member_role(
    channel_id: str,
    user_id: str,
    role_data: MemberRoleUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Change a member's role. Owner only."""
    return await member_manager.update_member_role(
        db, channel_id, current_user_id, user_id, role_data.role
    )


@router.post("/channels/{channel_id}/members/bulk", response_model=BulkAddResult)
async def bulk_add_members(
    channel_id: str,
    bulk_data: BulkAddMembersRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    added = await member_manager.bulk_add_members(
        db, channel_id, current_user_id, bulk_data.user_ids, ChannelRole(bulk_data.role)
    )
    return BulkAddResult(added=added)


@router.post("/channels/{channel_id}/members/bulk-remove", response_model=BulkActionResult)
async def bulk_remove_members(
    channel_id: str,
    bulk_data: BulkRemoveMembersRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await member_manager.bulk_remove_members(
        db, channel_id, current_user_id, bulk_data.user_ids
    )


@router.post("/channels/{channel_id}/members/bulk-role", response_model=BulkActionResult)
async def bulk_update_roles(
    channel_id: str,
    bulk_data: BulkUpdateRolesRequest,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await member_manager.bulk_update_roles(
        db, channel_id, current_user_id, bulk_data.user_ids, ChannelRole(bulk_data.role)
    )

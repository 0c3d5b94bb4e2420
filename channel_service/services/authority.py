"""Membership and role authority.

Answers "is this user a member of the channel, and with what role" and
enforces the three authorization tiers used by every manager:

* owner only
* owner or admin
* any member

Tier checks run before any lookup of the sub-entity an operation targets,
so a caller without the tier learns nothing about whether it exists.
"""

import logging
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import (
    Channel,
    ChannelBan,
    ChannelMember,
    ChannelMute,
    ChannelRole,
    utcnow,
)

logger = logging.getLogger(__name__)

GOVERNANCE_ROLES = (ChannelRole.OWNER, ChannelRole.ADMIN)


async def get_membership(
    db: AsyncSession, channel_id: str, user_id: str
) -> Optional[ChannelMember]:
    result = await db.execute(
        select(ChannelMember).where(
            ChannelMember.channel_id == channel_id,
            ChannelMember.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def get_role(db: AsyncSession, channel_id: str, user_id: str) -> Optional[ChannelRole]:
    """Return the user's role in the channel, or None for non-members."""
    result = await db.execute(
        select(ChannelMember.role).where(
            ChannelMember.channel_id == channel_id,
            ChannelMember.user_id == user_id,
        )
    )
    role = result.scalar_one_or_none()
    return ChannelRole(role) if role else None


async def require_member(db: AsyncSession, channel_id: str, user_id: str) -> ChannelRole:
    role = await get_role(db, channel_id, user_id)
    if role is None:
        raise errors.NotMemberError(entity_id=user_id)
    return role


async def require_admin(db: AsyncSession, channel_id: str, user_id: str) -> ChannelRole:
    """Owner-or-admin tier."""
    role = await get_role(db, channel_id, user_id)
    if role not in GOVERNANCE_ROLES:
        raise errors.NotAuthorizedError("Owner or admin role required")
    return role


async def require_owner(db: AsyncSession, channel_id: str, user_id: str) -> ChannelRole:
    role = await get_role(db, channel_id, user_id)
    if role != ChannelRole.OWNER:
        raise errors.NotAuthorizedError("Owner role required")
    return role


def is_governor(role: Optional[ChannelRole]) -> bool:
    return role in GOVERNANCE_ROLES


async def get_channel(db: AsyncSession, channel_id: str) -> Channel:
    """Fetch a non-deleted channel or raise NotFound."""
    result = await db.execute(
        select(Channel).where(Channel.id == channel_id, Channel.deleted_at.is_(None))
    )
    channel = result.scalar_one_or_none()
    if not channel:
        raise errors.NotFoundError("channel", channel_id)
    return channel


async def is_banned(db: AsyncSession, channel_id: str, user_id: str) -> bool:
    """A ban is active while it has no expiry or the expiry is in the future."""
    result = await db.execute(
        select(ChannelBan.id).where(
            ChannelBan.channel_id == channel_id,
            ChannelBan.user_id == user_id,
            or_(ChannelBan.expires_at.is_(None), ChannelBan.expires_at > utcnow()),
        )
    )
    return result.first() is not None


async def is_muted(db: AsyncSession, channel_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(ChannelMute.id).where(
            ChannelMute.channel_id == channel_id,
            ChannelMute.user_id == user_id,
            or_(ChannelMute.expires_at.is_(None), ChannelMute.expires_at > utcnow()),
        )
    )
    return result.first() is not None


async def flush_unique(db: AsyncSession, conflict: errors.ChannelServiceError):
    """Flush pending inserts, turning a uniqueness violation into ``conflict``.

    The pre-checks done by the managers only give a better error message;
    the store constraint is what actually rejects a concurrent duplicate.
    """
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        logger.info(f"Uniqueness violation mapped to {conflict.code}: {e.orig}")
        raise conflict from e

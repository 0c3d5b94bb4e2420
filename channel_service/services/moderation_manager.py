"""Moderation manager - bans, mutes and the moderation log."""

import logging
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import (
    ChannelBan,
    ChannelMute,
    ChannelRole,
    ModerationAction,
    ModerationLog,
    as_utc,
    utcnow,
)
from ..schemas.moderation import ModerationRequest
from . import authority
from .cache import channel_cache
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


class ModerationManager:
    """Manages channel bans and mutes.

    Every action and its reversal writes one moderation log row in the
    same commit as the state change.
    """

    async def _check_target(self, db: AsyncSession, channel_id: str, actor_id: str, target_id: str):
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, actor_id)

        if target_id == actor_id:
            raise errors.InvalidRequestError("cannot_moderate_self", "Cannot moderate yourself")
        if await authority.get_role(db, channel_id, target_id) == ChannelRole.OWNER:
            raise errors.NotAuthorizedError("Cannot moderate the channel owner")

    def _log(
        self,
        db: AsyncSession,
        channel_id: str,
        target_id: str,
        action: ModerationAction,
        actor_id: str,
        reason: Optional[str] = None,
        expires_at=None,
    ):
        db.add(
            ModerationLog(
                channel_id=channel_id,
                user_id=target_id,
                action=action.value,
                actor_id=actor_id,
                reason=reason,
                expires_at=expires_at,
            )
        )

    async def ban_member(
        self, db: AsyncSession, channel_id: str, actor_id: str, target_id: str, data: ModerationRequest
    ) -> ChannelBan:
        """Ban a user, removing their membership if they have one.

        Banning an already banned user refreshes the existing ban.
        """
        await self._check_target(db, channel_id, actor_id, target_id)
        expires_at = as_utc(data.expires_at)

        result = await db.execute(
            select(ChannelBan).where(
                ChannelBan.channel_id == channel_id, ChannelBan.user_id == target_id
            )
        )
        ban = result.scalar_one_or_none()
        if ban:
            ban.banned_by = actor_id
            ban.reason = data.reason
            ban.expires_at = expires_at
            ban.created_at = utcnow()
        else:
            ban = ChannelBan(
                channel_id=channel_id,
                user_id=target_id,
                banned_by=actor_id,
                reason=data.reason,
                expires_at=expires_at,
            )
            db.add(ban)

        membership = await authority.get_membership(db, channel_id, target_id)
        if membership:
            await db.delete(membership)

        self._log(db, channel_id, target_id, ModerationAction.BAN, actor_id, data.reason, expires_at)
        await authority.flush_unique(
            db, errors.ConflictError("already_banned", "User is already banned", entity_id=target_id)
        )
        await db.commit()
        await db.refresh(ban)

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"User {target_id} banned from channel {channel_id} by {actor_id}")

        await kafka_producer.publish(
            EventType.MEMBER_BANNED,
            key=channel_id,
            data={
                "channel_id": channel_id,
                "user_id": target_id,
                "reason": data.reason,
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
            actor_id=actor_id,
        )
        return ban

    async def unban_member(self, db: AsyncSession, channel_id: str, actor_id: str, target_id: str):
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, actor_id)

        result = await db.execute(
            select(ChannelBan).where(
                ChannelBan.channel_id == channel_id, ChannelBan.user_id == target_id
            )
        )
        ban = result.scalar_one_or_none()
        if not ban:
            raise errors.NotFoundError("ban", target_id)

        await db.delete(ban)
        self._log(db, channel_id, target_id, ModerationAction.UNBAN, actor_id)
        await db.commit()

        logger.info(f"User {target_id} unbanned from channel {channel_id} by {actor_id}")
        await kafka_producer.publish(
            EventType.MEMBER_UNBANNED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": target_id},
            actor_id=actor_id,
        )

    async def mute_member(
        self, db: AsyncSession, channel_id: str, actor_id: str, target_id: str, data: ModerationRequest
    ) -> ChannelMute:
        await self._check_target(db, channel_id, actor_id, target_id)
        expires_at = as_utc(data.expires_at)

        result = await db.execute(
            select(ChannelMute).where(
                ChannelMute.channel_id == channel_id, ChannelMute.user_id == target_id
            )
        )
        mute = result.scalar_one_or_none()
        if mute:
            mute.muted_by = actor_id
            mute.reason = data.reason
            mute.expires_at = expires_at
            mute.created_at = utcnow()
        else:
            mute = ChannelMute(
                channel_id=channel_id,
                user_id=target_id,
                muted_by=actor_id,
                reason=data.reason,
                expires_at=expires_at,
            )
            db.add(mute)

        self._log(db, channel_id, target_id, ModerationAction.MUTE, actor_id, data.reason, expires_at)
        await authority.flush_unique(
            db, errors.ConflictError("already_muted", "User is already muted", entity_id=target_id)
        )
        await db.commit()
        await db.refresh(mute)

        logger.info(f"User {target_id} muted in channel {channel_id} by {actor_id}")
        await kafka_producer.publish(
            EventType.MEMBER_MUTED,
            key=channel_id,
            data={
                "channel_id": channel_id,
                "user_id": target_id,
                "reason": data.reason,
                "expires_at": expires_at.isoformat() if expires_at else None,
            },
            actor_id=actor_id,
        )
        return mute

    async def unmute_member(self, db: AsyncSession, channel_id: str, actor_id: str, target_id: str):
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, actor_id)

        result = await db.execute(
            select(ChannelMute).where(
                ChannelMute.channel_id == channel_id, ChannelMute.user_id == target_id
            )
        )
        mute = result.scalar_one_or_none()
        if not mute:
            raise errors.NotFoundError("mute", target_id)

        await db.delete(mute)
        self._log(db, channel_id, target_id, ModerationAction.UNMUTE, actor_id)
        await db.commit()

        logger.info(f"User {target_id} unmuted in channel {channel_id} by {actor_id}")
        await kafka_producer.publish(
            EventType.MEMBER_UNMUTED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": target_id},
            actor_id=actor_id,
        )

    async def get_moderation_history(
        self, db: AsyncSession, channel_id: str, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[ModerationLog]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ModerationLog)
            .where(ModerationLog.channel_id == channel_id)
            .order_by(desc(ModerationLog.created_at))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_bans(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelBan]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelBan)
            .where(ChannelBan.channel_id == channel_id)
            .order_by(desc(ChannelBan.created_at))
        )
        return list(result.scalars().all())

    async def list_mutes(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelMute]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelMute)
            .where(ChannelMute.channel_id == channel_id)
            .order_by(desc(ChannelMute.created_at))
        )
        return list(result.scalars().all())

    async def is_banned(self, db: AsyncSession, channel_id: str, user_id: str) -> bool:
        return await authority.is_banned(db, channel_id, user_id)

    async def is_muted(self, db: AsyncSession, channel_id: str, user_id: str) -> bool:
        return await authority.is_muted(db, channel_id, user_id)


# Global instance
moderation_manager = ModerationManager()

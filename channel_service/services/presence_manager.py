"""Presence manager - voice participation, channel followers and starred channels.

Following and starring are personal bookmarks on a channel id and do not
require membership.
"""

import logging
from typing import List, Optional

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ChannelFollower, StarredChannel, VoiceChannelState, utcnow
from ..schemas.presence import VoiceStateUpdate
from . import authority
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


def already_following() -> errors.ConflictError:
    return errors.ConflictError("already_following", "Already following this channel")


def already_starred() -> errors.ConflictError:
    return errors.ConflictError("already_starred", "Channel already starred")


class PresenceManager:
    """Manages voice presence, followers and stars."""

    # ------------------------------------------------------------------
    # Voice
    # ------------------------------------------------------------------

    async def _get_live_state(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> Optional[VoiceChannelState]:
        result = await db.execute(
            select(VoiceChannelState).where(
                VoiceChannelState.channel_id == channel_id,
                VoiceChannelState.user_id == user_id,
                VoiceChannelState.disconnected_at.is_(None),
            )
        )
        return result.scalars().first()

    def _not_in_voice(self) -> errors.StateConflictError:
        return errors.StateConflictError("not_in_voice", "Not in voice channel")

    async def join_voice(self, db: AsyncSession, channel_id: str, user_id: str) -> VoiceChannelState:
        await authority.require_member(db, channel_id, user_id)

        if await self._get_live_state(db, channel_id, user_id):
            raise errors.ConflictError("already_in_voice", "Already in voice channel")

        state = VoiceChannelState(channel_id=channel_id, user_id=user_id)
        db.add(state)
        await db.commit()
        await db.refresh(state)

        await kafka_producer.publish(
            EventType.VOICE_JOINED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id},
            actor_id=user_id,
        )
        return state

    async def leave_voice(self, db: AsyncSession, channel_id: str, user_id: str):
        state = await self._get_live_state(db, channel_id, user_id)
        if not state:
            raise self._not_in_voice()

        state.disconnected_at = utcnow()
        await db.commit()

        await kafka_producer.publish(
            EventType.VOICE_LEFT,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id},
            actor_id=user_id,
        )

    async def update_voice_state(
        self, db: AsyncSession, channel_id: str, user_id: str, data: VoiceStateUpdate
    ) -> VoiceChannelState:
        """Change only the flags present in the request."""
        state = await self._get_live_state(db, channel_id, user_id)
        if not state:
            raise self._not_in_voice()

        for key, value in data.model_dump(exclude_none=True).items():
            setattr(state, key, value)

        await db.commit()
        await db.refresh(state)
        return state

    async def list_voice_participants(self, db: AsyncSession, channel_id: str) -> List[VoiceChannelState]:
        result = await db.execute(
            select(VoiceChannelState)
            .where(
                VoiceChannelState.channel_id == channel_id,
                VoiceChannelState.disconnected_at.is_(None),
            )
            .order_by(VoiceChannelState.joined_at)
        )
        return list(result.scalars().all())

    async def count_voice_participants(self, db: AsyncSession, channel_id: str) -> int:
        result = await db.execute(
            select(func.count(VoiceChannelState.id)).where(
                VoiceChannelState.channel_id == channel_id,
                VoiceChannelState.disconnected_at.is_(None),
            )
        )
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Followers
    # ------------------------------------------------------------------

    async def _get_follower(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> Optional[ChannelFollower]:
        result = await db.execute(
            select(ChannelFollower).where(
                ChannelFollower.channel_id == channel_id, ChannelFollower.user_id == user_id
            )
        )
        return result.scalar_one_or_none()

    async def follow_channel(self, db: AsyncSession, channel_id: str, user_id: str) -> ChannelFollower:
        await authority.get_channel(db, channel_id)

        if await self._get_follower(db, channel_id, user_id):
            raise already_following()

        follower = ChannelFollower(channel_id=channel_id, user_id=user_id)
        db.add(follower)
        await authority.flush_unique(db, already_following())
        await db.commit()
        await db.refresh(follower)

        await kafka_producer.publish(
            EventType.CHANNEL_FOLLOWED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id},
            actor_id=user_id,
        )
        return follower

    async def unfollow_channel(self, db: AsyncSession, channel_id: str, user_id: str):
        follower = await self._get_follower(db, channel_id, user_id)
        if not follower:
            raise errors.StateConflictError("not_following", "Not following this channel")

        await db.delete(follower)
        await db.commit()

    async def is_following(self, db: AsyncSession, channel_id: str, user_id: str) -> bool:
        return await self._get_follower(db, channel_id, user_id) is not None

    async def list_channel_followers(
        self, db: AsyncSession, channel_id: str, limit: int = 50, offset: int = 0
    ) -> List[ChannelFollower]:
        result = await db.execute(
            select(ChannelFollower)
            .where(ChannelFollower.channel_id == channel_id)
            .order_by(desc(ChannelFollower.followed_at))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_followed_channels(self, db: AsyncSession, user_id: str) -> List[ChannelFollower]:
        result = await db.execute(
            select(ChannelFollower)
            .where(ChannelFollower.user_id == user_id)
            .order_by(desc(ChannelFollower.followed_at))
        )
        return list(result.scalars().all())

    async def count_channel_followers(self, db: AsyncSession, channel_id: str) -> int:
        result = await db.execute(
            select(func.count(ChannelFollower.id)).where(ChannelFollower.channel_id == channel_id)
        )
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Starred channels
    # ------------------------------------------------------------------

    async def star_channel(self, db: AsyncSession, channel_id: str, user_id: str) -> StarredChannel:
        await authority.get_channel(db, channel_id)

        result = await db.execute(
            select(StarredChannel.id).where(
                StarredChannel.channel_id == channel_id, StarredChannel.user_id == user_id
            )
        )
        if result.first() is not None:
            raise already_starred()

        result = await db.execute(
            select(func.max(StarredChannel.position)).where(StarredChannel.user_id == user_id)
        )
        max_position = result.scalar()

        starred = StarredChannel(
            user_id=user_id,
            channel_id=channel_id,
            position=(max_position or 0) + 1,
        )
        db.add(starred)
        await authority.flush_unique(db, already_starred())
        await db.commit()
        await db.refresh(starred)
        return starred

    async def unstar_channel(self, db: AsyncSession, channel_id: str, user_id: str):
        result = await db.execute(
            select(StarredChannel).where(
                StarredChannel.channel_id == channel_id, StarredChannel.user_id == user_id
            )
        )
        starred = result.scalar_one_or_none()
        if not starred:
            raise errors.StateConflictError("not_starred", "Channel is not starred")

        await db.delete(starred)
        await db.commit()

    async def list_starred_channels(self, db: AsyncSession, user_id: str) -> List[StarredChannel]:
        result = await db.execute(
            select(StarredChannel)
            .where(StarredChannel.user_id == user_id)
            .order_by(StarredChannel.position)
        )
        return list(result.scalars().all())


# Global instance
presence_manager = PresenceManager()

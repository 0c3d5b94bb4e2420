"""Channel manager - channel lifecycle, ownership and channel-level reads."""

import logging
from collections import defaultdict
from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import (
    Channel,
    ChannelFollower,
    ChannelMember,
    ChannelPin,
    ChannelRole,
    ChannelSetting,
    ChannelThread,
    NotificationLevel,
    SETTINGS_DEFAULTS,
    TopicHistory,
    VoiceChannelState,
    as_utc,
    utcnow,
)
from ..schemas.channels import (
    ChannelActivityDay,
    ChannelCreate,
    ChannelDetailResponse,
    ChannelResponse,
    ChannelStatsResponse,
    ChannelUpdate,
    CloneChannelRequest,
)
from . import authority
from .activity import ActivityAction, record_activity
from .cache import channel_cache
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


def channel_name_taken(name: str) -> errors.ConflictError:
    return errors.ConflictError(
        "channel_name_taken", f"A channel named '{name}' already exists in this workspace"
    )


def snapshot(channel: Channel) -> dict:
    """JSON-safe representation used for the cache and event payloads."""
    return ChannelResponse.model_validate(channel).model_dump(mode="json")


class ChannelManager:
    """Manages channel lifecycle operations."""

    async def _ensure_name_free(
        self, db: AsyncSession, workspace_id: str, name: str, exclude_id: Optional[str] = None
    ):
        query = select(Channel.id).where(Channel.workspace_id == workspace_id, Channel.name == name)
        if exclude_id:
            query = query.where(Channel.id != exclude_id)
        result = await db.execute(query)
        if result.first() is not None:
            raise channel_name_taken(name)

    async def add_channel(self, db: AsyncSession, user_id: str, data: ChannelCreate) -> Channel:
        """Stage a channel and its owner membership in the session.

        Nothing is committed; callers that build more rows around the new
        channel commit them together and then call ``publish_created``.
        """
        await self._ensure_name_free(db, data.workspace_id, data.name)

        channel = Channel(
            workspace_id=data.workspace_id,
            name=data.name,
            type=data.type.value,
            description=data.description,
            topic=data.topic,
            is_archived=False,
            created_by=user_id,
        )
        db.add(channel)
        await authority.flush_unique(db, channel_name_taken(data.name))

        db.add(
            ChannelMember(
                channel_id=channel.id,
                user_id=user_id,
                role=ChannelRole.OWNER.value,
                notifications=NotificationLevel.ALL.value,
            )
        )
        return channel

    async def publish_created(self, channel: Channel, user_id: str):
        logger.info(f"Channel created: {channel.id} ({channel.name}) by {user_id}")

        await kafka_producer.publish(
            EventType.CHANNEL_CREATED,
            key=channel.id,
            data={"channel": snapshot(channel), "workspace_id": channel.workspace_id},
            actor_id=user_id,
        )

    async def create_channel(self, db: AsyncSession, user_id: str, data: ChannelCreate) -> Channel:
        """Create a channel and make its creator the owner."""
        channel = await self.add_channel(db, user_id, data)
        await db.commit()
        await db.refresh(channel)

        await self.publish_created(channel, user_id)
        return channel

    async def count_members(self, db: AsyncSession, channel_id: str) -> int:
        result = await db.execute(
            select(func.count()).select_from(ChannelMember).where(ChannelMember.channel_id == channel_id)
        )
        return result.scalar() or 0

    async def get_channel(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> ChannelDetailResponse:
        """Get a channel with the caller's role, read through the cache."""
        cached = await channel_cache.get_channel(channel_id)
        if cached is None:
            channel = await authority.get_channel(db, channel_id)
            cached = snapshot(channel)
            await channel_cache.set_channel(channel_id, cached)

        member_count = await self.count_members(db, channel_id)
        role = await authority.get_role(db, channel_id, user_id)

        return ChannelDetailResponse(
            channel=ChannelResponse(**cached),
            member_count=member_count,
            my_role=role,
        )

    async def update_channel(
        self, db: AsyncSession, channel_id: str, user_id: str, data: ChannelUpdate
    ) -> Channel:
        """Update name, description, topic or icon. Topic changes are recorded."""
        channel = await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        if data.name is not None and data.name != channel.name:
            await self._ensure_name_free(db, channel.workspace_id, data.name, exclude_id=channel.id)
            channel.name = data.name
        if data.description is not None:
            channel.description = data.description
        if data.icon_url is not None:
            channel.icon_url = data.icon_url
        if data.topic is not None and data.topic != channel.topic:
            db.add(
                TopicHistory(
                    channel_id=channel.id,
                    old_topic=channel.topic,
                    new_topic=data.topic,
                    changed_by=user_id,
                )
            )
            channel.topic = data.topic

        channel.updated_at = utcnow()
        await authority.flush_unique(db, channel_name_taken(channel.name))
        await db.commit()
        await db.refresh(channel)

        await channel_cache.invalidate_channel(channel_id)
        await kafka_producer.publish(
            EventType.CHANNEL_UPDATED,
            key=channel_id,
            data={"channel": snapshot(channel)},
            actor_id=user_id,
        )
        return channel

    async def _set_archived(
        self, db: AsyncSession, channel_id: str, user_id: str, archived: bool
    ) -> Channel:
        channel = await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        channel.is_archived = archived
        channel.updated_at = utcnow()
        record_activity(
            db,
            channel_id,
            user_id,
            ActivityAction.CHANNEL_ARCHIVED if archived else ActivityAction.CHANNEL_UNARCHIVED,
        )
        await db.commit()
        await db.refresh(channel)

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"Channel {channel_id} {'archived' if archived else 'unarchived'} by {user_id}")
        return channel

    async def archive_channel(self, db: AsyncSession, channel_id: str, user_id: str) -> Channel:
        channel = await self._set_archived(db, channel_id, user_id, True)
        await kafka_producer.publish(
            EventType.CHANNEL_ARCHIVED, key=channel_id, data={"channel_id": channel_id}, actor_id=user_id
        )
        return channel

    async def unarchive_channel(self, db: AsyncSession, channel_id: str, user_id: str) -> Channel:
        channel = await self._set_archived(db, channel_id, user_id, False)
        await kafka_producer.publish(
            EventType.CHANNEL_UNARCHIVED, key=channel_id, data={"channel_id": channel_id}, actor_id=user_id
        )
        return channel

    async def delete_channel(self, db: AsyncSession, channel_id: str, user_id: str):
        """Soft delete. Owner only."""
        channel = await authority.get_channel(db, channel_id)
        await authority.require_owner(db, channel_id, user_id)

        channel.deleted_at = utcnow()
        await db.commit()

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"Channel deleted: {channel_id} by {user_id}")

        await kafka_producer.publish(
            EventType.CHANNEL_DELETED,
            key=channel_id,
            data={"channel_id": channel_id, "workspace_id": channel.workspace_id},
            actor_id=user_id,
        )

    async def list_channels(
        self, db: AsyncSession, workspace_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Channel], int]:
        query = select(Channel).where(
            Channel.workspace_id == workspace_id, Channel.deleted_at.is_(None)
        )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        result = await db.execute(query.order_by(Channel.name).offset(offset).limit(limit))
        return list(result.scalars().all()), total

    async def list_user_channels(
        self, db: AsyncSession, user_id: str, workspace_id: Optional[str] = None
    ) -> List[Channel]:
        """Channels the user is a member of, by name."""
        query = (
            select(Channel)
            .join(ChannelMember, ChannelMember.channel_id == Channel.id)
            .where(ChannelMember.user_id == user_id, Channel.deleted_at.is_(None))
        )
        if workspace_id:
            query = query.where(Channel.workspace_id == workspace_id)

        result = await db.execute(query.order_by(Channel.name))
        return list(result.scalars().all())

    async def search_channels(
        self, db: AsyncSession, workspace_id: str, query_text: str, limit: int = 50
    ) -> List[Channel]:
        """Case-insensitive substring match on name or description."""
        pattern = f"%{query_text.strip()}%"
        result = await db.execute(
            select(Channel)
            .where(
                Channel.workspace_id == workspace_id,
                Channel.deleted_at.is_(None),
                or_(Channel.name.ilike(pattern), Channel.description.ilike(pattern)),
            )
            .order_by(Channel.name)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def clone_channel(
        self, db: AsyncSession, channel_id: str, user_id: str, data: CloneChannelRequest
    ) -> Channel:
        """Copy a channel into a new one owned by the caller.

        Members keep their roles except the source owner, who becomes an
        admin of the clone. Settings are copied when ``include_settings``.
        """
        source = await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)
        await self._ensure_name_free(db, source.workspace_id, data.name)

        clone = Channel(
            workspace_id=source.workspace_id,
            name=data.name,
            type=source.type,
            description=source.description,
            is_archived=False,
            created_by=user_id,
        )
        db.add(clone)
        await authority.flush_unique(db, channel_name_taken(data.name))

        db.add(ChannelMember(channel_id=clone.id, user_id=user_id, role=ChannelRole.OWNER.value))

        if data.include_members:
            result = await db.execute(
                select(ChannelMember).where(
                    ChannelMember.channel_id == channel_id, ChannelMember.user_id != user_id
                )
            )
            for member in result.scalars().all():
                role = member.role
                if role == ChannelRole.OWNER.value:
                    role = ChannelRole.ADMIN.value
                db.add(
                    ChannelMember(
                        channel_id=clone.id,
                        user_id=member.user_id,
                        role=role,
                        notifications=member.notifications,
                    )
                )

        if data.include_pins:
            result = await db.execute(select(ChannelPin).where(ChannelPin.channel_id == channel_id))
            for pin in result.scalars().all():
                db.add(ChannelPin(channel_id=clone.id, message_id=pin.message_id, pinned_by=pin.pinned_by))

        if data.include_settings:
            result = await db.execute(
                select(ChannelSetting).where(ChannelSetting.channel_id == channel_id)
            )
            source_settings = result.scalar_one_or_none()
            if source_settings:
                db.add(
                    ChannelSetting(
                        channel_id=clone.id,
                        **{key: getattr(source_settings, key) for key in SETTINGS_DEFAULTS},
                    )
                )

        await db.commit()
        await db.refresh(clone)

        logger.info(f"Channel {channel_id} cloned to {clone.id} by {user_id}")

        await kafka_producer.publish(
            EventType.CHANNEL_CLONED,
            key=clone.id,
            data={"channel": snapshot(clone), "source_channel_id": channel_id},
            actor_id=user_id,
        )
        return clone

    async def transfer_ownership(
        self, db: AsyncSession, channel_id: str, user_id: str, new_owner_id: str
    ):
        """Promote ``new_owner_id`` to owner and demote the caller to admin.

        Both role changes are committed together.
        """
        await authority.get_channel(db, channel_id)
        await authority.require_owner(db, channel_id, user_id)

        if new_owner_id == user_id:
            raise errors.InvalidRequestError(
                "invalid_transfer_target", "Ownership is already held by this user"
            )

        new_owner = await authority.get_membership(db, channel_id, new_owner_id)
        if not new_owner:
            raise errors.NotMemberError("New owner must be a member of the channel", new_owner_id)
        current_owner = await authority.get_membership(db, channel_id, user_id)

        new_owner.role = ChannelRole.OWNER.value
        current_owner.role = ChannelRole.ADMIN.value
        record_activity(
            db,
            channel_id,
            user_id,
            ActivityAction.OWNERSHIP_TRANSFERRED,
            target_id=new_owner_id,
        )
        await db.commit()

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"Ownership of {channel_id} transferred from {user_id} to {new_owner_id}")

        await kafka_producer.publish(
            EventType.OWNERSHIP_TRANSFERRED,
            key=channel_id,
            data={"channel_id": channel_id, "old_owner_id": user_id, "new_owner_id": new_owner_id},
            actor_id=user_id,
        )

    async def get_topic_history(
        self, db: AsyncSession, channel_id: str, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[TopicHistory]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(TopicHistory)
            .where(TopicHistory.channel_id == channel_id)
            .order_by(desc(TopicHistory.changed_at))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_channel_stats(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> ChannelStatsResponse:
        await authority.require_member(db, channel_id, user_id)

        async def count(model, *criteria) -> int:
            result = await db.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar() or 0

        week_ago = utcnow() - timedelta(days=7)
        return ChannelStatsResponse(
            member_count=await count(ChannelMember, ChannelMember.channel_id == channel_id),
            pin_count=await count(ChannelPin, ChannelPin.channel_id == channel_id),
            thread_count=await count(ChannelThread, ChannelThread.channel_id == channel_id),
            follower_count=await count(ChannelFollower, ChannelFollower.channel_id == channel_id),
            voice_participants=await count(
                VoiceChannelState,
                VoiceChannelState.channel_id == channel_id,
                VoiceChannelState.disconnected_at.is_(None),
            ),
            active_members_week=await count(
                ChannelMember,
                ChannelMember.channel_id == channel_id,
                ChannelMember.last_read_at >= week_ago,
            ),
        )

    async def get_channel_activity(
        self, db: AsyncSession, channel_id: str, user_id: str, days: int = 30
    ) -> List[ChannelActivityDay]:
        """Distinct members who read the channel, per day, newest first."""
        await authority.require_admin(db, channel_id, user_id)
        if days <= 0:
            days = 30

        since = utcnow() - timedelta(days=days)
        result = await db.execute(
            select(ChannelMember.user_id, ChannelMember.last_read_at).where(
                ChannelMember.channel_id == channel_id,
                ChannelMember.last_read_at >= since,
            )
        )

        per_day = defaultdict(set)
        for member_id, last_read_at in result.all():
            per_day[as_utc(last_read_at).date().isoformat()].add(member_id)

        return [
            ChannelActivityDay(date=day, active_users=len(users))
            for day, users in sorted(per_day.items(), reverse=True)
        ]


# Global instance
channel_manager = ChannelManager()

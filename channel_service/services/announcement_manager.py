"""Announcement manager."""

import logging
from typing import List

from sqlalchemy import desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ChannelAnnouncement, as_utc, utcnow
from ..schemas.announcements import AnnouncementCreate, AnnouncementUpdate
from . import authority
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


class AnnouncementManager:
    """Manages channel announcements. Writes are owner/admin, reads are for members."""

    async def create_announcement(
        self, db: AsyncSession, channel_id: str, user_id: str, data: AnnouncementCreate
    ) -> ChannelAnnouncement:
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        announcement = ChannelAnnouncement(
            channel_id=channel_id,
            title=data.title,
            content=data.content,
            priority=data.priority.value,
            author_id=user_id,
            is_pinned=False,
            expires_at=as_utc(data.expires_at),
        )
        db.add(announcement)
        await db.commit()
        await db.refresh(announcement)

        logger.info(f"Announcement {announcement.id} created in channel {channel_id} by {user_id}")

        await kafka_producer.publish(
            EventType.ANNOUNCEMENT_CREATED,
            key=channel_id,
            data={
                "channel_id": channel_id,
                "announcement_id": announcement.id,
                "title": announcement.title,
                "priority": announcement.priority,
            },
            actor_id=user_id,
        )
        return announcement

    async def list_announcements(
        self, db: AsyncSession, channel_id: str, user_id: str, include_expired: bool = False
    ) -> List[ChannelAnnouncement]:
        """Pinned first, then newest first."""
        await authority.require_member(db, channel_id, user_id)

        query = select(ChannelAnnouncement).where(ChannelAnnouncement.channel_id == channel_id)
        if not include_expired:
            query = query.where(
                or_(
                    ChannelAnnouncement.expires_at.is_(None),
                    ChannelAnnouncement.expires_at > utcnow(),
                )
            )

        result = await db.execute(
            query.order_by(desc(ChannelAnnouncement.is_pinned), desc(ChannelAnnouncement.created_at))
        )
        return list(result.scalars().all())

    async def _get_announcement(
        self, db: AsyncSession, channel_id: str, announcement_id: str
    ) -> ChannelAnnouncement:
        result = await db.execute(
            select(ChannelAnnouncement).where(
                ChannelAnnouncement.id == announcement_id,
                ChannelAnnouncement.channel_id == channel_id,
            )
        )
        announcement = result.scalar_one_or_none()
        if not announcement:
            raise errors.NotFoundError("announcement", announcement_id)
        return announcement

    async def update_announcement(
        self,
        db: AsyncSession,
        channel_id: str,
        announcement_id: str,
        user_id: str,
        data: AnnouncementUpdate,
    ) -> ChannelAnnouncement:
        await authority.require_admin(db, channel_id, user_id)
        announcement = await self._get_announcement(db, channel_id, announcement_id)

        if data.title is not None:
            announcement.title = data.title
        if data.content is not None:
            announcement.content = data.content
        if data.priority is not None:
            announcement.priority = data.priority.value
        if data.expires_at is not None:
            announcement.expires_at = as_utc(data.expires_at)

        await db.commit()
        await db.refresh(announcement)
        return announcement

    async def delete_announcement(
        self, db: AsyncSession, channel_id: str, announcement_id: str, user_id: str
    ):
        await authority.require_admin(db, channel_id, user_id)
        announcement = await self._get_announcement(db, channel_id, announcement_id)

        await db.delete(announcement)
        await db.commit()

    async def toggle_pin(
        self, db: AsyncSession, channel_id: str, announcement_id: str, user_id: str
    ) -> ChannelAnnouncement:
        await authority.require_admin(db, channel_id, user_id)
        announcement = await self._get_announcement(db, channel_id, announcement_id)

        announcement.is_pinned = not announcement.is_pinned
        await db.commit()
        await db.refresh(announcement)

        await kafka_producer.publish(
            EventType.ANNOUNCEMENT_PINNED,
            key=channel_id,
            data={
                "channel_id": channel_id,
                "announcement_id": announcement.id,
                "is_pinned": announcement.is_pinned,
            },
            actor_id=user_id,
        )
        return announcement


# Global instance
announcement_manager = AnnouncementManager()

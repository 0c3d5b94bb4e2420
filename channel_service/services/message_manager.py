"""Message manager - pins, reactions, bookmarks, read receipts and typing.

These entities hang off message ids owned by the message service; this
service only records the channel-scoped side.
"""

import logging
from typing import List

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..config import settings
from ..database import ChannelBookmark, ChannelPin, ChannelReaction, ReadReceipt, utcnow
from ..schemas.messages import BookmarkCreate, BookmarkUpdate, ReactionSummary
from . import authority
from .cache import channel_cache
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


def already_pinned(message_id: str) -> errors.ConflictError:
    return errors.ConflictError("already_pinned", "Message already pinned", entity_id=message_id)


def reaction_exists() -> errors.ConflictError:
    return errors.ConflictError("reaction_exists", "Reaction already exists")


class MessageManager:
    """Manages message adjuncts scoped to a channel."""

    # ------------------------------------------------------------------
    # Pins
    # ------------------------------------------------------------------

    async def pin_message(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str
    ) -> ChannelPin:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPin.id).where(
                ChannelPin.channel_id == channel_id, ChannelPin.message_id == message_id
            )
        )
        if result.first() is not None:
            raise already_pinned(message_id)

        pin = ChannelPin(channel_id=channel_id, message_id=message_id, pinned_by=user_id)
        db.add(pin)
        await authority.flush_unique(db, already_pinned(message_id))
        await db.commit()
        await db.refresh(pin)

        await kafka_producer.publish(
            EventType.MESSAGE_PINNED,
            key=channel_id,
            data={"channel_id": channel_id, "message_id": message_id, "pinned_by": user_id},
            actor_id=user_id,
        )
        return pin

    async def unpin_message(self, db: AsyncSession, channel_id: str, message_id: str, user_id: str):
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPin).where(
                ChannelPin.channel_id == channel_id, ChannelPin.message_id == message_id
            )
        )
        pin = result.scalar_one_or_none()
        if not pin:
            raise errors.NotFoundError("pin", message_id)

        await db.delete(pin)
        await db.commit()

        await kafka_producer.publish(
            EventType.MESSAGE_UNPINNED,
            key=channel_id,
            data={"channel_id": channel_id, "message_id": message_id},
            actor_id=user_id,
        )

    async def list_pins(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelPin]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPin)
            .where(ChannelPin.channel_id == channel_id)
            .order_by(desc(ChannelPin.pinned_at))
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Reactions
    # ------------------------------------------------------------------

    async def add_reaction(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str, emoji: str
    ) -> ChannelReaction:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelReaction.id).where(
                ChannelReaction.channel_id == channel_id,
                ChannelReaction.message_id == message_id,
                ChannelReaction.user_id == user_id,
                ChannelReaction.emoji == emoji,
            )
        )
        if result.first() is not None:
            raise reaction_exists()

        reaction = ChannelReaction(
            channel_id=channel_id, message_id=message_id, user_id=user_id, emoji=emoji
        )
        db.add(reaction)
        await authority.flush_unique(db, reaction_exists())
        await db.commit()
        await db.refresh(reaction)

        await kafka_producer.publish(
            EventType.REACTION_ADDED,
            key=channel_id,
            data={"channel_id": channel_id, "message_id": message_id, "user_id": user_id, "emoji": emoji},
            actor_id=user_id,
        )
        return reaction

    async def remove_reaction(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str, emoji: str
    ):
        """Remove the caller's own reaction."""
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelReaction).where(
                ChannelReaction.channel_id == channel_id,
                ChannelReaction.message_id == message_id,
                ChannelReaction.user_id == user_id,
                ChannelReaction.emoji == emoji,
            )
        )
        reaction = result.scalar_one_or_none()
        if not reaction:
            raise errors.NotFoundError("reaction")

        await db.delete(reaction)
        await db.commit()

        await kafka_producer.publish(
            EventType.REACTION_REMOVED,
            key=channel_id,
            data={"channel_id": channel_id, "message_id": message_id, "user_id": user_id, "emoji": emoji},
            actor_id=user_id,
        )

    async def list_reactions(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str
    ) -> List[ChannelReaction]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelReaction)
            .where(ChannelReaction.channel_id == channel_id, ChannelReaction.message_id == message_id)
            .order_by(ChannelReaction.created_at)
        )
        return list(result.scalars().all())

    async def get_reaction_summary(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str
    ) -> List[ReactionSummary]:
        """Emoji counts for a message, most used first."""
        await authority.require_member(db, channel_id, user_id)

        reaction_count = func.count(ChannelReaction.id).label("count")
        result = await db.execute(
            select(ChannelReaction.emoji, reaction_count)
            .where(ChannelReaction.channel_id == channel_id, ChannelReaction.message_id == message_id)
            .group_by(ChannelReaction.emoji)
            .order_by(desc(reaction_count), ChannelReaction.emoji)
        )
        return [ReactionSummary(emoji=emoji, count=count) for emoji, count in result.all()]

    # ------------------------------------------------------------------
    # Bookmarks
    # ------------------------------------------------------------------

    async def create_bookmark(
        self, db: AsyncSession, channel_id: str, user_id: str, data: BookmarkCreate
    ) -> ChannelBookmark:
        """Append a bookmark for the caller, up to ``settings.bookmark_limit`` per channel."""
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(func.count(ChannelBookmark.id), func.max(ChannelBookmark.position)).where(
                ChannelBookmark.channel_id == channel_id, ChannelBookmark.user_id == user_id
            )
        )
        count, max_position = result.one()
        if count >= settings.bookmark_limit:
            raise errors.StateConflictError(
                "bookmark_limit_reached",
                f"Bookmark limit of {settings.bookmark_limit} reached",
                entity="bookmark",
            )

        bookmark = ChannelBookmark(
            channel_id=channel_id,
            user_id=user_id,
            title=data.title,
            url=data.url,
            entity_type=data.entity_type,
            entity_id=data.entity_id,
            position=(max_position or 0) + 1,
        )
        db.add(bookmark)
        await db.commit()
        await db.refresh(bookmark)
        return bookmark

    async def list_bookmarks(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> List[ChannelBookmark]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelBookmark)
            .where(ChannelBookmark.channel_id == channel_id, ChannelBookmark.user_id == user_id)
            .order_by(ChannelBookmark.position)
        )
        return list(result.scalars().all())

    async def _get_own_bookmark(
        self, db: AsyncSession, channel_id: str, bookmark_id: str, user_id: str
    ) -> ChannelBookmark:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelBookmark).where(
                ChannelBookmark.id == bookmark_id, ChannelBookmark.channel_id == channel_id
            )
        )
        bookmark = result.scalar_one_or_none()
        if not bookmark:
            raise errors.NotFoundError("bookmark", bookmark_id)
        if bookmark.user_id != user_id:
            raise errors.NotAuthorizedError("Only the bookmark creator can change it")
        return bookmark

    async def update_bookmark(
        self, db: AsyncSession, channel_id: str, bookmark_id: str, user_id: str, data: BookmarkUpdate
    ) -> ChannelBookmark:
        bookmark = await self._get_own_bookmark(db, channel_id, bookmark_id, user_id)

        if data.title is not None:
            bookmark.title = data.title
        if data.url is not None:
            bookmark.url = data.url

        await db.commit()
        await db.refresh(bookmark)
        return bookmark

    async def delete_bookmark(self, db: AsyncSession, channel_id: str, bookmark_id: str, user_id: str):
        bookmark = await self._get_own_bookmark(db, channel_id, bookmark_id, user_id)
        await db.delete(bookmark)
        await db.commit()

    # ------------------------------------------------------------------
    # Read receipts
    # ------------------------------------------------------------------

    async def mark_read(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str
    ) -> ReadReceipt:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ReadReceipt).where(
                ReadReceipt.channel_id == channel_id,
                ReadReceipt.user_id == user_id,
                ReadReceipt.message_id == message_id,
            )
        )
        receipt = result.scalar_one_or_none()
        if receipt:
            receipt.read_at = utcnow()
        else:
            receipt = ReadReceipt(channel_id=channel_id, user_id=user_id, message_id=message_id)
            db.add(receipt)

        await db.commit()
        await db.refresh(receipt)
        return receipt

    async def get_read_receipts(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str
    ) -> List[ReadReceipt]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ReadReceipt)
            .where(ReadReceipt.channel_id == channel_id, ReadReceipt.message_id == message_id)
            .order_by(ReadReceipt.read_at)
        )
        return list(result.scalars().all())

    async def get_read_count(
        self, db: AsyncSession, channel_id: str, user_id: str, message_id: str
    ) -> int:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(func.count(ReadReceipt.id)).where(
                ReadReceipt.channel_id == channel_id, ReadReceipt.message_id == message_id
            )
        )
        return result.scalar() or 0

    # ------------------------------------------------------------------
    # Typing
    # ------------------------------------------------------------------

    async def set_typing(self, db: AsyncSession, channel_id: str, user_id: str):
        await authority.require_member(db, channel_id, user_id)
        await channel_cache.set_typing(channel_id, user_id)

        await kafka_producer.publish(
            EventType.TYPING_STARTED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id},
            actor_id=user_id,
        )

    async def get_typing(self, db: AsyncSession, channel_id: str, user_id: str) -> List[str]:
        await authority.require_member(db, channel_id, user_id)
        return await channel_cache.get_typing(channel_id)


# Global instance
message_manager = MessageManager()

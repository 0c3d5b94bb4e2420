"""Thread manager - threads, replies and thread followers."""

import logging
from typing import List

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ChannelRole, ChannelThread, ThreadFollower, ThreadReply, utcnow
from ..schemas.threads import ReplyCreate, ThreadCreate, ThreadUpdate
from . import authority
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


class ThreadManager:
    """Manages threads and their replies.

    ``reply_count`` and ``last_reply_at`` on a thread are updated in the
    same commit as the reply insert or delete. Every operation checks channel
    membership before looking up the thread or reply it targets.
    """

    async def _require_member(self, db: AsyncSession, channel_id: str, user_id: str) -> ChannelRole:
        await authority.get_channel(db, channel_id)
        return await authority.require_member(db, channel_id, user_id)

    async def _get_thread(self, db: AsyncSession, channel_id: str, thread_id: str) -> ChannelThread:
        result = await db.execute(
            select(ChannelThread).where(
                ChannelThread.id == thread_id, ChannelThread.channel_id == channel_id
            )
        )
        thread = result.scalar_one_or_none()
        if not thread:
            raise errors.NotFoundError("thread", thread_id)
        return thread

    async def _get_reply(self, db: AsyncSession, thread_id: str, reply_id: str) -> ThreadReply:
        result = await db.execute(
            select(ThreadReply).where(ThreadReply.id == reply_id, ThreadReply.thread_id == thread_id)
        )
        reply = result.scalar_one_or_none()
        if not reply:
            raise errors.NotFoundError("reply", reply_id)
        return reply

    def _require_author_or_admin(self, role: ChannelRole, user_id: str, author_id: str):
        if author_id == user_id:
            return
        if not authority.is_governor(role):
            raise errors.NotAuthorizedError("Only the author or a channel admin can do this")

    async def _follow(self, db: AsyncSession, thread_id: str, user_id: str):
        result = await db.execute(
            select(ThreadFollower.id).where(
                ThreadFollower.thread_id == thread_id, ThreadFollower.user_id == user_id
            )
        )
        if result.first() is None:
            db.add(ThreadFollower(thread_id=thread_id, user_id=user_id))

    async def create_thread(
        self, db: AsyncSession, channel_id: str, user_id: str, data: ThreadCreate
    ) -> ChannelThread:
        """Start a thread on a message. The creator follows it."""
        await self._require_member(db, channel_id, user_id)

        thread = ChannelThread(
            channel_id=channel_id,
            message_id=data.message_id,
            title=data.title,
            created_by=user_id,
            is_locked=False,
            is_resolved=False,
            reply_count=0,
        )
        db.add(thread)
        await db.flush()
        db.add(ThreadFollower(thread_id=thread.id, user_id=user_id))
        await db.commit()
        await db.refresh(thread)

        logger.info(f"Thread {thread.id} created in channel {channel_id} by {user_id}")

        await kafka_producer.publish(
            EventType.THREAD_CREATED,
            key=channel_id,
            data={"channel_id": channel_id, "thread_id": thread.id, "message_id": data.message_id},
            actor_id=user_id,
        )
        return thread

    async def get_thread(
        self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str
    ) -> ChannelThread:
        await self._require_member(db, channel_id, user_id)
        return await self._get_thread(db, channel_id, thread_id)

    async def list_threads(
        self, db: AsyncSession, channel_id: str, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[ChannelThread]:
        """Most recently active first; threads without replies sort last."""
        await self._require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelThread)
            .where(ChannelThread.channel_id == channel_id)
            .order_by(
                desc(ChannelThread.last_reply_at).nulls_last(), desc(ChannelThread.created_at)
            )
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update_thread(
        self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str, data: ThreadUpdate
    ) -> ChannelThread:
        role = await self._require_member(db, channel_id, user_id)
        thread = await self._get_thread(db, channel_id, thread_id)
        self._require_author_or_admin(role, user_id, thread.created_by)

        if data.title is not None:
            thread.title = data.title
        if data.is_locked is not None:
            thread.is_locked = data.is_locked
        if data.is_resolved is not None:
            thread.is_resolved = data.is_resolved

        await db.commit()
        await db.refresh(thread)

        await kafka_producer.publish(
            EventType.THREAD_UPDATED,
            key=channel_id,
            data={
                "channel_id": channel_id,
                "thread_id": thread.id,
                "is_locked": thread.is_locked,
                "is_resolved": thread.is_resolved,
            },
            actor_id=user_id,
        )
        return thread

    async def delete_thread(self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str):
        """Delete a thread; its replies and followers go with it."""
        role = await self._require_member(db, channel_id, user_id)
        thread = await self._get_thread(db, channel_id, thread_id)
        self._require_author_or_admin(role, user_id, thread.created_by)

        await db.delete(thread)
        await db.commit()

        logger.info(f"Thread {thread_id} deleted from channel {channel_id} by {user_id}")
        await kafka_producer.publish(
            EventType.THREAD_DELETED,
            key=channel_id,
            data={"channel_id": channel_id, "thread_id": thread_id},
            actor_id=user_id,
        )

    async def create_reply(
        self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str, data: ReplyCreate
    ) -> ThreadReply:
        await self._require_member(db, channel_id, user_id)
        thread = await self._get_thread(db, channel_id, thread_id)

        if thread.is_locked:
            raise errors.StateConflictError(
                "thread_locked", "Thread is locked", entity="thread", entity_id=thread_id
            )
        if data.parent_id:
            await self._get_reply(db, thread_id, data.parent_id)

        now = utcnow()
        reply = ThreadReply(
            thread_id=thread_id, user_id=user_id, content=data.content, parent_id=data.parent_id
        )
        db.add(reply)
        await db.execute(
            update(ChannelThread)
            .where(ChannelThread.id == thread_id)
            .values(reply_count=ChannelThread.reply_count + 1, last_reply_at=now)
        )
        await self._follow(db, thread_id, user_id)
        await db.commit()
        await db.refresh(reply)

        await kafka_producer.publish(
            EventType.THREAD_REPLY_CREATED,
            key=channel_id,
            data={"channel_id": channel_id, "thread_id": thread_id, "reply_id": reply.id},
            actor_id=user_id,
        )
        return reply

    async def list_replies(
        self,
        db: AsyncSession,
        channel_id: str,
        thread_id: str,
        user_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> List[ThreadReply]:
        await self._require_member(db, channel_id, user_id)
        await self._get_thread(db, channel_id, thread_id)

        result = await db.execute(
            select(ThreadReply)
            .where(ThreadReply.thread_id == thread_id)
            .order_by(ThreadReply.created_at)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update_reply(
        self,
        db: AsyncSession,
        channel_id: str,
        thread_id: str,
        reply_id: str,
        user_id: str,
        content: str,
    ) -> ThreadReply:
        """Edit a reply. Author only."""
        await self._require_member(db, channel_id, user_id)
        await self._get_thread(db, channel_id, thread_id)
        reply = await self._get_reply(db, thread_id, reply_id)
        if reply.user_id != user_id:
            raise errors.NotAuthorizedError("Only the author can edit a reply")

        reply.content = content
        await db.commit()
        await db.refresh(reply)
        return reply

    async def delete_reply(
        self, db: AsyncSession, channel_id: str, thread_id: str, reply_id: str, user_id: str
    ):
        role = await self._require_member(db, channel_id, user_id)
        await self._get_thread(db, channel_id, thread_id)
        reply = await self._get_reply(db, thread_id, reply_id)
        self._require_author_or_admin(role, user_id, reply.user_id)

        await db.delete(reply)
        await db.execute(
            update(ChannelThread)
            .where(ChannelThread.id == thread_id, ChannelThread.reply_count > 0)
            .values(reply_count=ChannelThread.reply_count - 1)
        )
        await db.commit()

    async def follow_thread(
        self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str
    ) -> ThreadFollower:
        """Follow a thread. Following twice is a no-op."""
        await self._require_member(db, channel_id, user_id)
        await self._get_thread(db, channel_id, thread_id)

        result = await db.execute(
            select(ThreadFollower).where(
                ThreadFollower.thread_id == thread_id, ThreadFollower.user_id == user_id
            )
        )
        follower = result.scalar_one_or_none()
        if follower:
            return follower

        follower = ThreadFollower(thread_id=thread_id, user_id=user_id)
        db.add(follower)
        await db.commit()
        await db.refresh(follower)
        return follower

    async def unfollow_thread(self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str):
        await self._require_member(db, channel_id, user_id)
        await self._get_thread(db, channel_id, thread_id)

        result = await db.execute(
            select(ThreadFollower).where(
                ThreadFollower.thread_id == thread_id, ThreadFollower.user_id == user_id
            )
        )
        follower = result.scalar_one_or_none()
        if follower:
            await db.delete(follower)
            await db.commit()

    async def list_thread_followers(
        self, db: AsyncSession, channel_id: str, thread_id: str, user_id: str
    ) -> List[ThreadFollower]:
        await self._require_member(db, channel_id, user_id)
        await self._get_thread(db, channel_id, thread_id)

        result = await db.execute(
            select(ThreadFollower)
            .where(ThreadFollower.thread_id == thread_id)
            .order_by(ThreadFollower.created_at)
        )
        return list(result.scalars().all())


# Global instance
thread_manager = ThreadManager()

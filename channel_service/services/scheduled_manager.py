"""Scheduled message manager.

Messages wait in ``pending`` until a delivery worker picks them up with
``get_pending_before`` and reports back through ``mark_sent`` or
``mark_failed``. ``sent``, ``cancelled`` and ``failed`` are terminal.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ScheduledMessage, ScheduledMessageStatus, as_utc, utcnow
from ..schemas.scheduled import ScheduledMessageCreate, ScheduledMessageUpdate
from . import authority

logger = logging.getLogger(__name__)


def scheduled_time_in_past() -> errors.InvalidRequestError:
    return errors.InvalidRequestError(
        "scheduled_time_in_past", "Scheduled time must be in the future"
    )


def not_pending(message_id: str) -> errors.StateConflictError:
    return errors.StateConflictError(
        "scheduled_message_not_pending",
        "Scheduled message is no longer pending",
        entity="scheduled_message",
        entity_id=message_id,
    )


class ScheduledMessageManager:
    """Manages messages scheduled for later delivery."""

    async def _get_message(self, db: AsyncSession, message_id: str) -> ScheduledMessage:
        result = await db.execute(select(ScheduledMessage).where(ScheduledMessage.id == message_id))
        message = result.scalar_one_or_none()
        if not message:
            raise errors.NotFoundError("scheduled_message", message_id)
        return message

    async def _get_own_message(self, db: AsyncSession, message_id: str, user_id: str) -> ScheduledMessage:
        message = await self._get_message(db, message_id)
        if message.user_id != user_id:
            raise errors.NotAuthorizedError("Only the author can access a scheduled message")
        return message

    async def create_scheduled_message(
        self, db: AsyncSession, channel_id: str, user_id: str, data: ScheduledMessageCreate
    ) -> ScheduledMessage:
        await authority.require_member(db, channel_id, user_id)

        scheduled_at = as_utc(data.scheduled_at)
        if scheduled_at <= utcnow():
            raise scheduled_time_in_past()

        message = ScheduledMessage(
            channel_id=channel_id,
            user_id=user_id,
            content=data.content,
            scheduled_at=scheduled_at,
            status=ScheduledMessageStatus.PENDING.value,
            thread_id=data.thread_id,
        )
        db.add(message)
        await db.commit()
        await db.refresh(message)

        logger.info(f"Message {message.id} scheduled in channel {channel_id} for {scheduled_at.isoformat()}")
        return message

    async def get_scheduled_message(self, db: AsyncSession, message_id: str, user_id: str) -> ScheduledMessage:
        return await self._get_own_message(db, message_id, user_id)

    async def list_scheduled_messages(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> List[ScheduledMessage]:
        """The caller's pending messages in a channel, soonest first."""
        result = await db.execute(
            select(ScheduledMessage)
            .where(
                ScheduledMessage.channel_id == channel_id,
                ScheduledMessage.user_id == user_id,
                ScheduledMessage.status == ScheduledMessageStatus.PENDING.value,
            )
            .order_by(ScheduledMessage.scheduled_at)
        )
        return list(result.scalars().all())

    async def list_my_scheduled_messages(self, db: AsyncSession, user_id: str) -> List[ScheduledMessage]:
        result = await db.execute(
            select(ScheduledMessage)
            .where(ScheduledMessage.user_id == user_id)
            .order_by(ScheduledMessage.scheduled_at)
        )
        return list(result.scalars().all())

    async def update_scheduled_message(
        self, db: AsyncSession, message_id: str, user_id: str, data: ScheduledMessageUpdate
    ) -> ScheduledMessage:
        message = await self._get_own_message(db, message_id, user_id)
        if message.status != ScheduledMessageStatus.PENDING.value:
            raise not_pending(message_id)

        if data.scheduled_at is not None:
            scheduled_at = as_utc(data.scheduled_at)
            if scheduled_at <= utcnow():
                raise scheduled_time_in_past()
            message.scheduled_at = scheduled_at
        if data.content is not None:
            message.content = data.content

        await db.commit()
        await db.refresh(message)
        return message

    async def cancel_scheduled_message(
        self, db: AsyncSession, message_id: str, user_id: str
    ) -> ScheduledMessage:
        message = await self._get_own_message(db, message_id, user_id)
        if message.status != ScheduledMessageStatus.PENDING.value:
            raise not_pending(message_id)

        message.status = ScheduledMessageStatus.CANCELLED.value
        await db.commit()
        await db.refresh(message)
        return message

    async def get_pending_before(
        self, db: AsyncSession, before: datetime, limit: int = 100
    ) -> List[ScheduledMessage]:
        """Pending messages due at or before ``before``, oldest first."""
        result = await db.execute(
            select(ScheduledMessage)
            .where(
                ScheduledMessage.status == ScheduledMessageStatus.PENDING.value,
                ScheduledMessage.scheduled_at <= as_utc(before),
            )
            .order_by(ScheduledMessage.scheduled_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def _finish(
        self, db: AsyncSession, message_id: str, status: ScheduledMessageStatus
    ) -> ScheduledMessage:
        message = await self._get_message(db, message_id)
        if message.status != ScheduledMessageStatus.PENDING.value:
            raise not_pending(message_id)

        message.status = status.value
        if status == ScheduledMessageStatus.SENT:
            message.sent_at = utcnow()
        await db.commit()
        await db.refresh(message)
        return message

    async def mark_sent(self, db: AsyncSession, message_id: str) -> ScheduledMessage:
        return await self._finish(db, message_id, ScheduledMessageStatus.SENT)

    async def mark_failed(self, db: AsyncSession, message_id: str) -> ScheduledMessage:
        message = await self._finish(db, message_id, ScheduledMessageStatus.FAILED)
        logger.warning(f"Scheduled message {message_id} failed delivery")
        return message


# Global instance
scheduled_manager = ScheduledMessageManager()

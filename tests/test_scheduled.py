import pytest
from sqlalchemy import func, select

from channel_service import errors
from channel_service.database import ScheduledMessage, ScheduledMessageStatus
from channel_service.schemas.scheduled import ScheduledMessageCreate, ScheduledMessageUpdate
from channel_service.services.scheduled_manager import scheduled_manager

from conftest import ADMIN, MEMBER, OUTSIDER, in_future, in_past


async def _schedule(db, channel, hours=1, user_id=MEMBER, content="standup"):
    return await scheduled_manager.create_scheduled_message(
        db, channel.id, user_id, ScheduledMessageCreate(content=content, scheduled_at=in_future(hours))
    )


async def test_schedule_in_the_past_is_rejected(db, channel):
    with pytest.raises(errors.InvalidRequestError) as exc:
        await scheduled_manager.create_scheduled_message(
            db, channel.id, MEMBER, ScheduledMessageCreate(content="late", scheduled_at=in_past())
        )
    assert exc.value.code == "scheduled_time_in_past"

    result = await db.execute(select(func.count(ScheduledMessage.id)))
    assert result.scalar() == 0


async def test_schedule_requires_membership(db, channel):
    with pytest.raises(errors.NotMemberError):
        await _schedule(db, channel, user_id=OUTSIDER)


async def test_scheduled_messages_are_private_to_author(db, channel):
    message = await _schedule(db, channel)
    assert message.status == ScheduledMessageStatus.PENDING.value

    with pytest.raises(errors.NotAuthorizedError):
        await scheduled_manager.get_scheduled_message(db, message.id, ADMIN)

    assert [m.id for m in await scheduled_manager.list_scheduled_messages(db, channel.id, MEMBER)] == [message.id]
    assert await scheduled_manager.list_scheduled_messages(db, channel.id, ADMIN) == []


async def test_update_then_cancel(db, channel):
    message = await _schedule(db, channel)

    updated = await scheduled_manager.update_scheduled_message(
        db, message.id, MEMBER, ScheduledMessageUpdate(content="retro")
    )
    assert updated.content == "retro"

    with pytest.raises(errors.InvalidRequestError):
        await scheduled_manager.update_scheduled_message(
            db, message.id, MEMBER, ScheduledMessageUpdate(scheduled_at=in_past())
        )

    cancelled = await scheduled_manager.cancel_scheduled_message(db, message.id, MEMBER)
    assert cancelled.status == "cancelled"

    with pytest.raises(errors.StateConflictError) as exc:
        await scheduled_manager.update_scheduled_message(
            db, message.id, MEMBER, ScheduledMessageUpdate(content="again")
        )
    assert exc.value.code == "scheduled_message_not_pending"
    assert await scheduled_manager.list_scheduled_messages(db, channel.id, MEMBER) == []


async def test_delivery_lifecycle(db, channel):
    soon = await _schedule(db, channel, hours=1, content="soon")
    later = await _schedule(db, channel, hours=5, content="later")

    due = await scheduled_manager.get_pending_before(db, in_future(2))
    assert [m.id for m in due] == [soon.id]

    sent = await scheduled_manager.mark_sent(db, soon.id)
    assert sent.status == "sent"
    assert sent.sent_at is not None

    with pytest.raises(errors.StateConflictError):
        await scheduled_manager.mark_failed(db, soon.id)

    failed = await scheduled_manager.mark_failed(db, later.id)
    assert failed.status == "failed"
    assert failed.sent_at is None

    assert await scheduled_manager.get_pending_before(db, in_future(10)) == []
    assert len(await scheduled_manager.list_my_scheduled_messages(db, MEMBER)) == 2

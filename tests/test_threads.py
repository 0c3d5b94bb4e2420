import pytest

from channel_service import errors
from channel_service.schemas.threads import ReplyCreate, ThreadCreate, ThreadUpdate
from channel_service.services.thread_manager import thread_manager

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, published_types


async def _thread(db, channel, user_id=MEMBER, message_id="m1"):
    return await thread_manager.create_thread(
        db, channel.id, user_id, ThreadCreate(message_id=message_id, title="question")
    )


async def test_create_thread_follows_creator(db, channel, published):
    thread = await _thread(db, channel)

    assert thread.reply_count == 0
    assert thread.last_reply_at is None
    followers = await thread_manager.list_thread_followers(db, channel.id, thread.id, MEMBER)
    assert [f.user_id for f in followers] == [MEMBER]
    assert published_types(published)[-1] == "thread.created"


async def test_non_member_cannot_start_thread(db, channel):
    with pytest.raises(errors.NotMemberError):
        await _thread(db, channel, user_id=OUTSIDER)


async def test_replies_maintain_count_and_followers(db, channel):
    thread = await _thread(db, channel)

    reply = await thread_manager.create_reply(db, channel.id, thread.id, ADMIN, ReplyCreate(content="hi"))
    await thread_manager.create_reply(
        db, channel.id, thread.id, OWNER, ReplyCreate(content="hey", parent_id=reply.id)
    )

    thread = await thread_manager.get_thread(db, channel.id, thread.id, MEMBER)
    assert thread.reply_count == 2
    assert thread.last_reply_at is not None

    followers = await thread_manager.list_thread_followers(db, channel.id, thread.id, MEMBER)
    assert {f.user_id for f in followers} == {MEMBER, ADMIN, OWNER}

    await thread_manager.delete_reply(db, channel.id, thread.id, reply.id, ADMIN)
    thread = await thread_manager.get_thread(db, channel.id, thread.id, MEMBER)
    assert thread.reply_count == 1
    assert len(await thread_manager.list_replies(db, channel.id, thread.id, MEMBER)) == 1


async def test_locked_thread_rejects_replies(db, channel):
    thread = await _thread(db, channel)
    await thread_manager.update_thread(db, channel.id, thread.id, ADMIN, ThreadUpdate(is_locked=True))

    with pytest.raises(errors.StateConflictError) as exc:
        await thread_manager.create_reply(db, channel.id, thread.id, MEMBER, ReplyCreate(content="x"))
    assert exc.value.code == "thread_locked"


async def test_thread_update_requires_author_or_admin(db, channel):
    thread = await _thread(db, channel, user_id=ADMIN)

    with pytest.raises(errors.NotAuthorizedError):
        await thread_manager.update_thread(
            db, channel.id, thread.id, MEMBER, ThreadUpdate(is_resolved=True)
        )

    updated = await thread_manager.update_thread(
        db, channel.id, thread.id, ADMIN, ThreadUpdate(is_resolved=True)
    )
    assert updated.is_resolved is True


async def test_reply_edit_is_author_only(db, channel):
    thread = await _thread(db, channel)
    reply = await thread_manager.create_reply(db, channel.id, thread.id, MEMBER, ReplyCreate(content="a"))

    with pytest.raises(errors.NotAuthorizedError):
        await thread_manager.update_reply(db, channel.id, thread.id, reply.id, OWNER, "b")

    edited = await thread_manager.update_reply(db, channel.id, thread.id, reply.id, MEMBER, "b")
    assert edited.content == "b"


async def test_list_threads_by_latest_reply(db, channel):
    quiet = await _thread(db, channel, message_id="m1")
    busy = await _thread(db, channel, message_id="m2")
    await thread_manager.create_reply(db, channel.id, quiet.id, MEMBER, ReplyCreate(content="bump"))

    threads = await thread_manager.list_threads(db, channel.id, MEMBER)
    assert [t.id for t in threads] == [quiet.id, busy.id]


async def test_follow_is_idempotent(db, channel):
    thread = await _thread(db, channel)

    first = await thread_manager.follow_thread(db, channel.id, thread.id, OWNER)
    second = await thread_manager.follow_thread(db, channel.id, thread.id, OWNER)
    assert first.id == second.id

    await thread_manager.unfollow_thread(db, channel.id, thread.id, OWNER)
    await thread_manager.unfollow_thread(db, channel.id, thread.id, OWNER)
    followers = await thread_manager.list_thread_followers(db, channel.id, thread.id, MEMBER)
    assert [f.user_id for f in followers] == [MEMBER]


async def test_delete_thread_removes_replies(db, channel):
    thread = await _thread(db, channel)
    await thread_manager.create_reply(db, channel.id, thread.id, MEMBER, ReplyCreate(content="a"))

    await thread_manager.delete_thread(db, channel.id, thread.id, OWNER)

    with pytest.raises(errors.NotFoundError):
        await thread_manager.get_thread(db, channel.id, thread.id, MEMBER)


async def test_outsider_refused_before_thread_lookup(db, channel):
    thread = await _thread(db, channel)

    for thread_id in (thread.id, "does-not-exist"):
        with pytest.raises(errors.NotAuthorizedError) as exc:
            await thread_manager.delete_thread(db, channel.id, thread_id, OUTSIDER)
        assert exc.value.code == "not_member"

        with pytest.raises(errors.NotAuthorizedError) as exc:
            await thread_manager.get_thread(db, channel.id, thread_id, OUTSIDER)
        assert exc.value.code == "not_member"

        with pytest.raises(errors.NotAuthorizedError):
            await thread_manager.list_replies(db, channel.id, thread_id, OUTSIDER)
        with pytest.raises(errors.NotAuthorizedError):
            await thread_manager.follow_thread(db, channel.id, thread_id, OUTSIDER)

    with pytest.raises(errors.NotAuthorizedError):
        await thread_manager.list_threads(db, channel.id, OUTSIDER)
    with pytest.raises(errors.NotFoundError):
        await thread_manager.get_thread(db, channel.id, "does-not-exist", MEMBER)

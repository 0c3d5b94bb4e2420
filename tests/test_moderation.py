import pytest

from channel_service import errors
from channel_service.schemas.moderation import ModerationRequest
from channel_service.services import authority
from channel_service.services.member_manager import member_manager
from channel_service.services.moderation_manager import moderation_manager

from conftest import ADMIN, MEMBER, OWNER, in_past, published_types


async def test_ban_removes_membership_and_logs(db, channel, published):
    ban = await moderation_manager.ban_member(
        db, channel.id, ADMIN, MEMBER, ModerationRequest(reason="spam")
    )

    assert ban.reason == "spam"
    assert await authority.get_role(db, channel.id, MEMBER) is None
    assert await moderation_manager.is_banned(db, channel.id, MEMBER)

    history = await moderation_manager.get_moderation_history(db, channel.id, OWNER)
    assert [(entry.action, entry.user_id, entry.actor_id) for entry in history] == [
        ("ban", MEMBER, ADMIN)
    ]
    assert "member.banned" in published_types(published)


async def test_unban_allows_rejoin(db, channel):
    await moderation_manager.ban_member(db, channel.id, OWNER, MEMBER, ModerationRequest())
    await moderation_manager.unban_member(db, channel.id, OWNER, MEMBER)

    assert not await moderation_manager.is_banned(db, channel.id, MEMBER)
    await member_manager.add_member(db, channel.id, OWNER, MEMBER)

    history = await moderation_manager.get_moderation_history(db, channel.id, OWNER)
    assert sorted(entry.action for entry in history) == ["ban", "unban"]


async def test_unban_without_ban(db, channel):
    with pytest.raises(errors.NotFoundError) as exc:
        await moderation_manager.unban_member(db, channel.id, OWNER, MEMBER)
    assert exc.value.code == "ban_not_found"


async def test_expired_ban_does_not_block(db, channel):
    await moderation_manager.ban_member(
        db, channel.id, OWNER, "u-temp", ModerationRequest(expires_at=in_past())
    )
    assert not await moderation_manager.is_banned(db, channel.id, "u-temp")
    await member_manager.add_member(db, channel.id, OWNER, "u-temp")


async def test_rebanning_refreshes_existing_ban(db, channel):
    await moderation_manager.ban_member(db, channel.id, OWNER, MEMBER, ModerationRequest(reason="one"))
    await moderation_manager.ban_member(db, channel.id, ADMIN, MEMBER, ModerationRequest(reason="two"))

    bans = await moderation_manager.list_bans(db, channel.id, OWNER)
    assert len(bans) == 1
    assert bans[0].reason == "two"
    assert bans[0].banned_by == ADMIN


async def test_moderation_guards(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await moderation_manager.ban_member(db, channel.id, MEMBER, ADMIN, ModerationRequest())

    with pytest.raises(errors.NotAuthorizedError):
        await moderation_manager.ban_member(db, channel.id, ADMIN, OWNER, ModerationRequest())

    with pytest.raises(errors.InvalidRequestError) as exc:
        await moderation_manager.mute_member(db, channel.id, ADMIN, ADMIN, ModerationRequest())
    assert exc.value.code == "cannot_moderate_self"


async def test_mute_keeps_membership(db, channel):
    await moderation_manager.mute_member(db, channel.id, ADMIN, MEMBER, ModerationRequest())

    assert await moderation_manager.is_muted(db, channel.id, MEMBER)
    assert await authority.get_role(db, channel.id, MEMBER) is not None
    assert [m.user_id for m in await moderation_manager.list_mutes(db, channel.id, OWNER)] == [MEMBER]

    await moderation_manager.unmute_member(db, channel.id, ADMIN, MEMBER)
    assert not await moderation_manager.is_muted(db, channel.id, MEMBER)

    with pytest.raises(errors.NotFoundError):
        await moderation_manager.unmute_member(db, channel.id, ADMIN, MEMBER)

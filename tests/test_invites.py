import pytest
from sqlalchemy import select

from channel_service import errors
from channel_service.database import ChannelInvite, ChannelRole
from channel_service.schemas.invites import InviteCreate
from channel_service.schemas.moderation import ModerationRequest
from channel_service.services import authority
from channel_service.services.invite_manager import invite_manager
from channel_service.services.moderation_manager import moderation_manager

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, in_future, in_past


async def test_create_invite_generates_short_code(db, channel):
    invite = await invite_manager.create_invite(db, channel.id, ADMIN, InviteCreate())

    assert len(invite.code) == 8
    assert invite.max_uses == 0
    assert invite.use_count == 0
    assert invite.is_active is True


async def test_member_cannot_create_invite(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await invite_manager.create_invite(db, channel.id, MEMBER, InviteCreate())


async def test_single_use_invite(db, channel):
    invite = await invite_manager.create_invite(db, channel.id, OWNER, InviteCreate(max_uses=1))

    member = await invite_manager.join_by_code(db, invite.code, "u-first")
    assert member.role == ChannelRole.MEMBER.value

    refreshed = await db.execute(select(ChannelInvite).where(ChannelInvite.id == invite.id))
    assert refreshed.scalar_one().use_count == 1

    with pytest.raises(errors.StateConflictError) as exc:
        await invite_manager.join_by_code(db, invite.code, "u-second")
    assert exc.value.code == "invite_max_uses"
    assert await authority.get_role(db, channel.id, "u-second") is None


async def test_expired_invite_is_gone(db, channel):
    invite = await invite_manager.create_invite(
        db, channel.id, OWNER, InviteCreate(expires_at=in_past())
    )

    with pytest.raises(errors.StateConflictError) as exc:
        await invite_manager.join_by_code(db, invite.code, OUTSIDER)
    assert exc.value.code == "invite_expired"
    assert errors.http_status_for(exc.value) == 410


async def test_join_checks_ban_then_membership(db, channel):
    invite = await invite_manager.create_invite(db, channel.id, OWNER, InviteCreate())
    await moderation_manager.ban_member(db, channel.id, OWNER, "u-banned", ModerationRequest())

    with pytest.raises(errors.StateConflictError) as exc:
        await invite_manager.join_by_code(db, invite.code, "u-banned")
    assert exc.value.code == "user_banned"

    with pytest.raises(errors.ConflictError) as exc:
        await invite_manager.join_by_code(db, invite.code, MEMBER)
    assert exc.value.code == "already_member"


async def test_unknown_or_deactivated_code(db, channel):
    with pytest.raises(errors.NotFoundError):
        await invite_manager.join_by_code(db, "nope1234", OUTSIDER)

    invite = await invite_manager.create_invite(db, channel.id, OWNER, InviteCreate())
    await invite_manager.delete_invite(db, channel.id, invite.id, ADMIN)

    with pytest.raises(errors.StateConflictError) as exc:
        await invite_manager.get_invite_by_code(db, invite.code)
    assert exc.value.code == "invite_expired"

    with pytest.raises(errors.StateConflictError) as exc:
        await invite_manager.join_by_code(db, invite.code, OUTSIDER)
    assert exc.value.code == "invite_expired"
    assert errors.http_status_for(exc.value) == 410
    assert await authority.get_role(db, channel.id, OUTSIDER) is None


async def test_invite_preview_and_listing(db, channel):
    invite = await invite_manager.create_invite(db, channel.id, OWNER, InviteCreate(max_uses=5))

    preview = await invite_manager.get_invite_by_code(db, invite.code)
    assert preview.channel_name == "general"
    assert preview.invite.max_uses == 5

    invites = await invite_manager.list_invites(db, channel.id, ADMIN)
    assert [i.code for i in invites] == [invite.code]
    with pytest.raises(errors.NotAuthorizedError):
        await invite_manager.list_invites(db, channel.id, MEMBER)


async def test_deactivate_expired_invites(db, channel):
    expired = await invite_manager.create_invite(
        db, channel.id, OWNER, InviteCreate(expires_at=in_past())
    )
    live = await invite_manager.create_invite(
        db, channel.id, OWNER, InviteCreate(expires_at=in_future())
    )

    assert await invite_manager.deactivate_expired_invites(db) == 1

    result = await db.execute(
        select(ChannelInvite.id).where(ChannelInvite.is_active.is_(True))
    )
    assert result.scalars().all() == [live.id]
    assert expired.id != live.id

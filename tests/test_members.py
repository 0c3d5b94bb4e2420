from unittest.mock import AsyncMock

import pytest
from sqlalchemy import select

from channel_service import errors
from channel_service.database import ActivityLog, ChannelRole, NotificationLevel
from channel_service.schemas.moderation import ModerationRequest
from channel_service.services import authority
from channel_service.services.member_manager import member_manager
from channel_service.services.moderation_manager import moderation_manager

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, published_types


async def test_add_member_requires_governance_role(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await member_manager.add_member(db, channel.id, MEMBER, "u-new")

    member = await member_manager.add_member(db, channel.id, ADMIN, "u-new")
    assert member.role == ChannelRole.MEMBER.value
    assert member.notifications == NotificationLevel.ALL.value


async def test_add_existing_member_conflicts(db, channel):
    with pytest.raises(errors.ConflictError) as exc:
        await member_manager.add_member(db, channel.id, OWNER, MEMBER)
    assert exc.value.code == "already_member"


async def test_duplicate_member_rejected_by_store_constraint(db, channel, monkeypatch):
    # A concurrent add can pass the pre-check; the unique row constraint still wins.
    channel_id = channel.id
    monkeypatch.setattr(authority, "get_membership", AsyncMock(return_value=None))

    with pytest.raises(errors.ConflictError) as exc:
        await member_manager.add_member(db, channel_id, OWNER, MEMBER)
    assert exc.value.code == "already_member"
    assert await authority.get_role(db, channel_id, MEMBER) == ChannelRole.MEMBER


async def test_add_member_to_missing_channel(db):
    with pytest.raises(errors.NotFoundError):
        await member_manager.add_member(db, "missing", OWNER, MEMBER)


async def test_remove_member(db, channel, published):
    await member_manager.remove_member(db, channel.id, ADMIN, MEMBER)
    assert await authority.get_role(db, channel.id, MEMBER) is None
    assert "member.removed" in published_types(published)

    with pytest.raises(errors.NotFoundError) as exc:
        await member_manager.remove_member(db, channel.id, ADMIN, MEMBER)
    assert exc.value.code == "member_not_found"


async def test_owner_cannot_be_removed(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await member_manager.remove_member(db, channel.id, ADMIN, OWNER)


async def test_leave_requires_membership(db, channel):
    with pytest.raises(errors.NotMemberError):
        await member_manager.leave_channel(db, channel.id, OUTSIDER)

    await member_manager.leave_channel(db, channel.id, MEMBER)
    assert await authority.get_role(db, channel.id, MEMBER) is None


async def test_list_members_in_join_order(db, channel):
    members, total = await member_manager.list_members(db, channel.id, limit=2)
    assert total == 3
    assert [m.user_id for m in members] == [OWNER, ADMIN]


async def test_update_member_role_is_owner_only(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await member_manager.update_member_role(db, channel.id, ADMIN, MEMBER, ChannelRole.ADMIN)

    member = await member_manager.update_member_role(db, channel.id, OWNER, MEMBER, ChannelRole.ADMIN)
    assert member.role == "admin"

    result = await db.execute(select(ActivityLog).where(ActivityLog.channel_id == channel.id))
    entry = result.scalar_one()
    assert entry.action == "member_role_updated"
    assert entry.target_id == MEMBER


async def test_owner_role_cannot_be_assigned_directly(db, channel):
    with pytest.raises(errors.InvalidRequestError) as exc:
        await member_manager.update_member_role(db, channel.id, OWNER, MEMBER, ChannelRole.OWNER)
    assert exc.value.code == "use_transfer_ownership"

    with pytest.raises(errors.InvalidRequestError):
        await member_manager.update_member_role(db, channel.id, OWNER, OWNER, ChannelRole.MEMBER)


async def test_notifications_and_last_read(db, channel):
    member = await member_manager.update_notifications(
        db, channel.id, MEMBER, NotificationLevel.MENTIONS
    )
    assert member.notifications == "mentions"

    assert member.last_read_at is None
    member = await member_manager.update_last_read(db, channel.id, MEMBER)
    assert member.last_read_at is not None

    with pytest.raises(errors.NotMemberError):
        await member_manager.update_last_read(db, channel.id, OUTSIDER)


async def test_bulk_add_skips_existing_and_banned(db, channel):
    await moderation_manager.ban_member(db, channel.id, OWNER, "u-banned", ModerationRequest())

    added = await member_manager.bulk_add_members(
        db, channel.id, ADMIN, [MEMBER, "u-a", "u-b", "u-a", "u-banned"]
    )

    assert added == 2
    _, total = await member_manager.list_members(db, channel.id)
    assert total == 5


async def test_bulk_remove_reports_failures(db, channel):
    await member_manager.add_member(db, channel.id, OWNER, "u-a")

    result = await member_manager.bulk_remove_members(
        db, channel.id, ADMIN, [ADMIN, OWNER, "u-a", MEMBER, "nobody"]
    )

    assert result.successful == 2
    assert result.failed == 3
    assert f"{ADMIN}: cannot remove yourself" in result.errors
    assert f"{OWNER}: cannot remove the channel owner" in result.errors
    assert "nobody: not a member" in result.errors
    assert await authority.get_role(db, channel.id, MEMBER) is None


async def test_bulk_update_roles(db, channel):
    await member_manager.add_member(db, channel.id, OWNER, "u-a")

    with pytest.raises(errors.NotAuthorizedError):
        await member_manager.bulk_update_roles(db, channel.id, ADMIN, [MEMBER], ChannelRole.ADMIN)

    result = await member_manager.bulk_update_roles(
        db, channel.id, OWNER, [MEMBER, "u-a", "nobody"], ChannelRole.ADMIN
    )
    assert result.successful == 2
    assert result.failed == 1
    assert await authority.get_role(db, channel.id, "u-a") == ChannelRole.ADMIN

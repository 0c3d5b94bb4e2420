import pytest
from sqlalchemy import select

from channel_service import errors
from channel_service.database import (
    ActivityLog,
    ChannelPin,
    ChannelRole,
    ChannelSetting,
    TopicHistory,
)
from channel_service.schemas.channels import ChannelCreate, ChannelUpdate, CloneChannelRequest
from channel_service.services import authority
from channel_service.services.channel_manager import channel_manager
from channel_service.services.member_manager import member_manager
from channel_service.services.moderation_manager import moderation_manager
from channel_service.schemas.moderation import ModerationRequest

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, published_types


# ============================================================================
# Create / get
# ============================================================================


async def test_creator_becomes_owner(db, published):
    channel = await channel_manager.create_channel(
        db, "u1", ChannelCreate(workspace_id="w1", name="general")
    )

    assert channel.type == "public"
    assert channel.is_archived is False
    assert await authority.get_role(db, channel.id, "u1") == ChannelRole.OWNER

    detail = await channel_manager.get_channel(db, channel.id, "u1")
    assert detail.my_role == ChannelRole.OWNER
    assert detail.member_count == 1
    assert published_types(published) == ["channel.created"]


async def test_duplicate_name_in_workspace_is_rejected(db):
    await channel_manager.create_channel(db, "u1", ChannelCreate(workspace_id="w1", name="dup"))

    with pytest.raises(errors.ConflictError) as exc:
        await channel_manager.create_channel(db, "u2", ChannelCreate(workspace_id="w1", name="dup"))
    assert exc.value.code == "channel_name_taken"

    # Same name in another workspace is fine
    other = await channel_manager.create_channel(db, "u2", ChannelCreate(workspace_id="w2", name="dup"))
    assert other.workspace_id == "w2"


async def test_get_channel_for_non_member_has_no_role(db, channel):
    detail = await channel_manager.get_channel(db, channel.id, OUTSIDER)
    assert detail.my_role is None
    assert detail.member_count == 3


async def test_get_missing_channel(db):
    with pytest.raises(errors.NotFoundError) as exc:
        await channel_manager.get_channel(db, "missing", OWNER)
    assert exc.value.code == "channel_not_found"


async def test_get_channel_reads_through_cache(db, channel, fake_redis):
    await channel_manager.get_channel(db, channel.id, OWNER)
    assert await fake_redis.exists(f"channel:{channel.id}")

    await channel_manager.update_channel(db, channel.id, OWNER, ChannelUpdate(description="new"))
    assert not await fake_redis.exists(f"channel:{channel.id}")

    detail = await channel_manager.get_channel(db, channel.id, OWNER)
    assert detail.channel.description == "new"


# ============================================================================
# Update / topic history
# ============================================================================


async def test_topic_change_is_recorded(db, channel):
    await channel_manager.update_channel(db, channel.id, OWNER, ChannelUpdate(topic="roadmap"))

    history = await channel_manager.get_topic_history(db, channel.id, MEMBER)
    assert len(history) == 1
    assert history[0].old_topic is None
    assert history[0].new_topic == "roadmap"
    assert history[0].changed_by == OWNER


async def test_same_topic_does_not_add_history(db, channel):
    await channel_manager.update_channel(db, channel.id, OWNER, ChannelUpdate(topic="roadmap"))
    await channel_manager.update_channel(db, channel.id, ADMIN, ChannelUpdate(topic="roadmap"))

    result = await db.execute(select(TopicHistory).where(TopicHistory.channel_id == channel.id))
    assert len(result.scalars().all()) == 1


async def test_member_cannot_update_channel(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await channel_manager.update_channel(db, channel.id, MEMBER, ChannelUpdate(name="renamed"))


async def test_topic_history_requires_membership(db, channel):
    with pytest.raises(errors.NotMemberError):
        await channel_manager.get_topic_history(db, channel.id, OUTSIDER)


# ============================================================================
# Archive / delete
# ============================================================================


async def test_archive_blocks_adding_members_until_unarchived(db, channel):
    await channel_manager.archive_channel(db, channel.id, OWNER)

    with pytest.raises(errors.StateConflictError) as exc:
        await member_manager.add_member(db, channel.id, OWNER, "u-new")
    assert exc.value.code == "channel_archived"

    await channel_manager.unarchive_channel(db, channel.id, ADMIN)
    member = await member_manager.add_member(db, channel.id, OWNER, "u-new")
    assert member.role == "member"

    result = await db.execute(
        select(ActivityLog.action).where(ActivityLog.channel_id == channel.id).order_by(ActivityLog.created_at)
    )
    assert result.scalars().all() == ["channel_archived", "channel_unarchived"]


async def test_delete_is_owner_only_and_soft(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await channel_manager.delete_channel(db, channel.id, ADMIN)

    await channel_manager.delete_channel(db, channel.id, OWNER)

    with pytest.raises(errors.NotFoundError):
        await authority.get_channel(db, channel.id)
    channels, total = await channel_manager.list_channels(db, "w1")
    assert total == 0
    assert channels == []


# ============================================================================
# Ownership
# ============================================================================


async def test_owner_cannot_leave_until_ownership_transferred(db, channel, published):
    with pytest.raises(errors.StateConflictError) as exc:
        await member_manager.leave_channel(db, channel.id, OWNER)
    assert exc.value.code == "cannot_leave_owner"

    await channel_manager.transfer_ownership(db, channel.id, OWNER, MEMBER)

    assert await authority.get_role(db, channel.id, OWNER) == ChannelRole.ADMIN
    assert await authority.get_role(db, channel.id, MEMBER) == ChannelRole.OWNER

    with pytest.raises(errors.StateConflictError):
        await member_manager.leave_channel(db, channel.id, MEMBER)
    await member_manager.leave_channel(db, channel.id, OWNER)
    assert await authority.get_role(db, channel.id, OWNER) is None
    assert "ownership.transferred" in published_types(published)


async def test_transfer_requires_owner_and_member_target(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await channel_manager.transfer_ownership(db, channel.id, ADMIN, MEMBER)

    with pytest.raises(errors.NotMemberError):
        await channel_manager.transfer_ownership(db, channel.id, OWNER, OUTSIDER)

    with pytest.raises(errors.InvalidRequestError):
        await channel_manager.transfer_ownership(db, channel.id, OWNER, OWNER)


# ============================================================================
# Listing / search / clone / stats
# ============================================================================


async def test_list_search_and_user_channels(db, channel):
    await channel_manager.create_channel(db, OWNER, ChannelCreate(workspace_id="w1", name="random"))
    await channel_manager.create_channel(db, OUTSIDER, ChannelCreate(workspace_id="w1", name="design"))

    channels, total = await channel_manager.list_channels(db, "w1", limit=2)
    assert total == 3
    assert [c.name for c in channels] == ["design", "general"]

    found = await channel_manager.search_channels(db, "w1", "GEN")
    assert [c.name for c in found] == ["general"]

    await channel_manager.create_channel(
        db, ADMIN, ChannelCreate(workspace_id="w1", name="eng", description="Roadmap planning")
    )
    found = await channel_manager.search_channels(db, "w1", "roadmap")
    assert [c.name for c in found] == ["eng"]

    mine = await channel_manager.list_user_channels(db, OWNER)
    assert [c.name for c in mine] == ["general", "random"]


async def test_clone_copies_members_pins_and_settings(db, channel):
    db.add(ChannelPin(channel_id=channel.id, message_id="m1", pinned_by=MEMBER))
    db.add(ChannelSetting(channel_id=channel.id, slow_mode_interval=30))
    await db.commit()

    clone = await channel_manager.clone_channel(
        db,
        channel.id,
        ADMIN,
        CloneChannelRequest(
            name="general-copy", include_members=True, include_pins=True, include_settings=True
        ),
    )

    assert await authority.get_role(db, clone.id, ADMIN) == ChannelRole.OWNER
    assert await authority.get_role(db, clone.id, OWNER) == ChannelRole.ADMIN
    assert await authority.get_role(db, clone.id, MEMBER) == ChannelRole.MEMBER

    pins = await db.execute(select(ChannelPin.message_id).where(ChannelPin.channel_id == clone.id))
    assert pins.scalars().all() == ["m1"]

    settings_row = await db.execute(select(ChannelSetting).where(ChannelSetting.channel_id == clone.id))
    assert settings_row.scalar_one().slow_mode_interval == 30


async def test_clone_without_options_only_adds_creator(db, channel):
    clone = await channel_manager.clone_channel(
        db, channel.id, OWNER, CloneChannelRequest(name="bare")
    )
    assert await channel_manager.count_members(db, clone.id) == 1


async def test_channel_stats(db, channel):
    await member_manager.update_last_read(db, channel.id, MEMBER)

    stats = await channel_manager.get_channel_stats(db, channel.id, MEMBER)
    assert stats.member_count == 3
    assert stats.pin_count == 0
    assert stats.active_members_week == 1


async def test_channel_activity_is_admin_only(db, channel):
    await member_manager.update_last_read(db, channel.id, MEMBER)
    await member_manager.update_last_read(db, channel.id, ADMIN)

    with pytest.raises(errors.NotAuthorizedError):
        await channel_manager.get_channel_activity(db, channel.id, MEMBER)

    days = await channel_manager.get_channel_activity(db, channel.id, ADMIN)
    assert len(days) == 1
    assert days[0].active_users == 2


async def test_banned_user_cannot_be_added(db, channel):
    await moderation_manager.ban_member(db, channel.id, OWNER, "u2", ModerationRequest())

    with pytest.raises(errors.StateConflictError) as exc:
        await member_manager.add_member(db, channel.id, OWNER, "u2")
    assert exc.value.code == "user_banned"
    assert errors.http_status_for(exc.value) == 403

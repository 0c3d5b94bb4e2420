import pytest
from pydantic import ValidationError

from channel_service import errors
from channel_service.database import NotificationLevel, PermissionTargetType
from channel_service.schemas.integrations import (
    PermissionSet,
    SettingsUpdate,
    WebhookCreate,
    WebhookUpdate,
)
from channel_service.services.integration_manager import integration_manager

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, published_types


def _webhook(**overrides):
    data = {"name": "ci", "url": "https://hooks.example.com/ci", "events": ["channel.updated"]}
    data.update(overrides)
    return WebhookCreate(**data)


# ============================================================================
# Webhooks
# ============================================================================


async def test_webhooks_are_admin_only(db, channel):
    with pytest.raises(errors.NotAuthorizedError):
        await integration_manager.create_webhook(db, channel.id, MEMBER, _webhook())

    webhook = await integration_manager.create_webhook(db, channel.id, ADMIN, _webhook())
    assert webhook.is_active is True
    assert webhook.events == ["channel.updated"]

    with pytest.raises(errors.NotAuthorizedError):
        await integration_manager.list_webhooks(db, channel.id, MEMBER)
    assert len(await integration_manager.list_webhooks(db, channel.id, OWNER)) == 1


def test_webhook_events_must_be_known():
    with pytest.raises(ValidationError):
        _webhook(events=["not.an.event"])
    with pytest.raises(ValidationError):
        _webhook(events=[])


async def test_update_and_test_webhook(db, channel, published):
    webhook = await integration_manager.create_webhook(db, channel.id, ADMIN, _webhook())

    updated = await integration_manager.update_webhook(
        db, channel.id, webhook.id, OWNER, WebhookUpdate(is_active=False, name="deploys")
    )
    assert updated.is_active is False
    assert updated.name == "deploys"
    assert updated.url == "https://hooks.example.com/ci"

    assert webhook.last_triggered_at is None
    tested = await integration_manager.test_webhook(db, channel.id, webhook.id, ADMIN)
    assert tested.last_triggered_at is not None
    assert published_types(published)[-1] == "webhook.tested"


async def test_delete_webhook_logs_activity(db, channel):
    webhook = await integration_manager.create_webhook(db, channel.id, ADMIN, _webhook())
    await integration_manager.delete_webhook(db, channel.id, webhook.id, ADMIN)

    with pytest.raises(errors.NotFoundError):
        await integration_manager.get_webhook(db, channel.id, webhook.id, ADMIN)

    log = await integration_manager.get_activity_log(db, channel.id, OWNER)
    assert {entry.action for entry in log} == {"webhook_created", "webhook_deleted"}


# ============================================================================
# Permission overrides
# ============================================================================


async def test_permission_cannot_allow_and_deny(db, channel):
    with pytest.raises(errors.InvalidRequestError) as exc:
        await integration_manager.set_permission(
            db,
            channel.id,
            ADMIN,
            PermissionSet(
                permission_type="pin", target_type=PermissionTargetType.ROLE,
                target_id="member", allow=True, deny=True,
            ),
        )
    assert exc.value.code == "invalid_permission"


async def test_set_permission_upserts(db, channel):
    first = await integration_manager.set_permission(
        db, channel.id, ADMIN,
        PermissionSet(permission_type="pin", target_type=PermissionTargetType.ROLE, target_id="member", allow=True),
    )
    second = await integration_manager.set_permission(
        db, channel.id, OWNER,
        PermissionSet(permission_type="pin", target_type=PermissionTargetType.ROLE, target_id="member", deny=True),
    )

    assert second.id == first.id
    assert second.allow is False
    assert second.deny is True
    assert len(await integration_manager.list_permissions(db, channel.id, ADMIN)) == 1


async def test_user_override_beats_role_override(db, channel):
    await integration_manager.set_permission(
        db, channel.id, ADMIN,
        PermissionSet(permission_type="pin", target_type=PermissionTargetType.ROLE, target_id="member", deny=True),
    )
    await integration_manager.set_permission(
        db, channel.id, ADMIN,
        PermissionSet(permission_type="pin", target_type=PermissionTargetType.USER, target_id=MEMBER, allow=True),
    )
    await integration_manager.set_permission(
        db, channel.id, ADMIN,
        PermissionSet(permission_type="invite", target_type=PermissionTargetType.ROLE, target_id="member", deny=True),
    )
    await integration_manager.set_permission(
        db, channel.id, ADMIN,
        PermissionSet(permission_type="react", target_type=PermissionTargetType.ROLE, target_id="admin", deny=True),
    )

    effective = await integration_manager.get_effective_permissions(db, channel.id, MEMBER)

    assert [(p.permission_type, p.allow, p.deny) for p in effective] == [
        ("invite", False, True),
        ("pin", True, False),
    ]

    with pytest.raises(errors.NotMemberError):
        await integration_manager.get_effective_permissions(db, channel.id, OUTSIDER)


async def test_delete_permission(db, channel):
    permission = await integration_manager.set_permission(
        db, channel.id, ADMIN,
        PermissionSet(permission_type="pin", target_type=PermissionTargetType.USER, target_id=MEMBER, allow=True),
    )
    await integration_manager.delete_permission(db, channel.id, permission.id, OWNER)
    assert await integration_manager.list_permissions(db, channel.id, OWNER) == []

    with pytest.raises(errors.NotFoundError):
        await integration_manager.delete_permission(db, channel.id, permission.id, OWNER)


# ============================================================================
# Settings / activity
# ============================================================================


async def test_settings_default_until_patched(db, channel):
    settings = await integration_manager.get_settings(db, channel.id, MEMBER)
    assert settings.max_pins == 50
    assert settings.slow_mode_interval == 0
    assert settings.default_notification == NotificationLevel.ALL

    with pytest.raises(errors.NotAuthorizedError):
        await integration_manager.update_settings(db, channel.id, MEMBER, SettingsUpdate(max_pins=5))

    updated = await integration_manager.update_settings(
        db, channel.id, ADMIN, SettingsUpdate(slow_mode_interval=30)
    )
    assert updated.slow_mode_interval == 30
    assert updated.max_pins == 50

    updated = await integration_manager.update_settings(
        db, channel.id, OWNER, SettingsUpdate(default_notification=NotificationLevel.MENTIONS)
    )
    assert updated.slow_mode_interval == 30
    assert updated.default_notification == NotificationLevel.MENTIONS

    log = await integration_manager.get_activity_log(db, channel.id, ADMIN)
    assert [entry.action for entry in log] == ["settings_updated", "settings_updated"]
    assert {entry.user_id for entry in log} == {ADMIN, OWNER}


async def test_user_activity_log(db, channel):
    await integration_manager.update_settings(db, channel.id, ADMIN, SettingsUpdate(max_pins=10))

    mine = await integration_manager.get_user_activity_log(db, ADMIN)
    assert len(mine) == 1
    assert mine[0].details == {"max_pins": 10}
    assert await integration_manager.get_user_activity_log(db, MEMBER) == []

    with pytest.raises(errors.NotAuthorizedError):
        await integration_manager.get_activity_log(db, channel.id, MEMBER)

"""Integration manager - webhooks, permission overrides, settings and activity log.

Webhooks and permission overrides expose governance data, so every
operation on them, reads included, is restricted to owners and admins.
"""

import logging
from typing import List

from sqlalchemy import and_, desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import (
    ActivityLog,
    ChannelPermission,
    ChannelSetting,
    ChannelWebhook,
    PermissionTargetType,
    SETTINGS_DEFAULTS,
    utcnow,
)
from ..schemas.integrations import (
    PermissionOverride,
    PermissionSet,
    SettingsResponse,
    SettingsUpdate,
    WebhookCreate,
    WebhookUpdate,
)
from . import authority
from .activity import ActivityAction, record_activity
from .cache import channel_cache
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


class IntegrationManager:
    """Manages channel webhooks, permission overrides and settings."""

    # ------------------------------------------------------------------
    # Webhooks
    # ------------------------------------------------------------------

    async def _get_webhook(self, db: AsyncSession, channel_id: str, webhook_id: str) -> ChannelWebhook:
        result = await db.execute(
            select(ChannelWebhook).where(
                ChannelWebhook.id == webhook_id, ChannelWebhook.channel_id == channel_id
            )
        )
        webhook = result.scalar_one_or_none()
        if not webhook:
            raise errors.NotFoundError("webhook", webhook_id)
        return webhook

    async def create_webhook(
        self, db: AsyncSession, channel_id: str, user_id: str, data: WebhookCreate
    ) -> ChannelWebhook:
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        webhook = ChannelWebhook(
            channel_id=channel_id,
            name=data.name,
            url=data.url,
            avatar_url=data.avatar_url,
            events=list(dict.fromkeys(event.value for event in data.events)),
            is_active=True,
            created_by=user_id,
        )
        db.add(webhook)
        await db.flush()
        record_activity(
            db, channel_id, user_id, ActivityAction.WEBHOOK_CREATED,
            target_id=webhook.id, details={"name": data.name},
        )
        await db.commit()
        await db.refresh(webhook)

        logger.info(f"Webhook {webhook.id} created in channel {channel_id} by {user_id}")
        return webhook

    async def list_webhooks(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelWebhook]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelWebhook)
            .where(ChannelWebhook.channel_id == channel_id)
            .order_by(ChannelWebhook.created_at)
        )
        return list(result.scalars().all())

    async def get_webhook(
        self, db: AsyncSession, channel_id: str, webhook_id: str, user_id: str
    ) -> ChannelWebhook:
        await authority.require_admin(db, channel_id, user_id)
        return await self._get_webhook(db, channel_id, webhook_id)

    async def update_webhook(
        self, db: AsyncSession, channel_id: str, webhook_id: str, user_id: str, data: WebhookUpdate
    ) -> ChannelWebhook:
        await authority.require_admin(db, channel_id, user_id)
        webhook = await self._get_webhook(db, channel_id, webhook_id)

        if data.name is not None:
            webhook.name = data.name
        if data.url is not None:
            webhook.url = data.url
        if data.avatar_url is not None:
            webhook.avatar_url = data.avatar_url
        if data.events is not None:
            webhook.events = list(dict.fromkeys(event.value for event in data.events))
        if data.is_active is not None:
            webhook.is_active = data.is_active

        await db.commit()
        await db.refresh(webhook)
        return webhook

    async def delete_webhook(self, db: AsyncSession, channel_id: str, webhook_id: str, user_id: str):
        await authority.require_admin(db, channel_id, user_id)
        webhook = await self._get_webhook(db, channel_id, webhook_id)

        await db.delete(webhook)
        record_activity(
            db, channel_id, user_id, ActivityAction.WEBHOOK_DELETED,
            target_id=webhook_id, details={"name": webhook.name},
        )
        await db.commit()

    async def test_webhook(
        self, db: AsyncSession, channel_id: str, webhook_id: str, user_id: str
    ) -> ChannelWebhook:
        """Emit a test event for the webhook and stamp ``last_triggered_at``."""
        await authority.require_admin(db, channel_id, user_id)
        webhook = await self._get_webhook(db, channel_id, webhook_id)

        webhook.last_triggered_at = utcnow()
        await db.commit()
        await db.refresh(webhook)

        await kafka_producer.publish(
            EventType.WEBHOOK_TESTED,
            key=channel_id,
            data={"channel_id": channel_id, "webhook_id": webhook.id, "url": webhook.url},
            actor_id=user_id,
        )
        return webhook

    # ------------------------------------------------------------------
    # Permission overrides
    # ------------------------------------------------------------------

    async def set_permission(
        self, db: AsyncSession, channel_id: str, user_id: str, data: PermissionSet
    ) -> ChannelPermission:
        """Insert or update the override for (permission, target)."""
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        if data.allow and data.deny:
            raise errors.InvalidRequestError(
                "invalid_permission", "A permission override cannot both allow and deny"
            )

        result = await db.execute(
            select(ChannelPermission).where(
                ChannelPermission.channel_id == channel_id,
                ChannelPermission.permission_type == data.permission_type,
                ChannelPermission.target_type == data.target_type.value,
                ChannelPermission.target_id == data.target_id,
            )
        )
        permission = result.scalar_one_or_none()
        if permission:
            permission.allow = data.allow
            permission.deny = data.deny
        else:
            permission = ChannelPermission(
                channel_id=channel_id,
                permission_type=data.permission_type,
                target_type=data.target_type.value,
                target_id=data.target_id,
                allow=data.allow,
                deny=data.deny,
            )
            db.add(permission)
            await authority.flush_unique(
                db, errors.ConflictError("permission_exists", "Permission override already exists")
            )

        record_activity(
            db, channel_id, user_id, ActivityAction.PERMISSION_SET,
            target_id=permission.id,
            details={
                "permission_type": data.permission_type,
                "target_type": data.target_type.value,
                "target_id": data.target_id,
                "allow": data.allow,
                "deny": data.deny,
            },
        )
        await db.commit()
        await db.refresh(permission)
        return permission

    async def list_permissions(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> List[ChannelPermission]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPermission)
            .where(ChannelPermission.channel_id == channel_id)
            .order_by(ChannelPermission.permission_type, ChannelPermission.target_type)
        )
        return list(result.scalars().all())

    async def delete_permission(
        self, db: AsyncSession, channel_id: str, permission_id: str, user_id: str
    ):
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPermission).where(
                ChannelPermission.id == permission_id, ChannelPermission.channel_id == channel_id
            )
        )
        permission = result.scalar_one_or_none()
        if not permission:
            raise errors.NotFoundError("permission", permission_id)

        await db.delete(permission)
        record_activity(
            db, channel_id, user_id, ActivityAction.PERMISSION_DELETED,
            target_id=permission_id,
            details={"permission_type": permission.permission_type},
        )
        await db.commit()

    async def get_effective_permissions(
        self, db: AsyncSession, channel_id: str, user_id: str
    ) -> List[PermissionOverride]:
        """Overrides that apply to the user; user overrides win over role overrides."""
        role = await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPermission).where(
                ChannelPermission.channel_id == channel_id,
                or_(
                    and_(
                        ChannelPermission.target_type == PermissionTargetType.ROLE.value,
                        ChannelPermission.target_id == role.value,
                    ),
                    and_(
                        ChannelPermission.target_type == PermissionTargetType.USER.value,
                        ChannelPermission.target_id == user_id,
                    ),
                ),
            )
        )
        permissions = sorted(
            result.scalars().all(),
            key=lambda p: p.target_type == PermissionTargetType.USER.value,
        )

        effective = {}
        for permission in permissions:
            effective[permission.permission_type] = PermissionOverride(
                permission_type=permission.permission_type,
                allow=permission.allow,
                deny=permission.deny,
            )
        return [effective[key] for key in sorted(effective)]

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def _get_settings_row(self, db: AsyncSession, channel_id: str):
        result = await db.execute(select(ChannelSetting).where(ChannelSetting.channel_id == channel_id))
        return result.scalar_one_or_none()

    async def get_settings(self, db: AsyncSession, channel_id: str, user_id: str) -> SettingsResponse:
        """Stored settings, or the defaults when the channel has none."""
        await authority.require_member(db, channel_id, user_id)

        row = await self._get_settings_row(db, channel_id)
        if row is None:
            return SettingsResponse(channel_id=channel_id, **SETTINGS_DEFAULTS)
        return SettingsResponse.model_validate(row)

    async def update_settings(
        self, db: AsyncSession, channel_id: str, user_id: str, data: SettingsUpdate
    ) -> SettingsResponse:
        """Patch the provided fields over the stored row or the defaults."""
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        changes = data.model_dump(exclude_unset=True, exclude_none=True, mode="json")

        row = await self._get_settings_row(db, channel_id)
        if row is None:
            row = ChannelSetting(channel_id=channel_id, **{**SETTINGS_DEFAULTS, **changes})
            db.add(row)
            await authority.flush_unique(
                db, errors.ConflictError("settings_exist", "Settings were created concurrently, retry")
            )
        else:
            for key, value in changes.items():
                setattr(row, key, value)

        record_activity(
            db, channel_id, user_id, ActivityAction.SETTINGS_UPDATED, details=changes
        )
        await db.commit()
        await db.refresh(row)

        await channel_cache.invalidate_channel(channel_id)
        return SettingsResponse.model_validate(row)

    # ------------------------------------------------------------------
    # Activity log
    # ------------------------------------------------------------------

    async def get_activity_log(
        self, db: AsyncSession, channel_id: str, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[ActivityLog]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ActivityLog)
            .where(ActivityLog.channel_id == channel_id)
            .order_by(desc(ActivityLog.created_at))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_user_activity_log(
        self, db: AsyncSession, user_id: str, limit: int = 50, offset: int = 0
    ) -> List[ActivityLog]:
        result = await db.execute(
            select(ActivityLog)
            .where(ActivityLog.user_id == user_id)
            .order_by(desc(ActivityLog.created_at))
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all())


# Global instance
integration_manager = IntegrationManager()

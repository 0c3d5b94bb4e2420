"""Webhook, permission override, settings and activity log endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_current_user_id, get_pagination_params
from ..schemas.integrations import (
    ActivityLogResponse,
    PermissionOverride,
    PermissionResponse,
    PermissionSet,
    SettingsResponse,
    SettingsUpdate,
    WebhookCreate,
    WebhookResponse,
    WebhookUpdate,
)
from ..services.integration_manager import integration_manager

logger = logging.getLogger(__name__)

router = APIRouter()


# Webhooks


@router.post(
    "/channels/{channel_id}/webhooks",
    response_model=WebhookResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_webhook(
    channel_id: str,
    webhook_data: WebhookCreate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Register an outbound webhook. Owners and admins only."""
    return await integration_manager.create_webhook(db, channel_id, current_user_id, webhook_data)


@router.get("/channels/{channel_id}/webhooks", response_model=List[WebhookResponse])
async def list_webhooks(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await integration_manager.list_webhooks(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/webhooks/{webhook_id}", response_model=WebhookResponse)
async def get_webhook(
    channel_id: str,
    webhook_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await integration_manager.get_webhook(db, channel_id, webhook_id, current_user_id)


@router.patch("/channels/{channel_id}/webhooks/{webhook_id}", response_model=WebhookResponse)
async def update_webhook(
    channel_id: str,
    webhook_id: str,
    webhook_data: WebhookUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await integration_manager.update_webhook(
        db, channel_id, webhook_id, current_user_id, webhook_data
    )


@router.delete(
    "/channels/{channel_id}/webhooks/{webhook_id}", status_code=status.HTTP_204_NO_CONTENT
)
async def delete_webhook(
    channel_id: str,
    webhook_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await integration_manager.delete_webhook(db, channel_id, webhook_id, current_user_id)


@router.post("/channels/{channel_id}/webhooks/{webhook_id}/test", response_model=WebhookResponse)
async def test_webhook(
    channel_id: str,
    webhook_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Fire a test event for a webhook."""
    return await integration_manager.test_webhook(db, channel_id, webhook_id, current_user_id)


# Permission overrides


@router.put("/channels/{channel_id}/permissions", response_model=PermissionResponse)
async def set_permission(
    channel_id: str,
    permission_data: PermissionSet,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create or replace a permission override for a role or user."""
    return await integration_manager.set_permission(
        db, channel_id, current_user_id, permission_data
    )


@router.get("/channels/{channel_id}/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await integration_manager.list_permissions(db, channel_id, current_user_id)


@router.get("/channels/{channel_id}/permissions/me", response_model=List[PermissionOverride])
async def get_effective_permissions(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Overrides that apply to the caller."""
    return await integration_manager.get_effective_permissions(db, channel_id, current_user_id)


@router.delete(
    "/channels/{channel_id}/permissions/{permission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_permission(
    channel_id: str,
    permission_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    await integration_manager.delete_permission(db, channel_id, permission_id, current_user_id)


# Settings


@router.get("/channels/{channel_id}/settings", response_model=SettingsResponse)
async def get_settings(
    channel_id: str,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await integration_manager.get_settings(db, channel_id, current_user_id)


@router.patch("/channels/{channel_id}/settings", response_model=SettingsResponse)
async def update_settings(
    channel_id: str,
    settings_data: SettingsUpdate,
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Update only the provided settings. Owners and admins only."""
    return await integration_manager.update_settings(db, channel_id, current_user_id, settings_data)


# Activity log


@router.get("/channels/{channel_id}/activity-log", response_model=List[ActivityLogResponse])
async def get_activity_log(
    channel_id: str,
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await integration_manager.get_activity_log(
        db, channel_id, current_user_id, limit=pagination["limit"], offset=pagination["offset"]
    )


@router.get("/users/me/activity", response_model=List[ActivityLogResponse])
async def get_my_activity(
    pagination: dict = Depends(get_pagination_params),
    current_user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Everything the caller has done across channels, newest first."""
    return await integration_manager.get_user_activity_log(
        db, current_user_id, limit=pagination["limit"], offset=pagination["offset"]
    )

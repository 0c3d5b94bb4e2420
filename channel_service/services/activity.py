"""Activity log writes shared by the managers."""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import ActivityLog


class ActivityAction:
    SETTINGS_UPDATED = "settings_updated"
    OWNERSHIP_TRANSFERRED = "ownership_transferred"
    MEMBER_ROLE_UPDATED = "member_role_updated"
    CHANNEL_ARCHIVED = "channel_archived"
    CHANNEL_UNARCHIVED = "channel_unarchived"
    WEBHOOK_CREATED = "webhook_created"
    WEBHOOK_DELETED = "webhook_deleted"
    PERMISSION_SET = "permission_set"
    PERMISSION_DELETED = "permission_deleted"


def record_activity(
    db: AsyncSession,
    channel_id: str,
    user_id: str,
    action: str,
    target_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    """Stage an activity row in the caller's unit of work (no commit)."""
    entry = ActivityLog(
        channel_id=channel_id,
        user_id=user_id,
        action=action,
        target_id=target_id,
        details=details,
    )
    db.add(entry)
    return entry

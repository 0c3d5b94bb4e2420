"""Database components for Channel Service.

This package provides:
- Base SQLAlchemy model class and mixins
- Database session management
- Models for every channel-scoped entity kind
"""

from .base import (
    Base,
    IdMixin,
    TimestampMixin,
    as_utc,
    close_db,
    create_tables,
    get_db,
    init_db,
    new_id,
    utcnow,
)
from .models import (
    SETTINGS_DEFAULTS,
    ActivityLog,
    AnnouncementPriority,
    Channel,
    ChannelAnnouncement,
    ChannelBan,
    ChannelBookmark,
    ChannelFollower,
    ChannelInvite,
    ChannelLink,
    ChannelMember,
    ChannelMute,
    ChannelPermission,
    ChannelPin,
    ChannelPoll,
    ChannelReaction,
    ChannelRole,
    ChannelSection,
    ChannelSetting,
    ChannelTab,
    ChannelTemplate,
    ChannelThread,
    ChannelType,
    ChannelWebhook,
    LinkType,
    ModerationAction,
    ModerationLog,
    NotificationLevel,
    PermissionTargetType,
    PollOption,
    PollVote,
    ReadReceipt,
    ScheduledMessage,
    ScheduledMessageStatus,
    StarredChannel,
    TabType,
    ThreadFollower,
    ThreadReply,
    TopicHistory,
    VoiceChannelState,
)

__all__ = [
    # Base classes
    "Base",
    "IdMixin",
    "TimestampMixin",
    # Database functions
    "init_db",
    "create_tables",
    "get_db",
    "close_db",
    # Helpers
    "utcnow",
    "as_utc",
    "new_id",
    # Enums
    "ChannelType",
    "ChannelRole",
    "NotificationLevel",
    "ModerationAction",
    "AnnouncementPriority",
    "PermissionTargetType",
    "ScheduledMessageStatus",
    "LinkType",
    "TabType",
    # Channel models
    "Channel",
    "ChannelMember",
    "TopicHistory",
    # Invites and moderation
    "ChannelInvite",
    "ChannelBan",
    "ChannelMute",
    "ModerationLog",
    # Message adjuncts
    "ChannelPin",
    "ChannelReaction",
    "ChannelBookmark",
    "ReadReceipt",
    # Threads
    "ChannelThread",
    "ThreadReply",
    "ThreadFollower",
    # Polls
    "ChannelPoll",
    "PollOption",
    "PollVote",
    # Governance
    "ChannelPermission",
    "ChannelWebhook",
    "ChannelSetting",
    "SETTINGS_DEFAULTS",
    "ActivityLog",
    # Organization
    "ChannelSection",
    "ChannelTab",
    "ChannelTemplate",
    "ChannelLink",
    # Presence
    "VoiceChannelState",
    "ChannelFollower",
    "StarredChannel",
    # Scheduling
    "ScheduledMessage",
    "ChannelAnnouncement",
]

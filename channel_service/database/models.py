"""SQLAlchemy models for Channel Service.

One table per entity kind owned by the service. Every channel-attached
table references ``channels.id`` with ``ON DELETE CASCADE``; channels
themselves are only ever soft-deleted by the service.

Models are grouped by feature area:

1. Channels: Channel, ChannelMember, TopicHistory
2. Invites and moderation: ChannelInvite, ChannelBan, ChannelMute, ModerationLog
3. Message adjuncts: ChannelPin, ChannelReaction, ChannelBookmark, ReadReceipt
4. Threads: ChannelThread, ThreadReply, ThreadFollower
5. Polls: ChannelPoll, PollOption, PollVote
6. Governance: ChannelPermission, ChannelWebhook, ChannelSetting, ActivityLog
7. Organization: ChannelSection, ChannelTab, ChannelTemplate, ChannelLink
8. Presence: VoiceChannelState, ChannelFollower, StarredChannel
9. Scheduling: ScheduledMessage, ChannelAnnouncement
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, IdMixin, TimestampMixin, utcnow

# JSONB on postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


def channel_fk(nullable: bool = False):
    return mapped_column(
        String(36),
        ForeignKey("channels.id", ondelete="CASCADE"),
        nullable=nullable,
        index=True,
    )


# ============================================================================
# Enums
# ============================================================================


class ChannelType(str, PyEnum):
    """Channel visibility type."""

    PUBLIC = "public"
    PRIVATE = "private"
    DM = "dm"
    GROUP_DM = "group_dm"


class ChannelRole(str, PyEnum):
    """Member role, ordered by privilege."""

    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"

    @property
    def rank(self) -> int:
        return {"owner": 3, "admin": 2, "member": 1}[self.value]


class NotificationLevel(str, PyEnum):
    ALL = "all"
    MENTIONS = "mentions"
    NONE = "none"


class ModerationAction(str, PyEnum):
    BAN = "ban"
    UNBAN = "unban"
    MUTE = "mute"
    UNMUTE = "unmute"


class AnnouncementPriority(str, PyEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class PermissionTargetType(str, PyEnum):
    ROLE = "role"
    USER = "user"


class ScheduledMessageStatus(str, PyEnum):
    PENDING = "pending"
    SENT = "sent"
    CANCELLED = "cancelled"
    FAILED = "failed"


class LinkType(str, PyEnum):
    MIRROR = "mirror"
    RELATED = "related"
    PARENT = "parent"


class TabType(str, PyEnum):
    MESSAGES = "messages"
    FILES = "files"
    LINK = "link"
    WIKI = "wiki"
    APP = "app"


# ============================================================================
# Channels
# ============================================================================


class Channel(Base, IdMixin, TimestampMixin):
    """A workspace channel. Soft-deleted via ``deleted_at``."""

    __tablename__ = "channels"

    workspace_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), default=ChannelType.PUBLIC.value, nullable=False
    )
    description: Mapped[Optional[str]] = mapped_column(Text)
    topic: Mapped[Optional[str]] = mapped_column(String(500))
    icon_url: Mapped[Optional[str]] = mapped_column(String(500))
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[Optional[str]] = mapped_column(String(36))
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)

    __table_args__ = (
        UniqueConstraint("workspace_id", "name", name="uq_channels_workspace_name"),
    )

    def __repr__(self) -> str:
        return f"<Channel(id={self.id}, name={self.name}, type={self.type})>"


class ChannelMember(Base, IdMixin):
    """Channel membership with a role."""

    __tablename__ = "channel_members"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    role: Mapped[str] = mapped_column(String(20), default=ChannelRole.MEMBER.value, nullable=False)
    notifications: Mapped[str] = mapped_column(
        String(20), default=NotificationLevel.ALL.value, nullable=False
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    last_read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("channel_id", "user_id", name="uq_channel_members_channel_user"),
    )

    def __repr__(self) -> str:
        return f"<ChannelMember(channel_id={self.channel_id}, user_id={self.user_id}, role={self.role})>"


class TopicHistory(Base, IdMixin):
    __tablename__ = "channel_topic_history"

    channel_id: Mapped[str] = channel_fk()
    old_topic: Mapped[Optional[str]] = mapped_column(String(500))
    new_topic: Mapped[Optional[str]] = mapped_column(String(500))
    changed_by: Mapped[str] = mapped_column(String(36), nullable=False)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )


# ============================================================================
# Invites and moderation
# ============================================================================


class ChannelInvite(Base, IdMixin):
    """Redeemable invite code. ``max_uses`` of 0 means unlimited."""

    __tablename__ = "channel_invites"

    channel_id: Mapped[str] = channel_fk()
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    code: Mapped[str] = mapped_column(String(20), nullable=False, unique=True)
    max_uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    use_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class ChannelBan(Base, IdMixin):
    __tablename__ = "channel_bans"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    banned_by: Mapped[str] = mapped_column(String(36), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("channel_id", "user_id", name="uq_channel_bans_channel_user"),)


class ChannelMute(Base, IdMixin):
    __tablename__ = "channel_mutes"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    muted_by: Mapped[str] = mapped_column(String(36), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("channel_id", "user_id", name="uq_channel_mutes_channel_user"),)


class ModerationLog(Base, IdMixin):
    """Append-only audit row for every ban/mute action and reversal."""

    __tablename__ = "channel_moderation_log"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )


# ============================================================================
# Message adjuncts
# ============================================================================


class ChannelPin(Base, IdMixin):
    __tablename__ = "channel_pins"

    channel_id: Mapped[str] = channel_fk()
    message_id: Mapped[str] = mapped_column(String(36), nullable=False)
    pinned_by: Mapped[str] = mapped_column(String(36), nullable=False)
    pinned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("channel_id", "message_id", name="uq_channel_pins_channel_message"),)


class ChannelReaction(Base, IdMixin):
    __tablename__ = "channel_reactions"

    channel_id: Mapped[str] = channel_fk()
    message_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    emoji: Mapped[str] = mapped_column(String(50), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "channel_id", "message_id", "user_id", "emoji",
            name="uq_channel_reactions_channel_message_user_emoji",
        ),
        Index("ix_channel_reactions_message", "channel_id", "message_id"),
    )


class ChannelBookmark(Base, IdMixin, TimestampMixin):
    __tablename__ = "channel_bookmarks"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[Optional[str]] = mapped_column(String(2000))
    entity_type: Mapped[Optional[str]] = mapped_column(String(50))
    entity_id: Mapped[Optional[str]] = mapped_column(String(36))
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (Index("ix_channel_bookmarks_channel_user", "channel_id", "user_id"),)


class ReadReceipt(Base, IdMixin):
    __tablename__ = "channel_read_receipts"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    message_id: Mapped[str] = mapped_column(String(36), nullable=False)
    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "channel_id", "user_id", "message_id", name="uq_channel_read_receipts_channel_user_message"
        ),
    )


# ============================================================================
# Threads
# ============================================================================


class ChannelThread(Base, IdMixin, TimestampMixin):
    """Thread rooted at a message. ``reply_count`` is maintained with replies."""

    __tablename__ = "channel_threads"

    channel_id: Mapped[str] = channel_fk()
    message_id: Mapped[str] = mapped_column(String(36), nullable=False)
    title: Mapped[Optional[str]] = mapped_column(String(255))
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    is_locked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reply_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_reply_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)


class ThreadReply(Base, IdMixin, TimestampMixin):
    __tablename__ = "thread_replies"

    thread_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channel_threads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[Optional[str]] = mapped_column(String(36))


class ThreadFollower(Base, IdMixin):
    __tablename__ = "thread_followers"

    thread_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channel_threads.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("thread_id", "user_id", name="uq_thread_followers_thread_user"),)


# ============================================================================
# Polls
# ============================================================================


class ChannelPoll(Base, IdMixin, TimestampMixin):
    __tablename__ = "channel_polls"

    channel_id: Mapped[str] = channel_fk()
    created_by: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    question: Mapped[str] = mapped_column(String(500), nullable=False)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    multi_choice: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    closed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class PollOption(Base, IdMixin):
    __tablename__ = "poll_options"

    poll_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channel_polls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(String(200), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class PollVote(Base, IdMixin):
    __tablename__ = "poll_votes"

    poll_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channel_polls.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("poll_options.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    voted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", "option_id", name="uq_poll_votes_poll_user_option"),
    )


# ============================================================================
# Governance
# ============================================================================


class ChannelPermission(Base, IdMixin, TimestampMixin):
    """Permission override for a role or a user."""

    __tablename__ = "channel_permissions"

    channel_id: Mapped[str] = channel_fk()
    permission_type: Mapped[str] = mapped_column(String(50), nullable=False)
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_id: Mapped[str] = mapped_column(String(36), nullable=False)
    allow: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deny: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "channel_id", "permission_type", "target_type", "target_id",
            name="uq_channel_permissions_target",
        ),
    )


class ChannelWebhook(Base, IdMixin, TimestampMixin):
    __tablename__ = "channel_webhooks"

    channel_id: Mapped[str] = channel_fk()
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(2000), nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(500))
    events: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    last_triggered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))


class ChannelSetting(Base, IdMixin, TimestampMixin):
    """One row per channel; a missing row means all defaults."""

    __tablename__ = "channel_settings"

    channel_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    slow_mode_interval: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    max_pins: Mapped[int] = mapped_column(Integer, default=50, nullable=False)
    max_bookmarks: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    allow_threads: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_reactions: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    allow_invites: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    auto_archive_days: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    default_notification: Mapped[str] = mapped_column(
        String(20), default=NotificationLevel.ALL.value, nullable=False
    )
    custom_emoji: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    link_previews: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    member_limit: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


# Values a missing settings row reads as
SETTINGS_DEFAULTS = {
    "slow_mode_interval": 0,
    "max_pins": 50,
    "max_bookmarks": 100,
    "allow_threads": True,
    "allow_reactions": True,
    "allow_invites": True,
    "auto_archive_days": 0,
    "default_notification": NotificationLevel.ALL.value,
    "custom_emoji": False,
    "link_previews": True,
    "member_limit": 0,
}


class ActivityLog(Base, IdMixin):
    __tablename__ = "channel_activity_log"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    target_id: Mapped[Optional[str]] = mapped_column(String(36))
    details: Mapped[Optional[dict]] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )


# ============================================================================
# Organization
# ============================================================================


class ChannelSection(Base, IdMixin, TimestampMixin):
    """User-owned sidebar grouping of channel ids."""

    __tablename__ = "channel_sections"

    workspace_id: Mapped[str] = mapped_column(String(36), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_collapsed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    channel_ids: Mapped[list] = mapped_column(JSONType, default=list, nullable=False)

    __table_args__ = (Index("ix_channel_sections_workspace_user", "workspace_id", "user_id"),)


class ChannelTab(Base, IdMixin, TimestampMixin):
    __tablename__ = "channel_tabs"

    channel_id: Mapped[str] = channel_fk()
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    tab_type: Mapped[str] = mapped_column(String(20), nullable=False)
    config: Mapped[Optional[dict]] = mapped_column(JSONType)
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)


class ChannelTemplate(Base, IdMixin, TimestampMixin):
    """Snapshot of a channel archetype reusable through ``apply``."""

    __tablename__ = "channel_templates"

    workspace_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(20), default=ChannelType.PUBLIC.value, nullable=False)
    topic: Mapped[Optional[str]] = mapped_column(String(500))
    settings: Mapped[Optional[dict]] = mapped_column(JSONType)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    use_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ChannelLink(Base, IdMixin, TimestampMixin):
    __tablename__ = "channel_links"

    source_channel_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_channel_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("channels.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    link_type: Mapped[str] = mapped_column(String(20), default=LinkType.MIRROR.value, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


# ============================================================================
# Presence
# ============================================================================


class VoiceChannelState(Base, IdMixin):
    """Voice presence row; live while ``disconnected_at`` is NULL."""

    __tablename__ = "voice_channel_states"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_muted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_deafened: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_screen_share: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_video_on: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    disconnected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (Index("ix_voice_channel_states_active", "channel_id", "disconnected_at"),)


class ChannelFollower(Base, IdMixin):
    __tablename__ = "channel_followers"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    followed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("channel_id", "user_id", name="uq_channel_followers_channel_user"),)


class StarredChannel(Base, IdMixin):
    __tablename__ = "starred_channels"

    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    channel_id: Mapped[str] = channel_fk()
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (UniqueConstraint("user_id", "channel_id", name="uq_starred_channels_user_channel"),)


# ============================================================================
# Scheduling and announcements
# ============================================================================


class ScheduledMessage(Base, IdMixin, TimestampMixin):
    __tablename__ = "scheduled_messages"

    channel_id: Mapped[str] = channel_fk()
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    scheduled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        String(20), default=ScheduledMessageStatus.PENDING.value, nullable=False, index=True
    )
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    thread_id: Mapped[Optional[str]] = mapped_column(String(36))


class ChannelAnnouncement(Base, IdMixin, TimestampMixin):
    __tablename__ = "channel_announcements"

    channel_id: Mapped[str] = channel_fk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[str] = mapped_column(
        String(20), default=AnnouncementPriority.NORMAL.value, nullable=False
    )
    author_id: Mapped[str] = mapped_column(String(36), nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

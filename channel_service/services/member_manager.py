"""Member manager - channel membership, roles and bulk membership changes."""

import logging
from typing import List, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ChannelMember, ChannelRole, NotificationLevel, utcnow
from ..schemas.members import BulkActionResult
from . import authority
from .activity import ActivityAction, record_activity
from .cache import channel_cache
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)


def _unique(user_ids: List[str]) -> List[str]:
    return list(dict.fromkeys(user_ids))


class MemberManager:
    """Manages channel membership."""

    async def add_member(
        self,
        db: AsyncSession,
        channel_id: str,
        actor_id: str,
        user_id: str,
        role: ChannelRole = ChannelRole.MEMBER,
    ) -> ChannelMember:
        """Add a user to a channel.

        Rejected when the channel is archived, the user is banned or the
        user is already a member.
        """
        channel = await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, actor_id)

        if channel.is_archived:
            raise errors.channel_archived(channel_id)
        if await authority.is_banned(db, channel_id, user_id):
            raise errors.user_banned(user_id)
        if await authority.get_membership(db, channel_id, user_id):
            raise errors.already_member(user_id)

        member = ChannelMember(
            channel_id=channel_id,
            user_id=user_id,
            role=ChannelRole(role).value,
            notifications=NotificationLevel.ALL.value,
        )
        db.add(member)
        await authority.flush_unique(db, errors.already_member(user_id))
        await db.commit()
        await db.refresh(member)

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"Member added: user {user_id} to channel {channel_id} by {actor_id}")

        await kafka_producer.publish(
            EventType.MEMBER_JOINED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id, "added_by": actor_id},
            actor_id=actor_id,
        )
        return member

    async def remove_member(self, db: AsyncSession, channel_id: str, actor_id: str, user_id: str):
        """Remove a member. The owner can never be removed this way."""
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, actor_id)

        member = await authority.get_membership(db, channel_id, user_id)
        if not member:
            raise errors.NotFoundError("member", user_id)
        if member.role == ChannelRole.OWNER.value:
            raise errors.NotAuthorizedError("Cannot remove the channel owner")

        await db.delete(member)
        await db.commit()

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"Member removed: user {user_id} from channel {channel_id} by {actor_id}")

        await kafka_producer.publish(
            EventType.MEMBER_REMOVED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id, "removed_by": actor_id},
            actor_id=actor_id,
        )

    async def leave_channel(self, db: AsyncSession, channel_id: str, user_id: str):
        await authority.get_channel(db, channel_id)

        member = await authority.get_membership(db, channel_id, user_id)
        if not member:
            raise errors.NotMemberError(entity_id=user_id)
        if member.role == ChannelRole.OWNER.value:
            raise errors.cannot_leave_owner()

        await db.delete(member)
        await db.commit()

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"User {user_id} left channel {channel_id}")

        await kafka_producer.publish(
            EventType.MEMBER_LEFT,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id},
            actor_id=user_id,
        )

    async def get_member(self, db: AsyncSession, channel_id: str, user_id: str) -> ChannelMember:
        member = await authority.get_membership(db, channel_id, user_id)
        if not member:
            raise errors.NotFoundError("member", user_id)
        return member

    async def list_members(
        self, db: AsyncSession, channel_id: str, limit: int = 50, offset: int = 0
    ) -> Tuple[List[ChannelMember], int]:
        await authority.get_channel(db, channel_id)

        count_query = select(func.count()).select_from(ChannelMember).where(
            ChannelMember.channel_id == channel_id
        )
        total = (await db.execute(count_query)).scalar() or 0

        result = await db.execute(
            select(ChannelMember)
            .where(ChannelMember.channel_id == channel_id)
            .order_by(ChannelMember.joined_at)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def update_member_role(
        self, db: AsyncSession, channel_id: str, actor_id: str, user_id: str, role: ChannelRole
    ) -> ChannelMember:
        """Change a member's role between admin and member. Owner only.

        Ownership moves only through ``transfer_ownership``.
        """
        await authority.require_owner(db, channel_id, actor_id)

        role = ChannelRole(role)
        if role == ChannelRole.OWNER:
            raise errors.InvalidRequestError(
                "use_transfer_ownership", "Use ownership transfer to assign the owner role"
            )
        if user_id == actor_id:
            raise errors.InvalidRequestError("cannot_change_own_role", "Cannot change your own role")

        member = await authority.get_membership(db, channel_id, user_id)
        if not member:
            raise errors.NotFoundError("member", user_id)

        old_role = member.role
        member.role = role.value
        record_activity(
            db,
            channel_id,
            actor_id,
            ActivityAction.MEMBER_ROLE_UPDATED,
            target_id=user_id,
            details={"old_role": old_role, "new_role": role.value},
        )
        await db.commit()
        await db.refresh(member)

        await channel_cache.invalidate_channel(channel_id)
        await kafka_producer.publish(
            EventType.MEMBER_ROLE_UPDATED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id, "role": role.value},
            actor_id=actor_id,
        )
        return member

    async def update_notifications(
        self, db: AsyncSession, channel_id: str, user_id: str, level: NotificationLevel
    ) -> ChannelMember:
        member = await authority.get_membership(db, channel_id, user_id)
        if not member:
            raise errors.NotMemberError(entity_id=user_id)

        member.notifications = NotificationLevel(level).value
        await db.commit()
        await db.refresh(member)
        return member

    async def update_last_read(self, db: AsyncSession, channel_id: str, user_id: str) -> ChannelMember:
        member = await authority.get_membership(db, channel_id, user_id)
        if not member:
            raise errors.NotMemberError(entity_id=user_id)

        member.last_read_at = utcnow()
        await db.commit()
        await db.refresh(member)
        return member

    async def bulk_add_members(
        self,
        db: AsyncSession,
        channel_id: str,
        actor_id: str,
        user_ids: List[str],
        role: ChannelRole = ChannelRole.MEMBER,
    ) -> int:
        """Add many users at once, skipping existing members and banned users.

        Returns the number of members actually added.
        """
        channel = await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, actor_id)
        if channel.is_archived:
            raise errors.channel_archived(channel_id)

        result = await db.execute(
            select(ChannelMember.user_id).where(ChannelMember.channel_id == channel_id)
        )
        existing = set(result.scalars().all())

        added = []
        for user_id in _unique(user_ids):
            if user_id in existing:
                continue
            if await authority.is_banned(db, channel_id, user_id):
                logger.info(f"Skipping banned user {user_id} in bulk add to {channel_id}")
                continue
            db.add(ChannelMember(channel_id=channel_id, user_id=user_id, role=ChannelRole(role).value))
            added.append(user_id)

        if not added:
            return 0

        await authority.flush_unique(db, errors.already_member())
        await db.commit()

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"Bulk added {len(added)} members to channel {channel_id} by {actor_id}")

        await kafka_producer.publish(
            EventType.MEMBERS_BULK_ADDED,
            key=channel_id,
            data={"channel_id": channel_id, "user_ids": added},
            actor_id=actor_id,
        )
        return len(added)

    async def bulk_remove_members(
        self, db: AsyncSession, channel_id: str, actor_id: str, user_ids: List[str]
    ) -> BulkActionResult:
        """Remove many members, reporting a failure per user that cannot be removed."""
        await authority.require_admin(db, channel_id, actor_id)

        result = BulkActionResult()
        removed = []
        for user_id in _unique(user_ids):
            if user_id == actor_id:
                result.failed += 1
                result.errors.append(f"{user_id}: cannot remove yourself")
                continue

            member = await authority.get_membership(db, channel_id, user_id)
            if not member:
                result.failed += 1
                result.errors.append(f"{user_id}: not a member")
                continue
            if member.role == ChannelRole.OWNER.value:
                result.failed += 1
                result.errors.append(f"{user_id}: cannot remove the channel owner")
                continue

            removed.append(user_id)

        if removed:
            await db.execute(
                delete(ChannelMember).where(
                    ChannelMember.channel_id == channel_id, ChannelMember.user_id.in_(removed)
                )
            )
            await db.commit()
            result.successful = len(removed)

            await channel_cache.invalidate_channel(channel_id)
            await kafka_producer.publish(
                EventType.MEMBERS_BULK_REMOVED,
                key=channel_id,
                data={"channel_id": channel_id, "user_ids": removed},
                actor_id=actor_id,
            )

        return result

    async def bulk_update_roles(
        self,
        db: AsyncSession,
        channel_id: str,
        actor_id: str,
        user_ids: List[str],
        role: ChannelRole,
    ) -> BulkActionResult:
        """Set the same role on many members. Owner only."""
        await authority.require_owner(db, channel_id, actor_id)

        role = ChannelRole(role)
        if role == ChannelRole.OWNER:
            raise errors.InvalidRequestError(
                "use_transfer_ownership", "Use ownership transfer to assign the owner role"
            )

        result = BulkActionResult()
        for user_id in _unique(user_ids):
            if user_id == actor_id:
                result.failed += 1
                result.errors.append(f"{user_id}: cannot change own role")
                continue

            member = await authority.get_membership(db, channel_id, user_id)
            if not member:
                result.failed += 1
                result.errors.append(f"{user_id}: not a member")
                continue

            member.role = role.value
            result.successful += 1

        if result.successful:
            record_activity(
                db,
                channel_id,
                actor_id,
                ActivityAction.MEMBER_ROLE_UPDATED,
                details={"role": role.value, "count": result.successful},
            )
            await db.commit()
            await channel_cache.invalidate_channel(channel_id)

        return result


# Global instance
member_manager = MemberManager()

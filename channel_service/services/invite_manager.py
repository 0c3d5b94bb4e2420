"""Invite manager - invite codes and redemption."""

import logging
from typing import List
from uuid import uuid4

from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ChannelInvite, ChannelMember, ChannelRole, as_utc, utcnow
from ..schemas.invites import InviteCreate, InvitePreviewResponse, InviteResponse
from . import authority
from .cache import channel_cache
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)

CODE_LENGTH = 8


def invite_expired() -> errors.StateConflictError:
    return errors.StateConflictError("invite_expired", "Invite has expired", entity="invite")


def invite_max_uses() -> errors.StateConflictError:
    return errors.StateConflictError(
        "invite_max_uses", "Invite has reached maximum uses", entity="invite"
    )


class InviteManager:
    """Manages invite codes."""

    async def _generate_code(self, db: AsyncSession) -> str:
        while True:
            code = str(uuid4())[:CODE_LENGTH]
            result = await db.execute(select(ChannelInvite.id).where(ChannelInvite.code == code))
            if result.first() is None:
                return code

    async def create_invite(
        self, db: AsyncSession, channel_id: str, user_id: str, data: InviteCreate
    ) -> ChannelInvite:
        await authority.get_channel(db, channel_id)
        await authority.require_admin(db, channel_id, user_id)

        invite = ChannelInvite(
            channel_id=channel_id,
            created_by=user_id,
            code=await self._generate_code(db),
            max_uses=data.max_uses,
            use_count=0,
            expires_at=as_utc(data.expires_at),
            is_active=True,
        )
        db.add(invite)
        await authority.flush_unique(
            db, errors.ConflictError("invite_code_taken", "Invite code collision, retry")
        )
        await db.commit()
        await db.refresh(invite)

        logger.info(f"Invite {invite.code} created for channel {channel_id} by {user_id}")
        return invite

    async def list_invites(self, db: AsyncSession, channel_id: str, user_id: str) -> List[ChannelInvite]:
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelInvite)
            .where(ChannelInvite.channel_id == channel_id)
            .order_by(desc(ChannelInvite.created_at))
        )
        return list(result.scalars().all())

    async def delete_invite(self, db: AsyncSession, channel_id: str, invite_id: str, user_id: str):
        """Deactivate an invite. The row is kept for its use history."""
        await authority.require_admin(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelInvite).where(
                ChannelInvite.id == invite_id, ChannelInvite.channel_id == channel_id
            )
        )
        invite = result.scalar_one_or_none()
        if not invite:
            raise errors.NotFoundError("invite", invite_id)

        invite.is_active = False
        await db.commit()

    async def _get_by_code(self, db: AsyncSession, code: str) -> ChannelInvite:
        result = await db.execute(select(ChannelInvite).where(ChannelInvite.code == code))
        invite = result.scalar_one_or_none()
        if not invite:
            raise errors.NotFoundError("invite", code)
        if not invite.is_active:
            raise invite_expired()
        return invite

    async def get_invite_by_code(self, db: AsyncSession, code: str) -> InvitePreviewResponse:
        invite = await self._get_by_code(db, code)
        channel = await authority.get_channel(db, invite.channel_id)
        return InvitePreviewResponse(
            invite=InviteResponse.model_validate(invite), channel_name=channel.name
        )

    async def join_by_code(self, db: AsyncSession, code: str, user_id: str) -> ChannelMember:
        """Redeem an invite code.

        Checks run in a fixed order and stop at the first failure: the code
        is active, not expired, under its use limit, the user is not banned
        and not already a member. The new membership and the use count
        increment are committed together.
        """
        invite = await self._get_by_code(db, code)

        if invite.expires_at is not None and as_utc(invite.expires_at) <= utcnow():
            raise invite_expired()
        if invite.max_uses > 0 and invite.use_count >= invite.max_uses:
            raise invite_max_uses()
        if await authority.is_banned(db, invite.channel_id, user_id):
            raise errors.user_banned(user_id)
        if await authority.get_membership(db, invite.channel_id, user_id):
            raise errors.already_member(user_id)

        channel_id = invite.channel_id
        member = ChannelMember(channel_id=channel_id, user_id=user_id, role=ChannelRole.MEMBER.value)
        db.add(member)
        await authority.flush_unique(db, errors.already_member(user_id))

        await db.execute(
            update(ChannelInvite)
            .where(ChannelInvite.id == invite.id)
            .values(use_count=ChannelInvite.use_count + 1)
        )
        await db.commit()
        await db.refresh(member)

        await channel_cache.invalidate_channel(channel_id)
        logger.info(f"User {user_id} joined channel {channel_id} with invite {code}")

        await kafka_producer.publish(
            EventType.MEMBER_JOINED,
            key=channel_id,
            data={"channel_id": channel_id, "user_id": user_id, "invite_code": code},
            actor_id=user_id,
        )
        return member

    async def deactivate_expired_invites(self, db: AsyncSession) -> int:
        """Deactivate every active invite whose expiry has passed."""
        result = await db.execute(
            update(ChannelInvite)
            .where(
                ChannelInvite.is_active.is_(True),
                ChannelInvite.expires_at.is_not(None),
                ChannelInvite.expires_at <= utcnow(),
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        await db.commit()

        if result.rowcount:
            logger.info(f"Deactivated {result.rowcount} expired invites")
        return result.rowcount


# Global instance
invite_manager = InviteManager()

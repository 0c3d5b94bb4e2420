"""Poll manager - polls, options, votes and results."""

import logging
from typing import List

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .. import errors
from ..database import ChannelPoll, PollOption, PollVote, as_utc, utcnow
from ..schemas.polls import (
    PollCreate,
    PollOptionResponse,
    PollOptionResult,
    PollResponse,
    PollResultsResponse,
)
from . import authority
from .kafka_producer import EventType, kafka_producer

logger = logging.getLogger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 10


def poll_closed(poll_id: str) -> errors.StateConflictError:
    return errors.StateConflictError("poll_closed", "Poll is closed", entity="poll", entity_id=poll_id)


def already_voted(poll_id: str) -> errors.ConflictError:
    return errors.ConflictError(
        "already_voted", "Already voted on this poll", entity="poll", entity_id=poll_id
    )


def invalid_option(message: str) -> errors.InvalidRequestError:
    return errors.InvalidRequestError("invalid_poll_option", message, entity="poll_option")


class PollManager:
    """Manages polls.

    A poll is open until it is closed or its ``expires_at`` passes. Each
    user votes once per poll; that single vote may select several
    options on a multi-choice poll.
    """

    async def _get_poll(self, db: AsyncSession, channel_id: str, poll_id: str) -> ChannelPoll:
        result = await db.execute(
            select(ChannelPoll).where(ChannelPoll.id == poll_id, ChannelPoll.channel_id == channel_id)
        )
        poll = result.scalar_one_or_none()
        if not poll:
            raise errors.NotFoundError("poll", poll_id)
        return poll

    async def _get_options(self, db: AsyncSession, poll_id: str) -> List[PollOption]:
        result = await db.execute(
            select(PollOption).where(PollOption.poll_id == poll_id).order_by(PollOption.position)
        )
        return list(result.scalars().all())

    def _is_open(self, poll: ChannelPoll) -> bool:
        if poll.is_closed:
            return False
        return poll.expires_at is None or as_utc(poll.expires_at) > utcnow()

    async def _to_response(self, db: AsyncSession, poll: ChannelPoll) -> PollResponse:
        options = await self._get_options(db, poll.id)
        return PollResponse(
            id=poll.id,
            channel_id=poll.channel_id,
            created_by=poll.created_by,
            question=poll.question,
            is_anonymous=poll.is_anonymous,
            multi_choice=poll.multi_choice,
            is_closed=poll.is_closed,
            closed_at=poll.closed_at,
            expires_at=poll.expires_at,
            created_at=poll.created_at,
            options=[PollOptionResponse.model_validate(option) for option in options],
        )

    async def create_poll(
        self, db: AsyncSession, channel_id: str, user_id: str, data: PollCreate
    ) -> PollResponse:
        await authority.get_channel(db, channel_id)
        await authority.require_member(db, channel_id, user_id)

        if not MIN_OPTIONS <= len(data.options) <= MAX_OPTIONS:
            raise errors.InvalidRequestError(
                "invalid_poll_options", f"A poll needs {MIN_OPTIONS} to {MAX_OPTIONS} options"
            )
        expires_at = as_utc(data.expires_at)
        if expires_at is not None and expires_at <= utcnow():
            raise errors.InvalidRequestError("invalid_poll_expiry", "Poll expiry must be in the future")

        poll = ChannelPoll(
            channel_id=channel_id,
            created_by=user_id,
            question=data.question,
            is_anonymous=data.is_anonymous,
            multi_choice=data.multi_choice,
            is_closed=False,
            expires_at=expires_at,
        )
        db.add(poll)
        await db.flush()

        for position, text in enumerate(data.options):
            db.add(PollOption(poll_id=poll.id, text=text, position=position))

        await db.commit()
        await db.refresh(poll)

        logger.info(f"Poll {poll.id} created in channel {channel_id} by {user_id}")
        await kafka_producer.publish(
            EventType.POLL_CREATED,
            key=channel_id,
            data={"channel_id": channel_id, "poll_id": poll.id, "question": poll.question},
            actor_id=user_id,
        )
        return await self._to_response(db, poll)

    async def get_poll(
        self, db: AsyncSession, channel_id: str, poll_id: str, user_id: str
    ) -> PollResponse:
        await authority.require_member(db, channel_id, user_id)
        poll = await self._get_poll(db, channel_id, poll_id)
        return await self._to_response(db, poll)

    async def list_polls(self, db: AsyncSession, channel_id: str, user_id: str) -> List[PollResponse]:
        await authority.require_member(db, channel_id, user_id)

        result = await db.execute(
            select(ChannelPoll)
            .where(ChannelPoll.channel_id == channel_id)
            .order_by(desc(ChannelPoll.created_at))
        )
        return [await self._to_response(db, poll) for poll in result.scalars().all()]

    async def vote(
        self, db: AsyncSession, channel_id: str, poll_id: str, user_id: str, option_ids: List[str]
    ) -> List[PollVote]:
        await authority.require_member(db, channel_id, user_id)
        poll = await self._get_poll(db, channel_id, poll_id)

        if not self._is_open(poll):
            raise poll_closed(poll_id)

        result = await db.execute(
            select(PollVote.id).where(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
        )
        if result.first() is not None:
            raise already_voted(poll_id)

        selected = list(dict.fromkeys(option_ids))
        if not selected:
            raise invalid_option("Select at least one option")
        if not poll.multi_choice and len(selected) != 1:
            raise invalid_option("This poll accepts a single option")

        valid_ids = {option.id for option in await self._get_options(db, poll_id)}
        unknown = [option_id for option_id in selected if option_id not in valid_ids]
        if unknown:
            raise invalid_option(f"Unknown poll option: {unknown[0]}")

        votes = [PollVote(poll_id=poll_id, option_id=option_id, user_id=user_id) for option_id in selected]
        db.add_all(votes)
        await authority.flush_unique(db, already_voted(poll_id))
        await db.commit()

        await kafka_producer.publish(
            EventType.POLL_VOTED,
            key=channel_id,
            data={"channel_id": channel_id, "poll_id": poll_id, "option_ids": selected},
            actor_id=None if poll.is_anonymous else user_id,
        )
        return votes

    async def close_poll(
        self, db: AsyncSession, channel_id: str, poll_id: str, user_id: str
    ) -> PollResponse:
        """Close a poll for good. Creator or owner/admin."""
        role = await authority.require_member(db, channel_id, user_id)
        poll = await self._get_poll(db, channel_id, poll_id)
        if poll.created_by != user_id and not authority.is_governor(role):
            raise errors.NotAuthorizedError("Only the poll creator or a channel admin can close it")

        if poll.is_closed:
            raise poll_closed(poll_id)

        poll.is_closed = True
        poll.closed_at = utcnow()
        await db.commit()
        await db.refresh(poll)

        await kafka_producer.publish(
            EventType.POLL_CLOSED,
            key=channel_id,
            data={"channel_id": channel_id, "poll_id": poll_id},
            actor_id=user_id,
        )
        return await self._to_response(db, poll)

    async def get_poll_results(
        self, db: AsyncSession, channel_id: str, poll_id: str, user_id: str
    ) -> PollResultsResponse:
        """Tally votes per option on read."""
        await authority.require_member(db, channel_id, user_id)
        poll = await self._get_poll(db, channel_id, poll_id)

        vote_count = func.count(PollVote.id)
        result = await db.execute(
            select(PollOption, vote_count)
            .outerjoin(PollVote, PollVote.option_id == PollOption.id)
            .where(PollOption.poll_id == poll_id)
            .group_by(PollOption.id)
            .order_by(PollOption.position)
        )
        rows = result.all()

        voters_by_option = {}
        if not poll.is_anonymous:
            result = await db.execute(
                select(PollVote.option_id, PollVote.user_id)
                .where(PollVote.poll_id == poll_id)
                .order_by(PollVote.voted_at)
            )
            for option_id, voter_id in result.all():
                voters_by_option.setdefault(option_id, []).append(voter_id)

        result = await db.execute(
            select(func.count(func.distinct(PollVote.user_id))).where(PollVote.poll_id == poll_id)
        )
        total_voters = result.scalar() or 0

        options = [
            PollOptionResult(
                option_id=option.id,
                text=option.text,
                position=option.position,
                votes=votes,
                voters=None if poll.is_anonymous else voters_by_option.get(option.id, []),
            )
            for option, votes in rows
        ]
        return PollResultsResponse(
            poll_id=poll.id,
            question=poll.question,
            is_closed=not self._is_open(poll),
            total_votes=sum(option.votes for option in options),
            total_voters=total_voters,
            options=options,
        )


# Global instance
poll_manager = PollManager()

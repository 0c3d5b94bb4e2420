import pytest
from pydantic import ValidationError

from channel_service import errors
from channel_service.schemas.polls import PollCreate
from channel_service.services.poll_manager import poll_manager

from conftest import ADMIN, MEMBER, OUTSIDER, OWNER, in_past


async def _poll(db, channel, **kwargs):
    data = PollCreate(question="Lunch?", options=["pizza", "sushi", "tacos"], **kwargs)
    return await poll_manager.create_poll(db, channel.id, MEMBER, data)


async def test_create_poll_positions_options(db, channel):
    poll = await _poll(db, channel)

    assert poll.is_closed is False
    assert [(o.text, o.position) for o in poll.options] == [("pizza", 0), ("sushi", 1), ("tacos", 2)]


def test_poll_options_are_validated():
    with pytest.raises(ValidationError):
        PollCreate(question="q", options=["only"])
    with pytest.raises(ValidationError):
        PollCreate(question="q", options=["same", " same "])
    with pytest.raises(ValidationError):
        PollCreate(question="q", options=["a", "  "])


async def test_single_choice_vote_once(db, channel):
    poll = await _poll(db, channel)
    pizza, sushi = poll.options[0].id, poll.options[1].id

    await poll_manager.vote(db, channel.id, poll.id, OWNER, [pizza])

    with pytest.raises(errors.ConflictError) as exc:
        await poll_manager.vote(db, channel.id, poll.id, OWNER, [sushi])
    assert exc.value.code == "already_voted"

    with pytest.raises(errors.InvalidRequestError):
        await poll_manager.vote(db, channel.id, poll.id, ADMIN, [pizza, sushi])

    await poll_manager.close_poll(db, channel.id, poll.id, MEMBER)
    with pytest.raises(errors.StateConflictError) as exc:
        await poll_manager.vote(db, channel.id, poll.id, ADMIN, [sushi])
    assert exc.value.code == "poll_closed"


async def test_multi_choice_vote_covers_all_options(db, channel):
    poll = await _poll(db, channel, multi_choice=True)
    ids = [o.id for o in poll.options]

    votes = await poll_manager.vote(db, channel.id, poll.id, OWNER, ids[:2])
    assert len(votes) == 2

    with pytest.raises(errors.ConflictError):
        await poll_manager.vote(db, channel.id, poll.id, OWNER, [ids[2]])


async def test_vote_rejects_unknown_option(db, channel):
    poll = await _poll(db, channel)
    with pytest.raises(errors.InvalidRequestError) as exc:
        await poll_manager.vote(db, channel.id, poll.id, OWNER, ["bogus"])
    assert exc.value.code == "invalid_poll_option"


async def test_results_tally_and_voters(db, channel):
    poll = await _poll(db, channel)
    pizza, sushi = poll.options[0].id, poll.options[1].id
    await poll_manager.vote(db, channel.id, poll.id, OWNER, [pizza])
    await poll_manager.vote(db, channel.id, poll.id, ADMIN, [pizza])
    await poll_manager.vote(db, channel.id, poll.id, MEMBER, [sushi])

    results = await poll_manager.get_poll_results(db, channel.id, poll.id, MEMBER)

    assert results.total_votes == 3
    assert results.total_voters == 3
    assert [o.votes for o in results.options] == [2, 1, 0]
    assert set(results.options[0].voters) == {OWNER, ADMIN}
    assert results.options[2].voters == []


async def test_anonymous_results_hide_voters(db, channel):
    poll = await _poll(db, channel, is_anonymous=True)
    await poll_manager.vote(db, channel.id, poll.id, OWNER, [poll.options[0].id])

    results = await poll_manager.get_poll_results(db, channel.id, poll.id, OWNER)
    assert results.options[0].votes == 1
    assert all(o.voters is None for o in results.options)


async def test_close_poll_rules(db, channel):
    poll = await _poll(db, channel)

    with pytest.raises(errors.NotAuthorizedError):
        await poll_manager.close_poll(db, channel.id, poll.id, OUTSIDER)

    closed = await poll_manager.close_poll(db, channel.id, poll.id, ADMIN)
    assert closed.is_closed is True
    assert closed.closed_at is not None

    with pytest.raises(errors.StateConflictError):
        await poll_manager.close_poll(db, channel.id, poll.id, OWNER)


async def test_poll_expiry_must_be_future(db, channel):
    with pytest.raises(errors.InvalidRequestError) as exc:
        await _poll(db, channel, expires_at=in_past())
    assert exc.value.code == "invalid_poll_expiry"


async def test_poll_reads_require_membership(db, channel):
    poll = await _poll(db, channel)
    assert len(await poll_manager.list_polls(db, channel.id, OWNER)) == 1
    assert (await poll_manager.get_poll(db, channel.id, poll.id, MEMBER)).id == poll.id
    with pytest.raises(errors.NotMemberError):
        await poll_manager.list_polls(db, channel.id, OUTSIDER)

    for poll_id in (poll.id, "does-not-exist"):
        with pytest.raises(errors.NotMemberError):
            await poll_manager.get_poll(db, channel.id, poll_id, OUTSIDER)
        with pytest.raises(errors.NotMemberError):
            await poll_manager.close_poll(db, channel.id, poll_id, OUTSIDER)

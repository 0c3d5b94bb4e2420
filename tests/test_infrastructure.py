from unittest.mock import AsyncMock, MagicMock

from channel_service import errors
from channel_service.config import settings
from channel_service.dependencies import get_pagination_params
from channel_service.services.cache import ChannelCache
from channel_service.services.kafka_producer import EventPublisher, EventType


# ============================================================================
# Error mapping
# ============================================================================


def test_status_follows_error_kind():
    assert errors.http_status_for(errors.NotFoundError("channel", "c1")) == 404
    assert errors.http_status_for(errors.NotAuthorizedError()) == 403
    assert errors.http_status_for(errors.NotMemberError()) == 403
    assert errors.http_status_for(errors.ConflictError("dup", "Duplicate")) == 409
    assert errors.http_status_for(errors.StateConflictError("archived", "Archived")) == 409
    assert errors.http_status_for(errors.InvalidRequestError("bad", "Bad")) == 400


def test_not_member_is_a_not_authorized_error():
    error = errors.NotMemberError(entity_id="u1")
    assert isinstance(error, errors.NotAuthorizedError)
    assert error.kind == errors.ErrorKind.NOT_MEMBER
    assert error.to_dict() == {"detail": "Not a member of this channel", "code": "not_member", "entity_id": "u1"}


def test_status_overrides_by_code():
    assert errors.http_status_for(errors.StateConflictError("invite_expired", "Expired")) == 410
    assert errors.http_status_for(errors.user_banned("u1")) == 403
    assert errors.http_status_for(errors.channel_archived("c1")) == 409


def test_error_payload():
    assert errors.NotFoundError("scheduled_message", "m1").to_dict() == {
        "detail": "Scheduled message not found",
        "code": "scheduled_message_not_found",
        "entity_id": "m1",
    }
    assert errors.cannot_leave_owner().to_dict() == {
        "detail": "Owner cannot leave channel, transfer ownership first",
        "code": "cannot_leave_owner",
    }


def test_pagination_is_clamped():
    assert get_pagination_params(limit=0, offset=-5) == {"limit": 1, "offset": 0}
    assert get_pagination_params(limit=10_000, offset=20) == {
        "limit": settings.max_page_size,
        "offset": 20,
    }


# ============================================================================
# Event publisher
# ============================================================================


async def test_publish_without_producer_is_a_noop():
    publisher = EventPublisher()
    await publisher.publish(EventType.CHANNEL_CREATED, key="c1", data={"channel_id": "c1"})


async def test_publish_sends_event_envelope():
    publisher = EventPublisher()
    publisher.producer = MagicMock()
    publisher.producer.send = AsyncMock()

    await publisher.publish(
        EventType.MEMBER_JOINED, key="c1", data={"channel_id": "c1", "user_id": "u1"}, actor_id="u2"
    )

    kwargs = publisher.producer.send.await_args.kwargs
    assert kwargs["topic"] == settings.kafka_topic
    assert kwargs["key"] == b"c1"
    assert kwargs["value"]["type"] == "member.joined"
    assert kwargs["value"]["user_id"] == "u1"
    assert kwargs["value"]["actor_id"] == "u2"
    assert "timestamp" in kwargs["value"]


async def test_publish_swallows_broker_errors():
    publisher = EventPublisher()
    publisher.producer = MagicMock()
    publisher.producer.send = AsyncMock(side_effect=ConnectionError("broker down"))

    await publisher.publish(EventType.CHANNEL_DELETED, key="c1", data={"channel_id": "c1"})

    publisher.producer.send.assert_awaited_once()


# ============================================================================
# Cache
# ============================================================================


async def test_cache_without_redis_misses():
    cache = ChannelCache()

    await cache.set_channel("c1", {"id": "c1"})
    await cache.set_typing("c1", "u1")
    await cache.invalidate_channel("c1")

    assert await cache.get_channel("c1") is None
    assert await cache.get_typing("c1") == []


async def test_cache_errors_degrade_to_miss():
    cache = ChannelCache()
    cache.redis_client = MagicMock()
    cache.redis_client.get = AsyncMock(side_effect=ConnectionError("redis down"))
    cache.redis_client.setex = AsyncMock(side_effect=ConnectionError("redis down"))
    cache.redis_client.delete = AsyncMock(side_effect=ConnectionError("redis down"))

    assert await cache.get_channel("c1") is None
    await cache.set_channel("c1", {"id": "c1"})
    await cache.invalidate_channel("c1")


async def test_cache_round_trip(fake_redis):
    cache = ChannelCache()
    cache.redis_client = fake_redis

    await cache.set_channel("c1", {"id": "c1", "name": "general"})
    assert await cache.get_channel("c1") == {"id": "c1", "name": "general"}
    assert await fake_redis.ttl("channel:c1") > 0

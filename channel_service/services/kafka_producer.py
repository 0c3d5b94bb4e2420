"""Kafka producer for Channel Service events."""

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

from aiokafka import AIOKafkaProducer

from ..config import settings
from ..database import utcnow

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Event names published to the channel events topic."""

    CHANNEL_CREATED = "channel.created"
    CHANNEL_UPDATED = "channel.updated"
    CHANNEL_ARCHIVED = "channel.archived"
    CHANNEL_UNARCHIVED = "channel.unarchived"
    CHANNEL_DELETED = "channel.deleted"
    CHANNEL_CLONED = "channel.cloned"
    CHANNEL_FOLLOWED = "channel.followed"
    OWNERSHIP_TRANSFERRED = "ownership.transferred"
    MEMBER_JOINED = "member.joined"
    MEMBER_LEFT = "member.left"
    MEMBER_REMOVED = "member.removed"
    MEMBER_ROLE_UPDATED = "member.role_updated"
    MEMBERS_BULK_ADDED = "members.bulk_added"
    MEMBERS_BULK_REMOVED = "members.bulk_removed"
    MEMBER_BANNED = "member.banned"
    MEMBER_UNBANNED = "member.unbanned"
    MEMBER_MUTED = "member.muted"
    MEMBER_UNMUTED = "member.unmuted"
    MESSAGE_PINNED = "message.pinned"
    MESSAGE_UNPINNED = "message.unpinned"
    REACTION_ADDED = "reaction.added"
    REACTION_REMOVED = "reaction.removed"
    TYPING_STARTED = "typing.started"
    THREAD_CREATED = "thread.created"
    THREAD_UPDATED = "thread.updated"
    THREAD_DELETED = "thread.deleted"
    THREAD_REPLY_CREATED = "thread.reply_created"
    POLL_CREATED = "poll.created"
    POLL_VOTED = "poll.voted"
    POLL_CLOSED = "poll.closed"
    ANNOUNCEMENT_CREATED = "announcement.created"
    ANNOUNCEMENT_PINNED = "announcement.pinned"
    WEBHOOK_TESTED = "webhook.tested"
    VOICE_JOINED = "voice.joined"
    VOICE_LEFT = "voice.left"


class EventPublisher:
    """Best-effort Kafka publisher for channel events."""

    def __init__(self):
        """Initialize Kafka producer."""
        self.producer: Optional[AIOKafkaProducer] = None
        self.bootstrap_servers = settings.kafka_brokers_list
        self.topic = settings.kafka_topic

    async def start(self):
        """Start Kafka producer."""
        try:
            self.producer = AIOKafkaProducer(
                bootstrap_servers=self.bootstrap_servers,
                value_serializer=lambda v: json.dumps(v, default=str).encode("utf-8"),
            )
            await self.producer.start()
            logger.info(f"Kafka producer started: {self.bootstrap_servers}")
        except Exception as e:
            logger.error(f"Failed to start Kafka producer: {e}")
            self.producer = None
            raise

    async def stop(self):
        """Stop Kafka producer."""
        if self.producer:
            await self.producer.stop()
            self.producer = None
            logger.info("Kafka producer stopped")

    async def publish(
        self,
        event_type: EventType,
        key: str,
        data: Dict[str, Any],
        actor_id: Optional[str] = None,
    ):
        """Publish a channel event to Kafka.

        Never raises: the store write the event describes has already been
        committed, so a broker failure is only logged.

        Args:
            event_type: Event name (e.g. 'channel.created')
            key: Partition key (the channel id)
            data: Event payload
            actor_id: User who caused the event
        """
        if not self.producer:
            logger.warning(f"Kafka producer not initialized, skipping {event_type.value}")
            return

        event = {
            **data,
            "type": event_type.value,
            "timestamp": utcnow().isoformat(),
        }
        if actor_id is not None:
            event["actor_id"] = actor_id

        try:
            await self.producer.send(
                topic=self.topic,
                value=event,
                key=key.encode("utf-8") if key else None,
            )
            logger.debug(f"Published {event_type.value} event for {key}")
        except Exception as e:
            logger.error(f"Failed to publish {event_type.value} event to Kafka: {e}")


# Global instance
kafka_producer = EventPublisher()

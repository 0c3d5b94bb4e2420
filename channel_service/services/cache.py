"""Redis cache for channel snapshots and typing presence.

Every method degrades to a miss / no-op when Redis is unavailable.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import redis.asyncio as redis

from ..config import settings

logger = logging.getLogger(__name__)

CHANNEL_KEY = "channel:{channel_id}"
MEMBERS_KEY = "channel:{channel_id}:members"
TYPING_KEY = "typing:{channel_id}:{user_id}"


class ChannelCache:
    """Read-through channel cache and short-lived typing indicators."""

    def __init__(self):
        self.redis_client: Optional[redis.Redis] = None
        self.ttl = settings.cache_ttl_seconds
        self.typing_ttl = settings.typing_ttl_seconds

    async def init_redis(self):
        """Initialize Redis connection."""
        try:
            self.redis_client = redis.from_url(
                settings.redis_url, encoding="utf-8", decode_responses=True
            )
            await self.redis_client.ping()
            logger.info("Redis connected for channel cache")
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}. Caching disabled.")
            self.redis_client = None

    async def close_redis(self):
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.close()
            self.redis_client = None

    async def get_channel(self, channel_id: str) -> Optional[Dict[str, Any]]:
        if not self.redis_client:
            return None
        try:
            cached = await self.redis_client.get(CHANNEL_KEY.format(channel_id=channel_id))
        except Exception as e:
            logger.warning(f"Redis cache read failed: {e}")
            return None
        if cached is None:
            return None
        return json.loads(cached)

    async def set_channel(self, channel_id: str, snapshot: Dict[str, Any]):
        if not self.redis_client:
            return
        try:
            await self.redis_client.setex(
                CHANNEL_KEY.format(channel_id=channel_id),
                self.ttl,
                json.dumps(snapshot, default=str),
            )
        except Exception as e:
            logger.warning(f"Redis cache write failed: {e}")

    async def invalidate_channel(self, channel_id: str):
        """Drop the channel snapshot and its member list."""
        if not self.redis_client:
            return
        try:
            await self.redis_client.delete(
                CHANNEL_KEY.format(channel_id=channel_id),
                MEMBERS_KEY.format(channel_id=channel_id),
            )
        except Exception as e:
            logger.warning(f"Redis cache invalidation failed for {channel_id}: {e}")

    async def set_typing(self, channel_id: str, user_id: str):
        if not self.redis_client:
            return
        try:
            await self.redis_client.setex(
                TYPING_KEY.format(channel_id=channel_id, user_id=user_id), self.typing_ttl, "1"
            )
        except Exception as e:
            logger.warning(f"Redis typing write failed: {e}")

    async def get_typing(self, channel_id: str) -> List[str]:
        """Users with a live typing key in the channel."""
        if not self.redis_client:
            return []
        prefix = TYPING_KEY.format(channel_id=channel_id, user_id="")
        users = []
        try:
            async for key in self.redis_client.scan_iter(match=f"{prefix}*"):
                users.append(key[len(prefix):])
        except Exception as e:
            logger.warning(f"Redis typing scan failed: {e}")
            return []
        return sorted(users)


# Global instance
channel_cache = ChannelCache()

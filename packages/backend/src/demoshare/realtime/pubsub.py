"""Redis pub/sub — push new notifications to whoever is listening.

Redis pub/sub is fire-and-forget. If no one is listening (or Redis is not
running at all) the message is lost, which is fine: notifications are
stored in the database and the app can always fetch them.

Channel naming: demoshare:notifications:{user_id}
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog

from demoshare.config import settings

logger = structlog.get_logger()

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    _redis = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection
    await _redis.ping()
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> Optional[aioredis.Redis]:
    """The shared connection, or None when Redis is not configured or down."""
    return _redis


def notification_channel(user_id: str) -> str:
    return f"demoshare:notifications:{user_id}"


async def publish_notification(user_id: str, kind: str, data: dict[str, Any]) -> bool:
    """Publish to a user's channel. Returns False if Redis was unavailable."""
    if _redis is None:
        return False
    payload = json.dumps({"type": kind, **data}, default=str)
    try:
        await _redis.publish(notification_channel(user_id), payload)
    except aioredis.RedisError as e:
        logger.warning("notifications.publish_failed", user_id=user_id, error=str(e))
        return False
    return True

"""Redis client construction.

Stores receive a ``redis.asyncio.Redis`` instance through their constructor;
this module only knows how to build one from settings.
"""

import redis.asyncio as redis

from postloom.core.config import Settings


def create_redis_client(settings: Settings) -> redis.Redis:
    """Build an asyncio Redis client that returns ``str`` values."""
    return redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )

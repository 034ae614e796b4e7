"""
Shared Redis connection.

The client is created lazily and never pinged here: the cache is an
optimization layer, so an unreachable server must surface per operation
(and be absorbed there), not at startup.
"""
from typing import Optional
import redis
from app.core.config import REDIS_URL

_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Get or create the process-wide Redis client."""
    global _client
    if _client is None:
        _client = redis.from_url(
            REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _client


def close_redis():
    """Close the shared client (shutdown hook)."""
    global _client
    if _client is not None:
        _client.close()
    _client = None

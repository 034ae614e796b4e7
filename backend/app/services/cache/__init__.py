"""
Shared cache store access.
"""
from app.services.cache.redis_cache import RedisCache, CacheContention

__all__ = [
    "RedisCache",
    "CacheContention",
]

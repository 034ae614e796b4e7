"""
Distributed token bucket rate limiter.

Bucket state lives in Redis under `rate_limit:{key}` so every server process
throttles against the same budget. The read-modify-write runs as an
optimistic WATCH/MULTI transaction (RedisCache.update_json): two concurrent
acquisitions on one key cannot both spend the same token. If contention
persists past the retry bound the acquisition is denied.

Redis being unreachable never blocks outbound calls: the limiter fails open
and logs. An absent key (never used, or idle past the TTL) is a full bucket.

Usage:
    limiter = DistributedRateLimiter(RedisCache(get_redis()))
    if limiter.try_acquire("trocador"):
        call_upstream()
    else:
        delay = limiter.get_wait_time("trocador")
"""
import logging
import time
from typing import Callable, Optional, Tuple
from app.services.cache.redis_cache import RedisCache, CacheContention
from app.services.ratelimit.token_bucket import TokenBucket
from app.core.errors import CacheUnavailable

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
DEFAULT_REFILL_RATE = 1
DEFAULT_IDLE_TTL_SECONDS = 3600


class DistributedRateLimiter:
    """Token bucket per key, shared through Redis."""

    def __init__(
        self,
        cache: RedisCache,
        capacity: int = DEFAULT_CAPACITY,
        refill_rate: int = DEFAULT_REFILL_RATE,
        idle_ttl_seconds: int = DEFAULT_IDLE_TTL_SECONDS,
        clock: Optional[Callable[[], float]] = None,
        max_contention_retries: int = 5,
    ):
        """
        Args:
            cache: Shared cache holding bucket state
            capacity: Bucket size for keys seen for the first time
            refill_rate: Tokens added per second for new keys
            idle_ttl_seconds: Bucket state expires after this much inactivity
            clock: Wall clock in seconds (defaults to time.time)
            max_contention_retries: Optimistic retries before denying
        """
        if capacity <= 0 or refill_rate <= 0:
            raise ValueError("capacity and refill_rate must be positive")
        self.cache = cache
        self.capacity = capacity
        self.refill_rate = refill_rate
        self.idle_ttl_seconds = idle_ttl_seconds
        self.clock = clock or time.time
        self.max_contention_retries = max_contention_retries

    @staticmethod
    def _bucket_key(key: str) -> str:
        return f"rate_limit:{key}"

    def _now(self) -> int:
        return int(self.clock())

    def _load(self, raw, now: int) -> TokenBucket:
        if raw is None:
            return TokenBucket.full(self.capacity, self.refill_rate, now)
        try:
            return TokenBucket.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning("Resetting malformed rate limit bucket")
            return TokenBucket.full(self.capacity, self.refill_rate, now)

    def try_acquire(self, key: str, tokens: int = 1) -> bool:
        """Consume `tokens` from the bucket for `key` if available."""
        now = self._now()

        def consume(raw) -> Tuple[dict, bool]:
            bucket = self._load(raw, now)
            allowed = bucket.try_consume(tokens, now)
            return bucket.to_dict(), allowed

        try:
            allowed = self.cache.update_json(
                self._bucket_key(key),
                consume,
                ttl_seconds=self.idle_ttl_seconds,
                max_attempts=self.max_contention_retries,
            )
        except CacheContention as e:
            logger.warning(f"Rate limiter contention on {key}, denying: {e}")
            return False
        except CacheUnavailable as e:
            logger.warning(f"Rate limiter store unavailable, allowing {key}: {e}")
            return True

        if not allowed:
            logger.debug(f"Rate limit reached for {key}")
        return allowed

    def get_wait_time(self, key: str) -> float:
        """Seconds until the next token for `key` (0 if one is available now).

        Refills a copy of the bucket; nothing is written back.
        """
        try:
            raw = self.cache.get_json(self._bucket_key(key))
        except CacheUnavailable as e:
            logger.warning(f"Rate limiter store unavailable for {key}: {e}")
            return 0.0
        if raw is None:
            return 0.0
        now = self._now()
        return self._load(raw, now).wait_time(now)

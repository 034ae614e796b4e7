"""
Cache-aside layer for live rate quotes.

Quotes are keyed by the exact trade parameters and kept for a short TTL.
The cache is an optimization only: if Redis is down, or holds something we
can't read, the fetch path runs as if nothing was cached.
"""
import logging
from typing import Callable, Optional
from pydantic import ValidationError as PydanticValidationError
from app.core.errors import CacheUnavailable
from app.services.cache.redis_cache import RedisCache
from app.services.swap.swap_models import RatesQuery, RatesResponse

logger = logging.getLogger(__name__)

DEFAULT_QUOTE_TTL_SECONDS = 30


class QuoteCache:
    def __init__(self, cache: Optional[RedisCache], ttl_seconds: int = DEFAULT_QUOTE_TTL_SECONDS):
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    def _read(self, key: str) -> Optional[RatesResponse]:
        if self.cache is None:
            return None
        try:
            cached = self.cache.get_json(key)
        except CacheUnavailable as e:
            logger.warning(f"Redis error reading {key}: {e}")
            return None
        if cached is None:
            return None
        try:
            return RatesResponse.model_validate(cached)
        except PydanticValidationError:
            logger.warning(f"Ignoring malformed cached rates for {key}")
            return None

    def _store(self, key: str, response: RatesResponse):
        if self.cache is None:
            return
        try:
            self.cache.set_json(key, response.model_dump(mode="json", by_alias=True), self.ttl_seconds)
            logger.debug(f"Cached rates for: {key}")
        except CacheUnavailable as e:
            logger.warning(f"Failed to cache rates: {e}")

    def get_or_fetch(self, query: RatesQuery, fetch_fn: Callable[[], RatesResponse]) -> RatesResponse:
        """Return cached quotes for `query`, or call `fetch_fn` and cache its result.

        Errors from `fetch_fn` propagate; nothing is cached for them.
        """
        key = query.cache_key()
        cached = self._read(key)
        if cached is not None:
            logger.debug(f"Cache hit for rates: {key}")
            return cached

        response = fetch_fn()
        self._store(key, response)
        return response

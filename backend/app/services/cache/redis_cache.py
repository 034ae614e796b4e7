"""
JSON cache over Redis.

Every Redis failure is raised as CacheUnavailable so callers can degrade to a
miss/no-op explicitly. Corrupt payloads are treated as misses.
"""
import json
import logging
import uuid
from typing import Any, Callable, Optional, Tuple, TypeVar
import redis
from app.core.errors import CacheUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheContention(Exception):
    """Optimistic update lost the race too many times."""


class RedisCache:
    """Small JSON/lock facade over a redis-py client."""

    def __init__(self, client: redis.Redis, prefix: str = ""):
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}" if self.prefix else key

    @staticmethod
    def _decode(key: str, raw: Optional[str]) -> Optional[Any]:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding undecodable cache entry {key}")
            return None

    def get_json(self, key: str) -> Optional[Any]:
        full_key = self._key(key)
        try:
            raw = self.client.get(full_key)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))
        return self._decode(full_key, raw)

    def set_json(self, key: str, value: Any, ttl_seconds: int) -> None:
        payload = json.dumps(value, default=str)
        try:
            self.client.set(self._key(key), payload, ex=ttl_seconds)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self._key(key))
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def update_json(
        self,
        key: str,
        update: Callable[[Optional[Any]], Tuple[Any, T]],
        ttl_seconds: int,
        max_attempts: int = 5,
    ) -> T:
        """Atomically read-modify-write one JSON value (WATCH/MULTI).

        `update` receives the current value (None when absent) and returns
        (new_value, result). It may run several times under contention, so it
        must not have side effects. Raises CacheContention after
        `max_attempts` lost races.
        """
        full_key = self._key(key)
        try:
            with self.client.pipeline() as pipe:
                for _ in range(max_attempts):
                    try:
                        pipe.watch(full_key)
                        current = self._decode(full_key, pipe.get(full_key))
                        new_value, result = update(current)
                        pipe.multi()
                        pipe.set(full_key, json.dumps(new_value, default=str), ex=ttl_seconds)
                        pipe.execute()
                        return result
                    except redis.WatchError:
                        logger.debug(f"Concurrent update on {full_key}, retrying")
                        continue
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))
        raise CacheContention(f"gave up updating {full_key} after {max_attempts} attempts")

    def acquire_lock(self, name: str, ttl_seconds: int) -> Optional[str]:
        """Try to take a short-lived lock. Returns the owner token, or None if held."""
        token = uuid.uuid4().hex
        try:
            acquired = self.client.set(self._key(f"lock:{name}"), token, nx=True, ex=ttl_seconds)
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))
        return token if acquired else None

    def release_lock(self, name: str, token: str) -> bool:
        """Release a lock only if `token` still owns it."""
        full_key = self._key(f"lock:{name}")
        try:
            with self.client.pipeline() as pipe:
                pipe.watch(full_key)
                if pipe.get(full_key) != token:
                    pipe.unwatch()
                    return False
                pipe.multi()
                pipe.delete(full_key)
                pipe.execute()
                return True
        except redis.WatchError:
            return False
        except redis.RedisError as e:
            raise CacheUnavailable(str(e))

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False

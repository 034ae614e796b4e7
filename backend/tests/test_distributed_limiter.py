"""
DistributedRateLimiter against fakeredis.
"""
import json
import threading

import redis

from app.services.cache.redis_cache import CacheContention, RedisCache
from app.services.ratelimit.distributed_limiter import DistributedRateLimiter


class SecondsClock:
    def __init__(self, now=1_000_000):
        self.now = now

    def __call__(self):
        return self.now


class BrokenRedis:
    """Every command fails as if the server were down."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise redis.ConnectionError("connection refused")
        return fail


class TestTryAcquire:
    def test_eleventh_call_in_same_second_is_denied(self, cache):
        clock = SecondsClock()
        limiter = DistributedRateLimiter(cache, capacity=10, refill_rate=1, clock=clock)
        results = [limiter.try_acquire("trocador") for _ in range(11)]
        assert results == [True] * 10 + [False]

    def test_refills_after_one_second(self, cache):
        clock = SecondsClock()
        limiter = DistributedRateLimiter(cache, capacity=2, refill_rate=1, clock=clock)
        assert limiter.try_acquire("k")
        assert limiter.try_acquire("k")
        assert not limiter.try_acquire("k")
        clock.now += 1
        assert limiter.try_acquire("k")
        assert not limiter.try_acquire("k")

    def test_keys_are_independent(self, cache):
        limiter = DistributedRateLimiter(cache, capacity=1, refill_rate=1, clock=SecondsClock())
        assert limiter.try_acquire("a")
        assert not limiter.try_acquire("a")
        assert limiter.try_acquire("b")

    def test_state_is_stored_under_rate_limit_key_with_idle_ttl(self, cache, redis_client):
        limiter = DistributedRateLimiter(cache, capacity=10, refill_rate=1, idle_ttl_seconds=3600, clock=SecondsClock())
        limiter.try_acquire("trocador")
        stored = json.loads(redis_client.get("rate_limit:trocador"))
        assert stored["tokens"] == 9
        assert stored["capacity"] == 10
        assert 0 < redis_client.ttl("rate_limit:trocador") <= 3600

    def test_shared_between_limiter_instances(self, cache):
        """Two processes (two limiters, one store) spend the same budget."""
        clock = SecondsClock()
        first = DistributedRateLimiter(cache, capacity=3, refill_rate=1, clock=clock)
        second = DistributedRateLimiter(cache, capacity=3, refill_rate=1, clock=clock)
        assert first.try_acquire("k")
        assert second.try_acquire("k")
        assert first.try_acquire("k")
        assert not second.try_acquire("k")

    def test_malformed_state_resets_to_full(self, cache, redis_client):
        redis_client.set("rate_limit:k", json.dumps({"tokens": "lots"}))
        limiter = DistributedRateLimiter(cache, capacity=5, refill_rate=1, clock=SecondsClock())
        assert limiter.try_acquire("k")
        assert json.loads(redis_client.get("rate_limit:k"))["tokens"] == 4

    def test_fails_open_when_store_unreachable(self):
        limiter = DistributedRateLimiter(RedisCache(BrokenRedis()), clock=SecondsClock())
        assert limiter.try_acquire("trocador") is True


class TestGetWaitTime:
    def test_zero_for_unknown_key(self, cache):
        limiter = DistributedRateLimiter(cache, clock=SecondsClock())
        assert limiter.get_wait_time("never-used") == 0.0

    def test_one_interval_when_exhausted(self, cache):
        limiter = DistributedRateLimiter(cache, capacity=1, refill_rate=1, clock=SecondsClock())
        limiter.try_acquire("k")
        assert limiter.get_wait_time("k") == 1.0

    def test_does_not_write_state(self, cache, redis_client):
        clock = SecondsClock()
        limiter = DistributedRateLimiter(cache, capacity=1, refill_rate=1, clock=clock)
        limiter.try_acquire("k")
        before = redis_client.get("rate_limit:k")
        clock.now += 5
        assert limiter.get_wait_time("k") == 0.0
        assert redis_client.get("rate_limit:k") == before

    def test_zero_when_store_unreachable(self):
        limiter = DistributedRateLimiter(RedisCache(BrokenRedis()), clock=SecondsClock())
        assert limiter.get_wait_time("k") == 0.0


class ContendedCache:
    """Cache whose optimistic update always loses the race."""

    def __init__(self):
        self.attempts = 0

    def update_json(self, key, update, ttl_seconds, max_attempts=5):
        self.attempts += max_attempts
        raise CacheContention(f"gave up updating {key} after {max_attempts} attempts")


class TestRecoveryAndContention:
    def test_ten_token_acquire_after_ten_seconds(self, cache):
        clock = SecondsClock()
        limiter = DistributedRateLimiter(cache, capacity=10, refill_rate=1, clock=clock)
        assert all(limiter.try_acquire("trocador") for _ in range(10))
        assert not limiter.try_acquire("trocador")
        clock.now += 10
        assert limiter.try_acquire("trocador", 10) is True
        assert not limiter.try_acquire("trocador")

    def test_persistent_contention_denies(self):
        cache = ContendedCache()
        limiter = DistributedRateLimiter(cache, clock=SecondsClock(), max_contention_retries=3)
        assert limiter.try_acquire("trocador") is False
        assert cache.attempts == 3

    def test_concurrent_acquisitions_never_over_grant(self, redis_client):
        limiter = DistributedRateLimiter(
            RedisCache(redis_client),
            capacity=10,
            refill_rate=1,
            clock=SecondsClock(),
            max_contention_retries=1000,
        )
        start = threading.Barrier(30)
        granted = []

        def worker():
            start.wait()
            granted.append(limiter.try_acquire("shared"))

        threads = [threading.Thread(target=worker) for _ in range(30)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert granted.count(True) == 10
        assert json.loads(redis_client.get("rate_limit:shared"))["tokens"] == 0

"""
TokenBucket arithmetic.
"""
import pytest

from app.services.ratelimit.token_bucket import TokenBucket


class TestRefill:
    def test_new_bucket_is_full(self):
        bucket = TokenBucket.full(10, 1, now=1000)
        assert bucket.tokens == 10
        assert bucket.last_refill == 1000

    def test_rejects_non_positive_parameters(self):
        with pytest.raises(ValueError):
            TokenBucket.full(0, 1, now=0)
        with pytest.raises(ValueError):
            TokenBucket.full(10, 0, now=0)

    def test_refill_adds_elapsed_times_rate(self):
        bucket = TokenBucket(tokens=0, last_refill=1000, capacity=10, refill_rate=2)
        bucket.refill(1003)
        assert bucket.tokens == 6
        assert bucket.last_refill == 1003

    def test_refill_clamps_to_capacity(self):
        bucket = TokenBucket(tokens=8, last_refill=1000, capacity=10, refill_rate=1)
        bucket.refill(2000)
        assert bucket.tokens == 10

    def test_refill_ignores_clock_going_backwards(self):
        bucket = TokenBucket(tokens=3, last_refill=1000, capacity=10, refill_rate=1)
        bucket.refill(990)
        assert bucket.tokens == 3
        assert bucket.last_refill == 1000

    def test_refill_same_second_is_noop(self):
        bucket = TokenBucket(tokens=3, last_refill=1000, capacity=10, refill_rate=1)
        bucket.refill(1000)
        assert bucket.tokens == 3
        assert bucket.last_refill == 1000


class TestConsume:
    def test_eleven_calls_in_one_second(self):
        """Capacity 10: the eleventh acquisition within the same second is refused."""
        bucket = TokenBucket.full(10, 1, now=1000)
        results = [bucket.try_consume(1, now=1000) for _ in range(11)]
        assert results == [True] * 10 + [False]
        assert bucket.tokens == 0

    def test_one_token_back_after_a_second(self):
        bucket = TokenBucket(tokens=0, last_refill=1000, capacity=10, refill_rate=1)
        assert bucket.try_consume(1, now=1001) is True
        assert bucket.tokens == 0
        assert bucket.try_consume(1, now=1001) is False

    def test_failed_consume_leaves_tokens(self):
        bucket = TokenBucket(tokens=2, last_refill=1000, capacity=10, refill_rate=1)
        assert bucket.try_consume(3, now=1000) is False
        assert bucket.tokens == 2


class TestWaitTime:
    def test_zero_when_tokens_available(self):
        bucket = TokenBucket.full(10, 1, now=1000)
        assert bucket.wait_time(1000) == 0.0

    def test_one_interval_when_empty(self):
        bucket = TokenBucket(tokens=0, last_refill=1000, capacity=10, refill_rate=4)
        assert bucket.wait_time(1000) == 0.25


class TestSerialization:
    def test_dict_round_trip(self):
        bucket = TokenBucket(tokens=4, last_refill=1234, capacity=10, refill_rate=1)
        assert TokenBucket.from_dict(bucket.to_dict()) == bucket

    def test_from_dict_clamps_out_of_range_tokens(self):
        bucket = TokenBucket.from_dict({"tokens": 50, "last_refill": 1, "capacity": 10, "refill_rate": 1})
        assert bucket.tokens == 10
        bucket = TokenBucket.from_dict({"tokens": -3, "last_refill": 1, "capacity": 10, "refill_rate": 1})
        assert bucket.tokens == 0


class TestFullRecovery:
    def test_drained_bucket_is_full_again_after_capacity_seconds(self):
        bucket = TokenBucket.full(10, 1, now=1000)
        assert all(bucket.try_consume(1, now=1000) for _ in range(10))
        assert bucket.try_consume(10, now=1010) is True
        assert bucket.tokens == 0

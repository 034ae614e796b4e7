"""
Token bucket arithmetic.

Pure state + computation, no I/O and no clock of its own: callers pass
`now` (whole seconds). Refill only moves `last_refill` forward once at least
one whole token has accrued, so frequent calls closer together than a token
interval do not lose the fractional refill.
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict


@dataclass
class TokenBucket:
    tokens: int
    last_refill: int
    capacity: int
    refill_rate: int  # tokens per second

    @classmethod
    def full(cls, capacity: int, refill_rate: int, now: int) -> "TokenBucket":
        if capacity <= 0 or refill_rate <= 0:
            raise ValueError("capacity and refill_rate must be positive")
        return cls(tokens=capacity, last_refill=int(now), capacity=capacity, refill_rate=refill_rate)

    def refill(self, now: int) -> None:
        elapsed = int(now) - self.last_refill
        if elapsed <= 0:
            # Clock went backwards or no time passed
            return
        tokens_to_add = elapsed * self.refill_rate
        if tokens_to_add > 0:
            self.tokens = min(self.capacity, self.tokens + tokens_to_add)
            self.last_refill = int(now)

    def try_consume(self, n: int, now: int) -> bool:
        self.refill(now)
        if self.tokens >= n:
            self.tokens -= n
            return True
        return False

    def wait_time(self, now: int) -> float:
        """Seconds until one token is available (0 if one is available now)."""
        self.refill(now)
        if self.tokens > 0:
            return 0.0
        return 1.0 / self.refill_rate

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenBucket":
        bucket = cls(
            tokens=int(data["tokens"]),
            last_refill=int(data["last_refill"]),
            capacity=int(data["capacity"]),
            refill_rate=int(data["refill_rate"]),
        )
        bucket.tokens = max(0, min(bucket.tokens, bucket.capacity))
        return bucket

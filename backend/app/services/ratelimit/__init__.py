"""
Rate limiting for outbound upstream calls.
"""
from app.services.ratelimit.token_bucket import TokenBucket
from app.services.ratelimit.distributed_limiter import DistributedRateLimiter

__all__ = [
    "TokenBucket",
    "DistributedRateLimiter",
]

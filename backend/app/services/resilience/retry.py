"""
Retry with exponential backoff for upstream calls.

Only rate limiting is treated as transient: a rate-limited attempt is retried
after 1s, 2s, 4s (max_retries=3); anything else fails immediately. When a
rate limiter is attached, a token is taken before every attempt and a refusal
counts as a rate-limited attempt without touching the network.

Failures come out as the swap error taxonomy:
- UpstreamRateLimited: retries exhausted, every attempt rate limited
- ValidationError: upstream rejected the request as invalid
- UpstreamUnavailable: anything else, or a deadline cut the backoff short
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar
from app.core.errors import SwapError, UpstreamRateLimited, UpstreamUnavailable, ValidationError
from app.services.ratelimit.distributed_limiter import DistributedRateLimiter
from app.services.trocador.client import TrocadorError, UpstreamErrorKind, classify_message

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry with exponential backoff."""
    max_retries: int = 3
    base_delay_s: float = 1.0
    backoff_factor: float = 2.0

    def delay_for(self, retry_number: int) -> float:
        """Backoff before retry `retry_number` (1-based): 1s, 2s, 4s with defaults."""
        return self.base_delay_s * (self.backoff_factor ** (retry_number - 1))


def classify_error(exc: Exception) -> UpstreamErrorKind:
    """Tagged errors dispatch on their kind; untyped ones fall back to message text."""
    if isinstance(exc, TrocadorError):
        return exc.kind
    return classify_message(str(exc))


class RetryExecutor:
    """Runs one logical upstream call with bounded retry."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        rate_limiter: Optional[DistributedRateLimiter] = None,
        rate_limit_key: str = "trocador",
        sleep: Callable[[float], None] = time.sleep,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RetryConfig()
        self.rate_limiter = rate_limiter
        self.rate_limit_key = rate_limit_key
        self.sleep = sleep
        self.monotonic = monotonic

    def execute(self, operation: Callable[[], T], deadline: Optional[float] = None) -> T:
        """Call `operation` until it succeeds or fails terminally.

        Args:
            operation: Zero-argument upstream call
            deadline: Optional absolute time (same scale as `monotonic`) past
                which no further backoff is started

        Returns:
            The operation's result
        """
        retries = 0
        while True:
            error_message = None

            if self.rate_limiter and not self.rate_limiter.try_acquire(self.rate_limit_key):
                error_message = f"local rate limit reached for {self.rate_limit_key}"
            else:
                try:
                    return operation()
                except SwapError:
                    raise
                except Exception as e:
                    kind = classify_error(e)
                    if kind == UpstreamErrorKind.INVALID:
                        logger.warning(f"Upstream rejected request: {e}")
                        raise ValidationError(getattr(e, "message", str(e))) from e
                    if kind != UpstreamErrorKind.RATE_LIMITED:
                        logger.error(f"Upstream call failed: {e}")
                        raise UpstreamUnavailable(str(e)) from e
                    error_message = str(e)

            if retries >= self.config.max_retries:
                logger.error(f"Rate limit persisted after {retries} retries: {error_message}")
                raise UpstreamRateLimited(error_message)

            retries += 1
            delay = self.config.delay_for(retries)
            if deadline is not None and self.monotonic() + delay > deadline:
                raise UpstreamUnavailable(f"deadline exceeded while rate limited: {error_message}")

            logger.warning(
                f"Rate limit hit, retrying in {delay:g}s (attempt {retries}/{self.config.max_retries})"
            )
            self.sleep(delay)

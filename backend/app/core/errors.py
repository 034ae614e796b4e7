"""
Error taxonomy for the swap services.

Every failure the swap services report is one of these. The transport layer
maps them to status codes; the services decide which ones are absorbed
(cache, opportunistic sync) and which ones reach the caller.
"""
from typing import Optional


class SwapError(Exception):
    """Base class for swap service failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UpstreamUnavailable(SwapError):
    """Upstream call failed terminally (non-retryable, or retries exhausted)."""

    def __str__(self) -> str:
        return f"Provider unavailable: {self.message}"


class UpstreamRateLimited(UpstreamUnavailable):
    """Retries exhausted while every attempt was rate limited."""

    def __str__(self) -> str:
        return f"Provider rate limited: {self.message}"


class PersistenceError(SwapError):
    def __str__(self) -> str:
        return f"Database error: {self.message}"


class CacheUnavailable(SwapError):
    """Shared cache unreachable. Never terminal: callers degrade to a miss."""

    def __str__(self) -> str:
        return f"Cache unavailable: {self.message}"


class ValidationError(SwapError):
    """Request rejected as invalid. Never retried."""


class AmountOutOfRange(ValidationError):
    def __init__(self, amount: float, min_amount: Optional[float], max_amount: Optional[float]):
        super().__init__(f"Amount out of range: min={min_amount}, max={max_amount}")
        self.amount = amount
        self.min_amount = min_amount
        self.max_amount = max_amount


class NotConfigured(SwapError):
    """Required upstream configuration (API key) is missing."""

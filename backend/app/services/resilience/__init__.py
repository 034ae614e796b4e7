"""
Resilience primitives for upstream calls.
"""
from app.services.resilience.retry import RetryConfig, RetryExecutor, classify_error

__all__ = [
    "RetryConfig",
    "RetryExecutor",
    "classify_error",
]

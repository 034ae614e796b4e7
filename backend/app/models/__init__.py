"""
Database models.
"""
from app.models.currency import Currency
from app.models.provider import Provider
from app.models.swap import Swap, SwapStatus, RateType

__all__ = [
    "Currency",
    "Provider",
    "Swap",
    "SwapStatus",
    "RateType",
]

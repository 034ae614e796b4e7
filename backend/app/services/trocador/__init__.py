"""
Trocador upstream client.
"""
from app.services.trocador.client import (
    TrocadorClient,
    TrocadorError,
    UpstreamErrorKind,
    classify_message,
)
from app.services.trocador.trocador_models import (
    CurrencyDescriptor,
    ProviderDescriptor,
    UpstreamQuote,
    QuoteSet,
    TradeResult,
)

__all__ = [
    "TrocadorClient",
    "TrocadorError",
    "UpstreamErrorKind",
    "classify_message",
    "CurrencyDescriptor",
    "ProviderDescriptor",
    "UpstreamQuote",
    "QuoteSet",
    "TradeResult",
]

"""
Swap aggregation services: reference data sync, live quotes, swap creation.
"""
from app.services.swap.reference_store import Collection
from app.services.swap.staleness import StalenessGate
from app.services.swap.sync_service import SyncEngine
from app.services.swap.quote_cache import QuoteCache
from app.services.swap.rates_service import build_rates_response, normalize_quote
from app.services.swap.swap_models import (
    RatesQuery,
    RateResponse,
    RatesResponse,
    CreateSwapRequest,
    CreateSwapResponse,
    SyncResult,
)
from app.services.swap.swap_service import (
    SwapService,
    build_swap_service,
    close_shared_components,
    map_upstream_status,
)

__all__ = [
    "Collection",
    "StalenessGate",
    "SyncEngine",
    "QuoteCache",
    "build_rates_response",
    "normalize_quote",
    "RatesQuery",
    "RateResponse",
    "RatesResponse",
    "CreateSwapRequest",
    "CreateSwapResponse",
    "SyncResult",
    "SwapService",
    "build_swap_service",
    "close_shared_components",
    "map_upstream_status",
]

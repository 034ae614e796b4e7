"""
Swap service: the read and create operations behind the /swap endpoints.

Three kinds of read/write, each with its own failure policy:
1. Reference data (currencies, providers): refresh from Trocador if stale,
   then always answer from the database. Sync failures never fail the read.
2. Live rates: quote cache first, upstream (with retry) on a miss. Upstream
   failures reach the caller.
3. Swap creation: validate, call upstream (with retry), persist. Never cached.
"""
import logging
import threading
import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from sqlalchemy.orm import Session
from app.core.config import get_settings
from app.core.errors import AmountOutOfRange, NotConfigured, ValidationError
from app.core.redis import get_redis
from app.models.currency import Currency
from app.models.provider import Provider
from app.models.swap import Swap, SwapStatus, RateType
from app.services.cache.redis_cache import RedisCache
from app.services.ratelimit.distributed_limiter import DistributedRateLimiter
from app.services.resilience.retry import RetryConfig, RetryExecutor
from app.services.swap import reference_store
from app.services.swap.quote_cache import QuoteCache
from app.services.swap.rates_service import build_rates_response
from app.services.swap.reference_store import Collection
from app.services.swap.staleness import StalenessGate, utc_now
from app.services.swap.swap_models import (
    CreateSwapRequest,
    CreateSwapResponse,
    RatesQuery,
    RatesResponse,
)
from app.services.swap.sync_service import SyncEngine
from app.services.trocador.client import TrocadorClient

logger = logging.getLogger(__name__)

UPSTREAM_STATUS_MAP = {
    "new": SwapStatus.WAITING,
    "waiting": SwapStatus.WAITING,
    "confirming": SwapStatus.CONFIRMING,
    "sending": SwapStatus.SENDING,
    "finished": SwapStatus.COMPLETED,
    "failed": SwapStatus.FAILED,
    "halted": SwapStatus.FAILED,
    "refunded": SwapStatus.REFUNDED,
    "expired": SwapStatus.EXPIRED,
}


def map_upstream_status(status: str) -> SwapStatus:
    return UPSTREAM_STATUS_MAP.get((status or "").lower(), SwapStatus.WAITING)


class SwapService:
    """Per-request facade over sync, quote cache and upstream calls."""

    def __init__(
        self,
        db: Session,
        client: Optional[TrocadorClient],
        retry: RetryExecutor,
        sync_engine: SyncEngine,
        staleness_gate: StalenessGate,
        quote_cache: QuoteCache,
        now: Callable[[], datetime] = utc_now,
        swap_expiry_minutes: int = 60,
    ):
        self.db = db
        self.client = client
        self.retry = retry
        self.sync_engine = sync_engine
        self.staleness_gate = staleness_gate
        self.quote_cache = quote_cache
        self.now = now
        self.swap_expiry_minutes = swap_expiry_minutes

    def _require_client(self) -> TrocadorClient:
        if self.client is None:
            raise NotConfigured("TROCADOR_API_KEY not set")
        return self.client

    # =========================================================================
    # REFERENCE DATA
    # =========================================================================

    def get_currencies(
        self,
        ticker: Optional[str] = None,
        network: Optional[str] = None,
        memo: Optional[bool] = None,
    ) -> List[Currency]:
        self.sync_engine.refresh_if_stale(self.db, Collection.CURRENCIES, self.staleness_gate)
        return reference_store.query_currencies(self.db, ticker=ticker, network=network, memo=memo)

    def get_providers(
        self,
        rating: Optional[str] = None,
        markup_enabled: Optional[bool] = None,
        sort: Optional[str] = None,
    ) -> List[Provider]:
        self.sync_engine.refresh_if_stale(self.db, Collection.PROVIDERS, self.staleness_gate)
        return reference_store.query_providers(
            self.db, rating=rating, markup_enabled=markup_enabled, sort=sort
        )

    # =========================================================================
    # RATES
    # =========================================================================

    def get_rates(self, query: RatesQuery) -> RatesResponse:
        """Live quotes for one trade, best first."""
        if query.amount <= 0:
            raise ValidationError("Amount must be positive")
        client = self._require_client()

        def fetch() -> RatesResponse:
            quote_set = self.retry.execute(lambda: client.get_rates(
                query.from_currency,
                query.network_from,
                query.to_currency,
                query.network_to,
                query.amount,
            ))
            return build_rates_response(quote_set, query)

        response = self.quote_cache.get_or_fetch(query, fetch)
        # Entries are shared across rate types; label them for this caller
        rate_type = query.rate_type or RateType.FLOATING
        if any(r.rate_type != rate_type for r in response.rates):
            response = response.model_copy(update={
                "rates": [r.model_copy(update={"rate_type": rate_type}) for r in response.rates],
            })
        return response

    # =========================================================================
    # CREATE SWAP
    # =========================================================================

    def _validate_amount(self, request: CreateSwapRequest):
        if request.amount <= 0:
            raise ValidationError("Amount must be positive")
        currency = reference_store.find_currency(self.db, request.from_currency, request.network_from)
        if currency is None:
            return
        min_amount = currency.min_amount or None
        max_amount = currency.max_amount or None
        if (min_amount and request.amount < min_amount) or (max_amount and request.amount > max_amount):
            raise AmountOutOfRange(request.amount, min_amount, max_amount)

    def create_swap(self, request: CreateSwapRequest, user_id: Optional[str] = None) -> CreateSwapResponse:
        """Create a trade upstream and record it locally."""
        if not request.recipient_address.strip():
            raise ValidationError("Invalid address")
        self._validate_amount(request)
        client = self._require_client()

        trade = self.retry.execute(lambda: client.create_trade(
            request.trade_id,
            request.from_currency,
            request.network_from,
            request.to_currency,
            request.network_to,
            request.amount,
            request.recipient_address,
            request.refund_address,
            request.provider,
            request.rate_type == RateType.FIXED,
        ))

        status = map_upstream_status(trade.status)
        rate = trade.amount_to / request.amount
        created_at = self.now()

        swap = Swap(
            id=str(uuid.uuid4()),
            user_id=user_id,
            provider_id=request.provider,
            provider_swap_id=trade.trade_id,
            from_currency=request.from_currency,
            from_network=request.network_from,
            to_currency=request.to_currency,
            to_network=request.network_to,
            amount=request.amount,
            estimated_receive=trade.amount_to,
            rate=rate,
            deposit_address=trade.address_provider,
            deposit_extra_id=trade.address_provider_memo,
            recipient_address=request.recipient_address,
            recipient_extra_id=request.recipient_extra_id,
            refund_address=request.refund_address,
            refund_extra_id=request.refund_extra_id,
            status=status,
            rate_type=request.rate_type,
            is_sandbox=request.sandbox,
        )
        reference_store.insert_swap(self.db, swap)
        logger.info(f"Created swap {swap.id} via {request.provider} (upstream trade {trade.trade_id})")

        return CreateSwapResponse(
            swap_id=swap.id,
            provider=trade.provider or request.provider,
            from_currency=request.from_currency,
            to_currency=request.to_currency,
            deposit_address=trade.address_provider,
            deposit_extra_id=trade.address_provider_memo,
            deposit_amount=request.amount,
            recipient_address=request.recipient_address,
            estimated_receive=trade.amount_to,
            rate=rate,
            status=status,
            rate_type=request.rate_type,
            is_sandbox=request.sandbox,
            expires_at=created_at + timedelta(minutes=self.swap_expiry_minutes),
            created_at=created_at,
        )


# =========================================================================
# WIRING
# =========================================================================

_shared = {}
_shared_lock = threading.Lock()


def _shared_components() -> dict:
    """Process-wide collaborators, built once from settings.

    The HTTP client and the limiter are shared by every request; only the
    database session is per request. Handlers run in a threadpool, so the
    first build is serialized.
    """
    with _shared_lock:
        if not _shared:
            _shared.update(_build_components())
        return dict(_shared)


def _build_components() -> dict:
    settings = get_settings()
    cache = RedisCache(get_redis())
    limiter = DistributedRateLimiter(
        cache,
        capacity=settings.rate_limit_capacity,
        refill_rate=settings.rate_limit_refill_per_second,
        idle_ttl_seconds=settings.rate_limit_idle_ttl_seconds,
    )
    retry = RetryExecutor(
        RetryConfig(max_retries=settings.upstream_max_retries),
        rate_limiter=limiter,
        rate_limit_key=settings.upstream_rate_limit_key,
    )

    client = None
    if settings.trocador_api_key:
        client = TrocadorClient(
            settings.trocador_api_key,
            base_url=settings.trocador_base_url,
            timeout=settings.trocador_timeout_seconds,
        )
    else:
        logger.warning("TROCADOR_API_KEY not set, serving cached reference data only")

    window = timedelta(seconds=settings.reference_staleness_seconds)
    return dict(
        client=client,
        retry=retry,
        sync_engine=SyncEngine(client, retry, cache=cache, lock_ttl_seconds=settings.sync_lock_ttl_seconds),
        staleness_gate=StalenessGate({Collection.CURRENCIES: window, Collection.PROVIDERS: window}),
        quote_cache=QuoteCache(cache, ttl_seconds=settings.quote_cache_ttl_seconds),
        swap_expiry_minutes=settings.swap_expiry_minutes,
    )


def build_swap_service(db: Session) -> SwapService:
    return SwapService(db, **_shared_components())


def close_shared_components():
    with _shared_lock:
        client = _shared.get("client")
        if client is not None:
            client.close()
        _shared.clear()

"""
Swap endpoints: currencies, providers, live rates, swap creation.

Handlers are plain `def`: the upstream retry backs off with blocking sleeps,
so they run in the threadpool rather than on the event loop.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime
import logging

from app.core.database import get_db
from app.core.errors import (
    SwapError,
    ValidationError,
    UpstreamRateLimited,
    UpstreamUnavailable,
)
from app.models.swap import RateType
from app.services.swap import (
    SwapService,
    build_swap_service,
    RatesQuery,
    RatesResponse,
    CreateSwapRequest,
    CreateSwapResponse,
)

router = APIRouter()
logger = logging.getLogger(__name__)


class CurrencyResponse(BaseModel):
    """Currency response model."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    symbol: str
    name: str
    network: str
    is_active: bool
    logo_url: Optional[str] = None
    contract_address: Optional[str] = None
    decimals: Optional[int] = None
    requires_extra_id: bool
    extra_id_name: Optional[str] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    last_synced_at: Optional[datetime] = None


class ProviderResponse(BaseModel):
    """Provider response model."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str
    is_active: bool
    kyc_rating: Optional[str] = None
    insurance_percentage: Optional[float] = None
    eta_minutes: Optional[int] = None
    markup_enabled: bool
    logo_url: Optional[str] = None
    website_url: Optional[str] = None
    last_synced_at: Optional[datetime] = None


def get_swap_service(db: Session = Depends(get_db)) -> SwapService:
    return build_swap_service(db)


def _to_http_error(e: SwapError) -> HTTPException:
    """Map a swap service failure to a response status."""
    if isinstance(e, ValidationError):
        return HTTPException(status_code=400, detail=e.message)
    if isinstance(e, UpstreamRateLimited):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, UpstreamUnavailable):
        return HTTPException(status_code=502, detail=str(e))
    # NotConfigured, PersistenceError: our side, don't leak details
    logger.error(f"Swap request failed: {e}")
    return HTTPException(status_code=500, detail="Internal server error")


@router.get("/currencies", response_model=List[CurrencyResponse])
def list_currencies(
    ticker: Optional[str] = Query(None),
    network: Optional[str] = Query(None),
    memo: Optional[bool] = Query(None),
    service: SwapService = Depends(get_swap_service),
):
    """List supported currencies (refreshed from upstream when stale)."""
    try:
        return service.get_currencies(ticker=ticker, network=network, memo=memo)
    except SwapError as e:
        raise _to_http_error(e)


@router.get("/providers", response_model=List[ProviderResponse])
def list_providers(
    rating: Optional[str] = Query(None),
    markup_enabled: Optional[bool] = Query(None),
    sort: Optional[str] = Query(None, pattern="^(name|rating|eta)$"),
    service: SwapService = Depends(get_swap_service),
):
    """List exchange providers (refreshed from upstream when stale)."""
    try:
        return service.get_providers(rating=rating, markup_enabled=markup_enabled, sort=sort)
    except SwapError as e:
        raise _to_http_error(e)


@router.get("/rates", response_model=RatesResponse, response_model_by_alias=True)
def get_rates(
    from_currency: str = Query(..., alias="from"),
    to_currency: str = Query(..., alias="to"),
    network_from: str = Query(...),
    network_to: str = Query(...),
    amount: float = Query(...),
    rate_type: Optional[RateType] = Query(None),
    service: SwapService = Depends(get_swap_service),
):
    """Live quotes from every provider, best first."""
    query = RatesQuery(
        from_currency=from_currency,
        to_currency=to_currency,
        network_from=network_from,
        network_to=network_to,
        amount=amount,
        rate_type=rate_type,
    )
    try:
        return service.get_rates(query)
    except SwapError as e:
        raise _to_http_error(e)


@router.post("/create", response_model=CreateSwapResponse, response_model_by_alias=True)
def create_swap(
    request: CreateSwapRequest,
    service: SwapService = Depends(get_swap_service),
):
    """Create a swap with the chosen provider."""
    try:
        return service.create_swap(request)
    except SwapError as e:
        raise _to_http_error(e)

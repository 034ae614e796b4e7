"""
Swap service data structures.

Pydantic models so the same shapes serve as API responses and as the JSON
stored in the quote cache.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from app.models.swap import RateType, SwapStatus


class RatesQuery(BaseModel):
    """Exact trade parameters a quote is requested for."""
    model_config = ConfigDict(populate_by_name=True)

    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    network_from: str
    network_to: str
    amount: float
    rate_type: Optional[RateType] = None

    def cache_key(self) -> str:
        return f"rates:{self.from_currency}:{self.to_currency}:{self.network_from}:{self.network_to}:{self.amount}"


class RateResponse(BaseModel):
    """One provider's normalized quote."""
    provider: str
    provider_name: str
    rate: float
    estimated_amount: float
    min_amount: float = 0.0
    max_amount: float = 0.0
    network_fee: float = 0.0
    provider_fee: float = 0.0
    platform_fee: float = 0.0
    total_fee: float = 0.0
    rate_type: RateType = RateType.FLOATING
    kyc_required: bool = True
    kyc_rating: Optional[str] = None
    eta_minutes: Optional[int] = None


class RatesResponse(BaseModel):
    """All quotes for one trade, best (highest estimated amount) first."""
    model_config = ConfigDict(populate_by_name=True)

    trade_id: Optional[str] = None
    from_currency: str = Field(alias="from")
    network_from: str
    to_currency: str = Field(alias="to")
    network_to: str
    amount: float
    rates: List[RateResponse] = []


class CreateSwapRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    trade_id: Optional[str] = None  # trade_id returned by /rates, links the swap to that quote
    from_currency: str = Field(alias="from")
    network_from: str
    to_currency: str = Field(alias="to")
    network_to: str
    amount: float
    provider: str
    recipient_address: str
    recipient_extra_id: Optional[str] = None
    refund_address: Optional[str] = None
    refund_extra_id: Optional[str] = None
    rate_type: RateType = RateType.FLOATING
    sandbox: bool = False


class CreateSwapResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    swap_id: str
    provider: str
    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    deposit_address: Optional[str] = None
    deposit_extra_id: Optional[str] = None
    deposit_amount: float
    recipient_address: str
    estimated_receive: float
    rate: float
    status: SwapStatus
    rate_type: RateType
    is_sandbox: bool
    expires_at: datetime
    created_at: datetime


@dataclass
class SyncResult:
    """Outcome of one reference-data sync run."""
    collection: str
    synced: int = 0
    failed: List[str] = field(default_factory=list)
    skipped: bool = False  # another process held the sync lock

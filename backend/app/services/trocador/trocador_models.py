"""
Trocador API data classes.

Trocador returns loosely typed JSON (numbers sometimes as strings, optional
fields missing). These classes take the raw dicts and coerce what we use.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    # "inf" and "nan" parse, but no field we read can hold them
    return number if math.isfinite(number) else default


@dataclass
class CurrencyDescriptor:
    """A coin/network pair offered upstream (`GET coins`)."""
    ticker: str
    name: str
    network: str
    memo: bool = False
    image: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "CurrencyDescriptor":
        ticker = data.get("ticker")
        network = data.get("network")
        if not ticker or not network:
            raise ValueError(f"coin entry without ticker/network: {data!r}")
        return cls(
            ticker=str(ticker),
            name=str(data.get("name") or ticker),
            network=str(network),
            memo=bool(data.get("memo", False)),
            image=data.get("image"),
            minimum=_to_float(data.get("minimum")),
            maximum=_to_float(data.get("maximum")),
        )


@dataclass
class ProviderDescriptor:
    """An exchange listed upstream (`GET exchanges`)."""
    name: str
    rating: Optional[str] = None
    insurance: Optional[float] = None
    eta: Optional[float] = None
    enabled_markup: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ProviderDescriptor":
        name = data.get("name")
        if not name:
            raise ValueError(f"exchange entry without name: {data!r}")
        return cls(
            name=str(name),
            rating=data.get("rating"),
            insurance=_to_float(data.get("insurance")),
            eta=_to_float(data.get("eta")),
            enabled_markup=bool(data.get("enabledmarkup", data.get("enabled_markup", False))),
        )


@dataclass
class UpstreamQuote:
    """One provider's quote inside a `new_rate` response."""
    provider: str
    amount_to: Optional[str] = None
    waste: Optional[str] = None
    kycrating: Optional[str] = None
    eta: Optional[float] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "UpstreamQuote":
        provider = data.get("provider")
        if not provider:
            raise ValueError(f"quote entry without provider: {data!r}")
        amount_to = data.get("amount_to")
        waste = data.get("waste")
        return cls(
            provider=str(provider),
            amount_to=None if amount_to is None else str(amount_to),
            waste=None if waste is None else str(waste),
            kycrating=data.get("kycrating"),
            eta=_to_float(data.get("eta")),
            min_amount=_to_float(data.get("min_amount")),
            max_amount=_to_float(data.get("max_amount")),
        )


@dataclass
class QuoteSet:
    """Parsed `new_rate` response."""
    trade_id: Optional[str]
    quotes: List[UpstreamQuote] = field(default_factory=list)


@dataclass
class TradeResult:
    """Parsed `new_trade` response."""
    trade_id: str
    provider: str
    status: str
    amount_to: float
    address_provider: Optional[str] = None
    address_provider_memo: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "TradeResult":
        return cls(
            trade_id=str(data.get("trade_id", "")),
            provider=str(data.get("provider", "")),
            status=str(data.get("status", "new")),
            amount_to=_to_float(data.get("amount_to"), 0.0),
            address_provider=data.get("address_provider"),
            address_provider_memo=data.get("address_provider_memo") or None,
        )

"""
Trocador HTTP client.

Thin wrapper over the Trocador REST API. Every failure is raised as a
TrocadorError tagged with an UpstreamErrorKind, so callers can tell rate
limiting apart from bad requests and outages without parsing messages.
"""
import enum
import logging
from typing import Any, Dict, List, Optional
import httpx
from app.services.trocador.trocador_models import (
    CurrencyDescriptor,
    ProviderDescriptor,
    UpstreamQuote,
    QuoteSet,
    TradeResult,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("429", "rate limit", "too many requests")
# Error-body texts that describe the request itself, not an upstream fault
INVALID_REQUEST_MARKERS = (
    "invalid",
    "not supported",
    "not available",
    "unsupported",
    "minimum",
    "maximum",
    "amount",
    "address",
    "pair",
    "missing",
    "required",
)


class UpstreamErrorKind(str, enum.Enum):
    RATE_LIMITED = "rate_limited"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


class TrocadorError(Exception):
    """Classified upstream failure."""

    def __init__(self, kind: UpstreamErrorKind, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code:
            return f"Trocador error ({self.status_code}): {self.message}"
        return f"Trocador error: {self.message}"


def classify_message(message: str) -> UpstreamErrorKind:
    """Fallback classification for errors that only carry text."""
    lowered = message.lower()
    if any(marker in lowered for marker in RATE_LIMIT_MARKERS):
        return UpstreamErrorKind.RATE_LIMITED
    return UpstreamErrorKind.UNAVAILABLE


class TrocadorClient:
    """Client for the Trocador aggregator API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://trocador.app/api",
        timeout: float = 30.0,
        http_client: Optional[httpx.Client] = None,
    ):
        """Initialize Trocador client.

        Args:
            api_key: Trocador API key (sent as the API-Key header)
            base_url: API root
            timeout: Per-request timeout in seconds
            http_client: Optional preconfigured httpx client (tests inject a MockTransport)
        """
        if not api_key:
            raise ValueError("Trocador API key not configured")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.http_client = http_client or httpx.Client(timeout=timeout, follow_redirects=True)

    def close(self):
        self.http_client.close()

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{endpoint}"
        headers = {"API-Key": self.api_key, "Accept": "application/json"}
        try:
            response = self.http_client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise TrocadorError(UpstreamErrorKind.UNAVAILABLE, f"timeout calling {endpoint}: {e}")
        except httpx.HTTPError as e:
            raise TrocadorError(UpstreamErrorKind.UNAVAILABLE, f"transport error calling {endpoint}: {e}")

        if response.status_code == 429:
            raise TrocadorError(UpstreamErrorKind.RATE_LIMITED, "Too Many Requests", 429)
        if 400 <= response.status_code < 500:
            raise TrocadorError(UpstreamErrorKind.INVALID, response.text[:500] or response.reason_phrase, response.status_code)
        if response.status_code >= 500:
            raise TrocadorError(UpstreamErrorKind.UNAVAILABLE, response.text[:500] or response.reason_phrase, response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise TrocadorError(UpstreamErrorKind.UNAVAILABLE, f"non-JSON response from {endpoint}")

        # Trocador reports some failures as 200 with an error body
        if isinstance(data, dict) and data.get("error"):
            message = str(data["error"])
            kind = classify_message(message)
            if kind != UpstreamErrorKind.RATE_LIMITED and any(
                marker in message.lower() for marker in INVALID_REQUEST_MARKERS
            ):
                kind = UpstreamErrorKind.INVALID
            raise TrocadorError(kind, message, response.status_code)
        return data

    def get_currencies(self) -> List[CurrencyDescriptor]:
        """Fetch all coins supported upstream."""
        data = self._get("coins")
        currencies = []
        for entry in data if isinstance(data, list) else []:
            try:
                currencies.append(CurrencyDescriptor.from_api(entry))
            except (ValueError, AttributeError) as e:
                logger.debug(f"Skipping coin entry: {e}")
        logger.info(f"Fetched {len(currencies)} currencies from Trocador")
        return currencies

    def get_providers(self) -> List[ProviderDescriptor]:
        """Fetch all exchanges listed upstream."""
        data = self._get("exchanges")
        entries = data.get("list", []) if isinstance(data, dict) else data
        providers = []
        for entry in entries or []:
            try:
                providers.append(ProviderDescriptor.from_api(entry))
            except (ValueError, AttributeError) as e:
                logger.debug(f"Skipping exchange entry: {e}")
        logger.info(f"Fetched {len(providers)} providers from Trocador")
        return providers

    def get_rates(
        self,
        ticker_from: str,
        network_from: str,
        ticker_to: str,
        network_to: str,
        amount: float,
    ) -> QuoteSet:
        """Request live quotes from every provider for one trade."""
        data = self._get("new_rate", {
            "ticker_from": ticker_from,
            "network_from": network_from,
            "ticker_to": ticker_to,
            "network_to": network_to,
            "amount_from": amount,
        })
        raw_quotes = data.get("quotes", []) if isinstance(data, dict) else []
        if isinstance(raw_quotes, dict):
            raw_quotes = raw_quotes.get("quotes", [])
        quotes = []
        for entry in raw_quotes or []:
            try:
                quotes.append(UpstreamQuote.from_api(entry))
            except (ValueError, AttributeError) as e:
                logger.debug(f"Skipping quote entry: {e}")
        trade_id = data.get("trade_id") if isinstance(data, dict) else None
        return QuoteSet(trade_id=trade_id, quotes=quotes)

    def create_trade(
        self,
        trade_id: Optional[str],
        ticker_from: str,
        network_from: str,
        ticker_to: str,
        network_to: str,
        amount: float,
        address: str,
        refund: Optional[str],
        provider: str,
        fixed: bool,
    ) -> TradeResult:
        """Create a trade with the chosen provider."""
        params = {
            "ticker_from": ticker_from,
            "network_from": network_from,
            "ticker_to": ticker_to,
            "network_to": network_to,
            "amount_from": amount,
            "address": address,
            "provider": provider,
            "fixed": str(fixed).lower(),
        }
        if trade_id:
            params["id"] = trade_id
        if refund:
            params["refund"] = refund
        data = self._get("new_trade", params)
        if not isinstance(data, dict):
            raise TrocadorError(UpstreamErrorKind.UNAVAILABLE, "unexpected new_trade response shape")
        return TradeResult.from_api(data)

"""
Live quote normalization.

Turns a Trocador QuoteSet into our RatesResponse:
- rate = estimated receive amount / requested amount
- total fee = upstream "waste" (0 when absent); no network or platform fee yet
- kyc_required unless the provider's KYC rating is "A"
- eta defaults to 15 minutes
- quotes sorted best first (highest estimated amount); ties keep upstream order
"""
from typing import List
from app.models.swap import RateType
from app.services.swap.swap_models import RatesQuery, RateResponse, RatesResponse
from app.services.trocador.trocador_models import QuoteSet, UpstreamQuote

BEST_KYC_RATING = "A"
DEFAULT_KYC_RATING = "D"
DEFAULT_ETA_MINUTES = 15


def _parse_amount(value) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def normalize_quote(quote: UpstreamQuote, query: RatesQuery) -> RateResponse:
    amount_to = _parse_amount(quote.amount_to)
    total_fee = _parse_amount(quote.waste)
    kyc_rating = quote.kycrating

    return RateResponse(
        provider=quote.provider,
        provider_name=quote.provider,
        rate=amount_to / query.amount if query.amount else 0.0,
        estimated_amount=amount_to,
        min_amount=quote.min_amount or 0.0,
        max_amount=quote.max_amount or 0.0,
        network_fee=0.0,
        provider_fee=total_fee,
        platform_fee=0.0,  # platform markup goes here once we charge one
        total_fee=total_fee,
        rate_type=query.rate_type or RateType.FLOATING,
        kyc_required=(kyc_rating or DEFAULT_KYC_RATING) != BEST_KYC_RATING,
        kyc_rating=kyc_rating,
        eta_minutes=int(quote.eta) if quote.eta is not None else DEFAULT_ETA_MINUTES,
    )


def build_rates_response(quote_set: QuoteSet, query: RatesQuery) -> RatesResponse:
    rates: List[RateResponse] = [normalize_quote(q, query) for q in quote_set.quotes]
    # sorted() is stable with reverse=True too
    rates = sorted(rates, key=lambda r: r.estimated_amount, reverse=True)
    return RatesResponse(
        trade_id=quote_set.trade_id,
        from_currency=query.from_currency,
        network_from=query.network_from,
        to_currency=query.to_currency,
        network_to=query.network_to,
        amount=query.amount,
        rates=rates,
    )

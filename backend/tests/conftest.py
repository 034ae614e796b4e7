"""
pytest configuration and fixtures

Everything runs in-process: SQLite in memory for the relational store,
fakeredis for the shared cache, a scripted fake for the Trocador client,
and injectable clocks/sleeps so no test waits on real time.
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import fakeredis
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add backend to sys.path
backend_root = Path(__file__).resolve().parent.parent
if str(backend_root) not in sys.path:
    sys.path.insert(0, str(backend_root))

from app.core.database import Base  # noqa: E402
import app.models  # noqa: E402,F401  registers tables on Base
from app.services.cache.redis_cache import RedisCache  # noqa: E402
from app.services.trocador.client import TrocadorError, UpstreamErrorKind  # noqa: E402
from app.services.trocador.trocador_models import (  # noqa: E402
    CurrencyDescriptor,
    ProviderDescriptor,
    QuoteSet,
    TradeResult,
    UpstreamQuote,
)


class FakeClock:
    """Settable UTC clock; also usable as a seconds clock via `.timestamp()`."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs):
        self.current = self.current + timedelta(**kwargs)

    def timestamp(self) -> float:
        return self.current.timestamp()


class RecordingSleep:
    """Stands in for time.sleep; records requested delays."""

    def __init__(self, clock: FakeClock = None):
        self.calls = []
        self.clock = clock

    def __call__(self, seconds: float):
        self.calls.append(seconds)
        if self.clock is not None:
            self.clock.advance(seconds=seconds)


class FakeTrocador:
    """Scripted stand-in for TrocadorClient.

    Each method returns its configured payload. `errors` holds exceptions to
    raise, consumed one per call, before the payload is returned.
    """

    def __init__(self):
        self.currencies = []
        self.providers = []
        self.quote_set = QuoteSet(trade_id=None, quotes=[])
        self.trade = None
        self.errors = []
        self.calls = []

    def _next(self, name):
        self.calls.append(name)
        if self.errors:
            raise self.errors.pop(0)

    def get_currencies(self):
        self._next("coins")
        return list(self.currencies)

    def get_providers(self):
        self._next("exchanges")
        return list(self.providers)

    def get_rates(self, ticker_from, network_from, ticker_to, network_to, amount):
        self._next("new_rate")
        return self.quote_set

    def create_trade(self, trade_id, ticker_from, network_from, ticker_to, network_to,
                     amount, address, refund, provider, fixed):
        self._next("new_trade")
        self.last_trade_args = dict(
            trade_id=trade_id, ticker_from=ticker_from, network_from=network_from,
            ticker_to=ticker_to, network_to=network_to, amount=amount,
            address=address, refund=refund, provider=provider, fixed=fixed,
        )
        return self.trade

    def close(self):
        pass


def rate_limited(message="Too Many Requests"):
    return TrocadorError(UpstreamErrorKind.RATE_LIMITED, message, 429)


def currency(ticker="btc", network="Mainnet", name=None, memo=False, minimum=None, maximum=None, image=None):
    return CurrencyDescriptor(
        ticker=ticker,
        name=name or ticker.upper(),
        network=network,
        memo=memo,
        image=image,
        minimum=minimum,
        maximum=maximum,
    )


def provider(name="ChangeNOW", rating="B", insurance=None, eta=10, enabled_markup=True):
    return ProviderDescriptor(
        name=name,
        rating=rating,
        insurance=insurance,
        eta=eta,
        enabled_markup=enabled_markup,
    )


def quote(provider_name, amount_to, waste=None, kycrating=None, eta=None):
    return UpstreamQuote(
        provider=provider_name,
        amount_to=amount_to,
        waste=waste,
        kycrating=kycrating,
        eta=eta,
    )


def trade(trade_id="T-1", provider_name="ChangeNOW", status="new", amount_to=20.0,
          address="deposit-addr", memo=None):
    return TradeResult(
        trade_id=trade_id,
        provider=provider_name,
        status=status,
        amount_to=amount_to,
        address_provider=address,
        address_provider_memo=memo,
    )


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def upstream():
    return FakeTrocador()

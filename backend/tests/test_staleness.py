"""
StalenessGate decisions over the relational store.
"""
from datetime import timedelta

from app.services.swap.reference_store import Collection, upsert_currency, upsert_provider
from app.services.swap.staleness import StalenessGate

from conftest import currency, provider


class TestNeedsRefresh:
    def test_empty_collection_needs_refresh(self, db, clock):
        gate = StalenessGate(now=clock)
        assert gate.needs_refresh(db, Collection.CURRENCIES) is True
        assert gate.needs_refresh(db, Collection.PROVIDERS) is True

    def test_recent_sync_is_fresh(self, db, clock):
        upsert_currency(db, currency(), clock())
        clock.advance(minutes=2)
        assert StalenessGate(now=clock).needs_refresh(db, Collection.CURRENCIES) is False

    def test_old_sync_is_stale(self, db, clock):
        upsert_currency(db, currency(), clock())
        clock.advance(minutes=6)
        assert StalenessGate(now=clock).needs_refresh(db, Collection.CURRENCIES) is True

    def test_exactly_at_window_is_fresh(self, db, clock):
        upsert_currency(db, currency(), clock())
        clock.advance(minutes=5)
        assert StalenessGate(now=clock).needs_refresh(db, Collection.CURRENCIES) is False

    def test_uses_most_recent_row(self, db, clock):
        upsert_currency(db, currency("btc"), clock())
        clock.advance(minutes=10)
        upsert_currency(db, currency("eth", "ERC20"), clock())
        clock.advance(minutes=1)
        assert StalenessGate(now=clock).needs_refresh(db, Collection.CURRENCIES) is False

    def test_collections_are_tracked_separately(self, db, clock):
        upsert_provider(db, provider(), clock())
        gate = StalenessGate(now=clock)
        assert gate.needs_refresh(db, Collection.PROVIDERS) is False
        assert gate.needs_refresh(db, Collection.CURRENCIES) is True

    def test_custom_window(self, db, clock):
        upsert_provider(db, provider(), clock())
        clock.advance(seconds=61)
        gate = StalenessGate({Collection.PROVIDERS: timedelta(seconds=60)}, now=clock)
        assert gate.needs_refresh(db, Collection.PROVIDERS) is True

    def test_accepts_collection_name(self, db, clock):
        assert StalenessGate(now=clock).needs_refresh(db, "currencies") is True

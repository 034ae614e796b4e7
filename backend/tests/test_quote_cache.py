"""
QuoteCache: cache-aside for live rates.
"""
import json

import pytest
import redis

from app.core.errors import UpstreamUnavailable
from app.services.cache.redis_cache import RedisCache
from app.services.swap.quote_cache import QuoteCache
from app.services.swap.swap_models import RatesQuery, RatesResponse, RateResponse


class BrokenRedis:
    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise redis.ConnectionError("connection refused")
        return fail


@pytest.fixture
def query():
    return RatesQuery(**{"from": "btc", "to": "eth", "network_from": "Mainnet", "network_to": "ERC20", "amount": 1.0})


def make_response(query, estimated=15.0):
    return RatesResponse(
        trade_id="t-1",
        from_currency=query.from_currency,
        network_from=query.network_from,
        to_currency=query.to_currency,
        network_to=query.network_to,
        amount=query.amount,
        rates=[RateResponse(provider="P", provider_name="P", rate=estimated, estimated_amount=estimated)],
    )


class Fetcher:
    def __init__(self, response):
        self.response = response
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class TestGetOrFetch:
    def test_key_format(self, query):
        assert query.cache_key() == "rates:btc:eth:Mainnet:ERC20:1.0"

    def test_miss_fetches_and_stores(self, cache, redis_client, query):
        fetch = Fetcher(make_response(query))
        result = QuoteCache(cache, ttl_seconds=30).get_or_fetch(query, fetch)
        assert fetch.calls == 1
        assert result.rates[0].estimated_amount == 15.0
        stored = json.loads(redis_client.get(query.cache_key()))
        assert stored["from"] == "btc"
        assert 0 < redis_client.ttl(query.cache_key()) <= 30

    def test_hit_skips_fetch(self, cache, query):
        quote_cache = QuoteCache(cache, ttl_seconds=30)
        quote_cache.get_or_fetch(query, Fetcher(make_response(query)))
        second = Fetcher(make_response(query, estimated=99.0))
        result = quote_cache.get_or_fetch(query, second)
        assert second.calls == 0
        assert result.rates[0].estimated_amount == 15.0

    def test_expired_entry_refetches(self, cache, redis_client, query):
        quote_cache = QuoteCache(cache, ttl_seconds=30)
        quote_cache.get_or_fetch(query, Fetcher(make_response(query)))
        redis_client.delete(query.cache_key())
        second = Fetcher(make_response(query, estimated=16.0))
        assert quote_cache.get_or_fetch(query, second).rates[0].estimated_amount == 16.0
        assert second.calls == 1

    def test_different_amounts_are_different_entries(self, cache, query):
        quote_cache = QuoteCache(cache)
        quote_cache.get_or_fetch(query, Fetcher(make_response(query)))
        other = query.model_copy(update={"amount": 2.0})
        fetch = Fetcher(make_response(other))
        quote_cache.get_or_fetch(other, fetch)
        assert fetch.calls == 1

    def test_fetch_error_propagates_and_is_not_cached(self, cache, redis_client, query):
        with pytest.raises(UpstreamUnavailable):
            QuoteCache(cache).get_or_fetch(query, Fetcher(UpstreamUnavailable("down")))
        assert redis_client.get(query.cache_key()) is None

    def test_corrupt_entry_is_a_miss(self, cache, redis_client, query):
        redis_client.set(query.cache_key(), "{not json")
        fetch = Fetcher(make_response(query))
        QuoteCache(cache).get_or_fetch(query, fetch)
        assert fetch.calls == 1

    def test_wrong_shape_entry_is_a_miss(self, cache, redis_client, query):
        redis_client.set(query.cache_key(), json.dumps({"unexpected": True}))
        fetch = Fetcher(make_response(query))
        QuoteCache(cache).get_or_fetch(query, fetch)
        assert fetch.calls == 1

    def test_store_down_falls_through_to_fetch(self, query):
        fetch = Fetcher(make_response(query))
        result = QuoteCache(RedisCache(BrokenRedis())).get_or_fetch(query, fetch)
        assert fetch.calls == 1
        assert result.trade_id == "t-1"

    def test_no_cache_configured(self, query):
        fetch = Fetcher(make_response(query))
        QuoteCache(None).get_or_fetch(query, fetch)
        QuoteCache(None).get_or_fetch(query, fetch)
        assert fetch.calls == 2

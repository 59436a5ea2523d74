from decimal import Decimal

import pytest
import requests

from fintrack import currency
from fintrack.currency import FALLBACK_RATES, RateCache, fetch_usd_rates
from fintrack.errors import RateFetchFailure

RATES = {"usd": 1.0, "eur": 0.92, "inr": 83.0, "gbp": 0.79}


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeFetch:
    def __init__(self, table=None, fail=False):
        self.table = table or RATES
        self.fail = fail
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.fail:
            raise RateFetchFailure("offline")
        return self.table


def test_rates_cached_within_ttl():
    fetch, clock = FakeFetch(), FakeClock()
    cache = RateCache(fetch=fetch, ttl_seconds=60, clock=clock)

    assert cache.get_rates()["eur"] == 0.92
    clock.now += 59
    cache.get_rates()
    assert fetch.calls == 1

    clock.now += 1
    cache.get_rates()
    assert fetch.calls == 2


def test_refresh_swaps_in_a_new_snapshot():
    fetch, clock = FakeFetch(), FakeClock()
    cache = RateCache(fetch=fetch, ttl_seconds=60, clock=clock)
    cache.get_rates()
    first = cache.snapshot

    fetch.table = {"usd": 1.0, "eur": 0.5}
    clock.now += 120
    assert cache.get_rates()["eur"] == 0.5
    assert cache.snapshot is not first
    assert first.table["eur"] == 0.92


def test_failed_refresh_serves_stale_rates():
    fetch, clock = FakeFetch(), FakeClock()
    cache = RateCache(fetch=fetch, ttl_seconds=60, clock=clock)
    cache.get_rates()

    fetch.fail = True
    clock.now += 3600
    assert cache.get_rates()["eur"] == 0.92
    assert fetch.calls == 2


def test_failed_first_fetch_serves_fallback():
    cache = RateCache(fetch=FakeFetch(fail=True), clock=FakeClock())
    assert cache.get_rates() == FALLBACK_RATES
    assert cache.snapshot is None


def test_convert_round_trip():
    cache = RateCache(fetch=FakeFetch(), clock=FakeClock())
    eur = cache.convert(100, "USD", "EUR")
    assert eur == Decimal("92.00")
    back = cache.convert(eur, "EUR", "USD")
    assert abs(back - Decimal("100")) < Decimal("1e-6")


def test_convert_between_non_usd_currencies():
    cache = RateCache(fetch=FakeFetch(), clock=FakeClock())
    assert cache.convert(83, "inr", "eur") == Decimal("0.92")


def test_convert_same_or_missing_code_returns_amount():
    fetch = FakeFetch()
    cache = RateCache(fetch=fetch, clock=FakeClock())
    assert cache.convert("12.50", "USD", "usd") == Decimal("12.50")
    assert cache.convert(12, None, "EUR") == Decimal("12")
    assert cache.convert(12, "USD", "") == Decimal("12")
    assert fetch.calls == 0


def test_convert_unusable_amount_comes_back_unchanged():
    cache = RateCache(fetch=FakeFetch(), clock=FakeClock())
    assert cache.convert("abc", "USD", "EUR") == "abc"
    assert cache.convert(None, "USD", "EUR") is None
    assert cache.convert("NaN", "USD", "EUR") == "NaN"


def test_unknown_currency_uses_rate_of_one():
    cache = RateCache(fetch=FakeFetch(), clock=FakeClock())
    assert cache.convert(10, "XYZ", "EUR") == Decimal("9.2")
    assert cache.convert(10, "USD", "XYZ") == Decimal("10")


def test_convert_never_raises_when_offline():
    cache = RateCache(fetch=FakeFetch(fail=True), clock=FakeClock())
    assert cache.convert(100, "USD", "INR") == Decimal("8300")


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def test_fetch_usd_rates_parses_payload(monkeypatch):
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        return FakeResponse({"date": "2024-01-05", "usd": {"EUR": 0.92, "inr": 83, "note": "x"}})

    monkeypatch.setattr(currency.requests, "get", fake_get)
    assert fetch_usd_rates("http://rates.test/usd.json") == {"eur": 0.92, "inr": 83.0}
    assert seen["url"] == "http://rates.test/usd.json"


@pytest.mark.parametrize("response", [
    FakeResponse({"date": "2024-01-05"}),
    FakeResponse({"usd": {}}),
    FakeResponse({"usd": {"eur": "n/a"}}),
    FakeResponse(ValueError("not json")),
    FakeResponse({}, status=503),
])
def test_fetch_usd_rates_rejects_bad_responses(monkeypatch, response):
    monkeypatch.setattr(currency.requests, "get", lambda url, timeout: response)
    with pytest.raises(RateFetchFailure):
        fetch_usd_rates("http://rates.test/usd.json")


def test_fetch_usd_rates_wraps_network_errors(monkeypatch):
    def boom(url, timeout):
        raise requests.ConnectionError("no route")

    monkeypatch.setattr(currency.requests, "get", boom)
    with pytest.raises(RateFetchFailure, match="no route"):
        fetch_usd_rates("http://rates.test/usd.json")


def test_failed_refresh_waits_before_retrying():
    fetch, clock = FakeFetch(fail=True), FakeClock()
    cache = RateCache(fetch=fetch, ttl_seconds=60, retry_seconds=300, clock=clock)

    for _ in range(5):
        assert cache.get_rates() == FALLBACK_RATES
    assert fetch.calls == 1

    clock.now += 300
    fetch.fail = False
    assert cache.get_rates()["eur"] == 0.92
    assert fetch.calls == 2


def test_stale_rates_served_without_refetch_after_failure():
    fetch, clock = FakeFetch(), FakeClock()
    cache = RateCache(fetch=fetch, ttl_seconds=60, retry_seconds=300, clock=clock)
    cache.get_rates()

    fetch.fail = True
    clock.now += 120
    cache.get_rates()
    clock.now += 10
    assert cache.get_rates()["eur"] == 0.92
    assert fetch.calls == 2


def test_unexpected_fetch_error_serves_fallback():
    def explode():
        raise OverflowError("int too large to convert to float")

    cache = RateCache(fetch=explode, clock=FakeClock())
    assert cache.get_rates() == FALLBACK_RATES
    assert cache.convert(10, "USD", "EUR") == Decimal("9.2")


def test_fetch_usd_rates_skips_unusable_rates(monkeypatch):
    payload = {"usd": {"eur": 0.9, "btc": 10 ** 400, "xau": float("inf"), "zzz": 0}}
    monkeypatch.setattr(currency.requests, "get", lambda url, timeout: FakeResponse(payload))
    assert fetch_usd_rates("http://rates.test/usd.json") == {"eur": 0.9}


def test_convert_with_huge_rate_in_payload(monkeypatch):
    payload = {"usd": {"eur": 0.5, "btc": 10 ** 400}}
    monkeypatch.setattr(currency.requests, "get", lambda url, timeout: FakeResponse(payload))
    cache = RateCache(fetch=lambda: fetch_usd_rates("http://rates.test/usd.json"), clock=FakeClock())
    assert cache.convert("10", "USD", "EUR") == Decimal("5")

"""USD-based exchange-rate cache and currency conversion.

A ``RateCache`` owns one immutable ``RateSnapshot`` at a time. Refreshing
builds a complete new snapshot and swaps it in with a single assignment, so
concurrent readers see either the old table or the new one, never a mix.
Two callers racing past an expired TTL both fetch, and the last one wins.
"""

import math
import time
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Callable

import requests

from fintrack.errors import RateFetchFailure
from fintrack.logging_setup import get_logger
from fintrack.settings import DEFAULT_RATE_SOURCE_URL

logger = get_logger("fintrack.currency")

DEFAULT_TTL_SECONDS = 12 * 3600
DEFAULT_RETRY_SECONDS = 15 * 60
FETCH_TIMEOUT_SECONDS = 10

# 1 USD = rate units of each currency
FALLBACK_RATES = {
    "usd": 1.0,
    "inr": 83.0,
    "eur": 0.92,
    "gbp": 0.79,
    "jpy": 150.0,
}


@dataclass(frozen=True)
class RateSnapshot:
    table: dict[str, float] = field(default_factory=dict)
    fetched_at: float = 0.0


def fetch_usd_rates(url: str = DEFAULT_RATE_SOURCE_URL, timeout: float = FETCH_TIMEOUT_SECONDS) -> dict[str, float]:
    """GET the rate table keyed by USD. Raises RateFetchFailure on any network or payload error."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise RateFetchFailure(f"Could not fetch rates from {url}: {exc}") from exc

    usd = payload.get("usd") if isinstance(payload, dict) else None
    if not isinstance(usd, dict) or not usd:
        raise RateFetchFailure("Rate payload has no 'usd' table")

    table: dict[str, float] = {}
    for code, rate in usd.items():
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            continue
        try:
            value = float(rate)
        except OverflowError:
            continue
        if not math.isfinite(value) or value <= 0:
            continue
        table[str(code).lower()] = value
    if not table:
        raise RateFetchFailure("Rate payload has no numeric rates")
    return table


class RateCache:
    def __init__(
        self,
        fetch: Callable[[], dict[str, float]] | None = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        retry_seconds: float = DEFAULT_RETRY_SECONDS,
        clock: Callable[[], float] = time.time,
        fallback: dict[str, float] | None = None,
    ):
        self._fetch = fetch or fetch_usd_rates
        self.ttl_seconds = ttl_seconds
        self.retry_seconds = retry_seconds
        self._clock = clock
        self._fallback = dict(fallback or FALLBACK_RATES)
        self._snapshot: RateSnapshot | None = None
        self._failed_at: float | None = None

    @property
    def snapshot(self) -> RateSnapshot | None:
        return self._snapshot

    def get_rates(self) -> dict[str, float]:
        """Return the cached table, refetching once it is older than the TTL. Never raises.

        After a failed refresh the stale (or fallback) table is served without
        another fetch until ``retry_seconds`` have passed.
        """
        now = self._clock()
        snapshot = self._snapshot
        if snapshot is not None and now - snapshot.fetched_at < self.ttl_seconds:
            return snapshot.table
        if self._failed_at is not None and now - self._failed_at < self.retry_seconds:
            return snapshot.table if snapshot else dict(self._fallback)

        try:
            table = dict(self._fetch())
        except Exception as exc:
            # injected fetchers can raise anything
            self._failed_at = now
            logger.warning("Exchange rate refresh failed, serving %s rates: %s",
                           "stale" if snapshot else "fallback", exc)
            return snapshot.table if snapshot else dict(self._fallback)

        self._failed_at = None
        self._snapshot = RateSnapshot(table=table, fetched_at=now)
        logger.info("Fetched %d exchange rates", len(table))
        return self._snapshot.table

    def convert(self, amount, from_code: str | None, to_code: str | None):
        """Convert through USD. Unusable input comes back unchanged."""
        try:
            value = Decimal(str(amount).strip())
        except (InvalidOperation, ValueError):
            return amount
        if not value.is_finite():
            return amount
        if not from_code or not to_code or from_code.upper() == to_code.upper():
            return value

        rates = self.get_rates()
        from_rate = rates.get(from_code.lower()) or 1
        to_rate = rates.get(to_code.lower()) or 1
        if not (math.isfinite(from_rate) and math.isfinite(to_rate)):
            return value

        try:
            result = (value / Decimal(str(from_rate))) * Decimal(str(to_rate))
        except ArithmeticError:
            return value
        return result if result.is_finite() else value

"""
Shared fixtures: a controllable clock, rate tables over the default registry,
and a scripted rate source.
"""

import asyncio
from decimal import Decimal

import pytest

from domain.models.currency import RateTable
from domain.registry import CurrencyRegistry
from infrastructure.providers.static import DEFAULT_USD_RATES

T0 = 1_700_000_000_000  # epoch millis used as "now" across tests


class FakeClock:
    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class ScriptedRateSource:
    """Returns (or raises) queued results in order. ``gate`` holds fetches open until set."""

    name = 'scripted'

    def __init__(self, default: RateTable | None = None):
        self.results: list[RateTable | Exception] = []
        self.default = default
        self.calls = 0
        self.entered = asyncio.Event()
        self.gate: asyncio.Event | None = None
        self.closed = False

    async def fetch(self) -> RateTable:
        self.calls += 1
        self.entered.set()
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if self.results else self.default
        if isinstance(result, Exception):
            raise result
        return result

    async def close(self) -> None:
        self.closed = True


def build_table(
    rates: dict | None = None,
    fetched_at: int = T0,
    fetch_started_at: int | None = None,
    source: str = 'scripted',
    base_code: str = 'USD',
) -> RateTable:
    return RateTable(
        base_code=base_code,
        rates=rates or DEFAULT_USD_RATES,
        fetched_at=fetched_at,
        fetch_started_at=fetched_at if fetch_started_at is None else fetch_started_at,
        source=source,
    )


@pytest.fixture
def registry():
    return CurrencyRegistry()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_table():
    return build_table


@pytest.fixture
def usd_table():
    return build_table()


@pytest.fixture
def rate_source(usd_table):
    return ScriptedRateSource(default=usd_table)

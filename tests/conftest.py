"""Shared fixtures and in-memory collaborators for the test suite."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Sequence

import pytest

from trading_pacer.data.models import Candle
from trading_pacer.data.provider_base import CandleProvider, TimeProvider


def make_candles(rows: Sequence[tuple[float, float, float]]) -> List[Candle]:
    """Build candles from (high, low, close) triples."""

    return [Candle(open=close, high=high, low=low, close=close) for high, low, close in rows]


class StubProvider(CandleProvider):
    """Candle provider serving canned series or raising canned errors per symbol."""

    def __init__(self, series: Dict[str, Sequence[Candle] | Exception]) -> None:
        self.series = series
        self.calls: list[tuple[str, str, int]] = []

    def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        self.calls.append((symbol, interval, limit))
        payload = self.series[symbol]
        if isinstance(payload, Exception):
            raise payload
        return list(payload)


class FixedTimeProvider(TimeProvider):
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


@pytest.fixture
def rising_candles() -> List[Candle]:
    return make_candles([(100 + i, 95 + i, 98 + i) for i in range(1, 21)])


@pytest.fixture
def fixed_time() -> FixedTimeProvider:
    return FixedTimeProvider(datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc))

"""Candle providers: Binance klines parsing and the synthetic provider."""

from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from trading_pacer.config.models import ExchangeConfig
from trading_pacer.data.providers import (
    BinanceCandleProvider,
    MockCandleProvider,
    parse_minutes,
    to_pair,
)

KLINE_ROWS = [
    [1767614400000, "97000.0", "97500.5", "96800.0", "97250.25", "123.4", 1767617999999, "0", 10],
    [1767618000000, "97250.25", "98000.0", "97100.0", "97900.0", "150.0", 1767621599999, "0", 12],
]


def _provider(handler) -> BinanceCandleProvider:
    config = ExchangeConfig(base_url="https://api.binance.test", retry_attempts=1)
    client = httpx.Client(base_url=config.base_url, transport=httpx.MockTransport(handler))
    return BinanceCandleProvider(config, client=client)


def test_to_pair_maps_known_and_unknown_symbols() -> None:
    """Known assets map to their pair, others get the quote asset appended."""

    assert to_pair("BTC") == "BTCUSDT"
    assert to_pair("sol") == "SOLUSDT"
    assert to_pair("DOGE") == "DOGEUSDT"
    assert to_pair("ETHUSDT") == "ETHUSDT"


def test_fetch_candles_parses_klines() -> None:
    """Kline rows become float candles with UTC timestamps."""

    seen: dict[str, str] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        seen["path"] = request.url.path
        return httpx.Response(200, json=KLINE_ROWS)

    with _provider(handler) as provider:
        candles = provider.fetch_candles("BTC", "1h", 150)

    assert seen == {"symbol": "BTCUSDT", "interval": "1h", "limit": "150", "path": "/api/v3/klines"}
    assert len(candles) == 2
    first = candles[0]
    assert (first.open, first.high, first.low, first.close, first.volume) == (
        97000.0,
        97500.5,
        96800.0,
        97250.25,
        123.4,
    )
    assert first.timestamp == datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)


def test_fetch_candles_raises_on_http_error() -> None:
    """Server errors surface as httpx errors."""

    provider = _provider(lambda request: httpx.Response(500, json={"msg": "boom"}))
    with pytest.raises(httpx.HTTPStatusError):
        provider.fetch_candles("ETH", "1h", 10)


@pytest.mark.parametrize("payload", [{"code": -1121, "msg": "Invalid symbol."}, [[1, "2"]]])
def test_fetch_candles_rejects_malformed_payloads(payload: object) -> None:
    """Unexpected shapes raise ValueError instead of yielding bad candles."""

    provider = _provider(lambda request: httpx.Response(200, json=payload))
    with pytest.raises(ValueError):
        provider.fetch_candles("ETH", "1h", 10)


def test_mock_provider_is_deterministic_with_seed(fixed_time) -> None:
    """Seeded synthetic candles repeat exactly and are spaced by the interval."""

    first = MockCandleProvider(time_provider=fixed_time, seed=7).fetch_candles("BTC", "1h", 30)
    second = MockCandleProvider(time_provider=fixed_time, seed=7).fetch_candles("BTC", "1h", 30)

    assert first == second
    assert len(first) == 30
    assert first[-1].timestamp == fixed_time.now()
    assert (first[1].timestamp - first[0].timestamp).total_seconds() == 3600
    assert all(c.low <= c.close <= c.high for c in first)


def test_parse_minutes() -> None:
    """Interval labels convert to minutes."""

    assert parse_minutes("15m") == 15
    assert parse_minutes("1h") == 60
    assert parse_minutes("4h") == 240
    assert parse_minutes("1d") == 1440

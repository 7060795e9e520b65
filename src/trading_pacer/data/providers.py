"""Candle sources: Binance public REST klines and a synthetic offline provider."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import Any, List

import httpx
from tenacity import Retrying, stop_after_attempt, wait_exponential

from trading_pacer.config.models import ExchangeConfig

from .models import Candle
from .provider_base import CandleProvider, TimeProvider

# Map our asset symbols to Binance trading pairs
SYMBOL_MAP = {
    "BTC": "BTCUSDT",
    "ETH": "ETHUSDT",
    "SOL": "SOLUSDT",
    "BNB": "BNBUSDT",
}

QUOTE_ASSET = "USDT"


class SystemTimeProvider(TimeProvider):
    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)


def to_pair(symbol: str) -> str:
    symbol = symbol.upper()
    if symbol in SYMBOL_MAP:
        return SYMBOL_MAP[symbol]
    if symbol.endswith(QUOTE_ASSET):
        return symbol
    return f"{symbol}{QUOTE_ASSET}"


class BinanceCandleProvider(CandleProvider):
    """Retrieve OHLCV candles from the Binance public klines endpoint."""

    def __init__(
        self,
        config: ExchangeConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config or ExchangeConfig()
        self._client = client or httpx.Client(
            base_url=self._config.base_url, timeout=self._config.timeout_seconds
        )

    def _retrying(self) -> Retrying:
        return Retrying(
            wait=wait_exponential(multiplier=1, min=1, max=8),
            stop=stop_after_attempt(max(self._config.retry_attempts, 1)),
            reraise=True,
        )

    def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        params = {"symbol": to_pair(symbol), "interval": interval, "limit": limit}
        for attempt in self._retrying():
            with attempt:
                response = self._client.get("/api/v3/klines", params=params)
                response.raise_for_status()
                raw = response.json()
        if not isinstance(raw, list):
            raise ValueError(f"Unexpected klines payload for {symbol}: {type(raw).__name__}")
        return [self._parse_kline(row) for row in raw]

    @staticmethod
    def _parse_kline(row: Any) -> Candle:
        if not isinstance(row, (list, tuple)) or len(row) < 6:
            raise ValueError(f"Malformed kline row: {row!r}")
        return Candle(
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
            timestamp=datetime.fromtimestamp(row[0] / 1000, tz=timezone.utc),
        )

    def close(self) -> None:
        self._client.close()


class MockCandleProvider(CandleProvider):
    """Simple provider that synthesizes candles for testing and offline runs."""

    def __init__(
        self,
        time_provider: TimeProvider | None = None,
        seed: int | None = None,
        start_price: float = 60000.0,
        swing: float = 0.01,
    ) -> None:
        self._time = time_provider or SystemTimeProvider()
        self._random = random.Random(seed)
        self._start_price = start_price
        self._swing = swing

    def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        now = self._time.now()
        minutes = parse_minutes(interval)
        candles: list[Candle] = []
        price = self._start_price
        for i in reversed(range(limit)):
            ts = now - timedelta(minutes=minutes * i)
            spread = price * self._swing
            open_price = price + self._random.uniform(-spread, spread)
            high = open_price + self._random.uniform(0, spread)
            low = open_price - self._random.uniform(0, spread)
            close = self._random.uniform(low, high)
            volume = self._random.uniform(10, 1000)
            price = close
            candles.append(
                Candle(
                    open=open_price,
                    high=high,
                    low=low,
                    close=close,
                    volume=volume,
                    timestamp=ts,
                )
            )
        return candles


def parse_minutes(label: str) -> int:
    unit = label[-1]
    value = int(label[:-1])
    multiplier = {"m": 1, "h": 60, "d": 1440}[unit]
    return value * multiplier

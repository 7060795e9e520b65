"""Technical indicators over price and candle histories.

Every function is pure: inputs are ordered oldest first and are never
mutated, and an indicator without enough history returns ``None`` rather
than raising.
"""

from __future__ import annotations

from typing import List, Sequence

import pandas as pd

from trading_pacer.data.models import Candle, closes

from .models import IndicatorBundle, MacdResult, PivotLevels

EMA_WINDOWS = (20, 50, 100, 200)
RSI_PERIOD = 14
ATR_PERIOD = 14


def _as_floats(series: Sequence[float]) -> List[float]:
    return [float(value) for value in series]


def _ema_path(values: Sequence[float], period: int) -> List[float]:
    """EMA value after each element, starting at index ``period - 1``.

    ``path[j]`` is exactly what ``ema(values[: period + j], period)`` returns.
    """
    if period <= 0 or len(values) < period:
        return []

    k = 2.0 / (period + 1)
    current = sum(values[:period]) / period
    path = [current]
    for price in values[period:]:
        current = (price * k) + (current * (1 - k))
        path.append(current)
    return path


def ema(series: Sequence[float], period: int) -> float | None:
    """Exponential moving average seeded with the SMA of the first ``period`` values."""
    path = _ema_path(_as_floats(series), period)
    return path[-1] if path else None


def rsi(series: Sequence[float], period: int = RSI_PERIOD) -> float | None:
    """Relative strength index from plain trailing averages of gains and losses.

    This is not Wilder's smoothing: only the last ``period`` changes count,
    each with equal weight.
    """
    if len(series) < period + 1:
        return None

    delta = pd.Series(_as_floats(series), dtype="float64").diff().iloc[1:]
    gains = delta.clip(lower=0)
    losses = -delta.clip(upper=0)

    avg_gain = float(gains.tail(period).sum()) / period
    avg_loss = float(losses.tail(period).sum()) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(
    series: Sequence[float], fast: int = 12, slow: int = 26, signal: int = 9
) -> MacdResult | None:
    values = _as_floats(series)
    if len(values) < slow:
        return None

    fast_path = _ema_path(values, fast)
    slow_path = _ema_path(values, slow)

    # MACD line at every prefix length from ``slow`` up to the full series
    macd_values = [
        fast_path[length - fast] - slow_path[length - slow]
        for length in range(slow, len(values) + 1)
        if length >= fast
    ]
    if len(macd_values) < signal:
        return None

    signal_line = ema(macd_values, signal)
    if signal_line is None:
        return None
    current = macd_values[-1]
    return MacdResult(macd=current, signal=signal_line, histogram=current - signal_line)


def true_ranges(candles: Sequence[Candle]) -> List[float]:
    if len(candles) < 2:
        return []

    df = pd.DataFrame(
        [
            {"high": float(c.high), "low": float(c.low), "close": float(c.close)}
            for c in candles
        ]
    )
    prev_close = df["close"].shift(1)
    ranges = pd.concat(
        [
            df["high"] - df["low"],
            (df["high"] - prev_close).abs(),
            (df["low"] - prev_close).abs(),
        ],
        axis=1,
    ).max(axis=1, skipna=False)
    return [float(value) for value in ranges.iloc[1:]]


def atr(candles: Sequence[Candle], period: int = ATR_PERIOD) -> float | None:
    """Average true range: EMA of the true range over consecutive candle pairs."""
    if len(candles) < period + 1:
        return None
    return ema(true_ranges(candles), period)


def pivot_points(high: float, low: float, close: float) -> PivotLevels:
    high, low, close = float(high), float(low), float(close)
    pp = (high + low + close) / 3.0
    return PivotLevels(
        pp=pp,
        r1=(2 * pp) - low,
        r2=pp + (high - low),
        s1=(2 * pp) - high,
        s2=pp - (high - low),
    )


def calculate_all(
    series: Sequence[float],
    high: float | None = None,
    low: float | None = None,
    candles: Sequence[Candle] | None = None,
) -> IndicatorBundle:
    values = _as_floats(series)
    ema_values = {f"ema_{window}": ema(values, window) for window in EMA_WINDOWS}
    pivots = None
    if high is not None and low is not None and values:
        pivots = pivot_points(high, low, values[-1])
    return IndicatorBundle(
        **ema_values,
        rsi_14=rsi(values, RSI_PERIOD),
        macd=macd(values),
        pivot_points=pivots,
        atr_14=atr(candles, ATR_PERIOD) if candles is not None else None,
    )


def bundle_from_candles(candles: Sequence[Candle], range_window: int = 24) -> IndicatorBundle:
    """Indicators for a candle history, with pivots from the last ``range_window`` candles."""
    if not candles:
        return IndicatorBundle()
    recent = candles[-range_window:]
    return calculate_all(
        closes(candles),
        high=max(c.high for c in recent),
        low=min(c.low for c in recent),
        candles=candles,
    )

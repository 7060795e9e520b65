from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

RSI_OVERSOLD = 30.0
RSI_OVERBOUGHT = 70.0


@dataclass(frozen=True, slots=True)
class MacdResult:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True, slots=True)
class PivotLevels:
    pp: float
    r1: float
    r2: float
    s1: float
    s2: float


@dataclass(slots=True)
class IndicatorBundle:
    """Standard indicator set for one price history; ``None`` means not enough data."""

    ema_20: float | None = None
    ema_50: float | None = None
    ema_100: float | None = None
    ema_200: float | None = None
    rsi_14: float | None = None
    macd: MacdResult | None = None
    pivot_points: PivotLevels | None = None
    atr_14: float | None = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def rsi_signal(self) -> str | None:
        """``oversold`` at or below 30, ``overbought`` at or above 70, else ``neutral``."""
        if self.rsi_14 is None:
            return None
        if self.rsi_14 <= RSI_OVERSOLD:
            return "oversold"
        if self.rsi_14 >= RSI_OVERBOUGHT:
            return "overbought"
        return "neutral"

    def macd_signal(self) -> str | None:
        if self.macd is None:
            return None
        return "bullish" if self.macd.histogram > 0 else "bearish"

    def above_ema(self, price: float, period: int) -> bool | None:
        """Whether ``price`` trades above the EMA of ``period``; ``None`` when that EMA is missing."""
        value = getattr(self, f"ema_{period}", None)
        if value is None:
            return None
        return price > value

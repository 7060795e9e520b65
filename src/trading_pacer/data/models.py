from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence


@dataclass(slots=True)
class Candle:
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    timestamp: datetime | None = None


@dataclass(slots=True)
class FetchOutcome:
    """Result of one candle fetch: either candles or the error that stopped it."""

    symbol: str
    candles: Sequence[Candle] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def latest(self) -> Candle:
        return self.candles[-1]


def closes(candles: Sequence[Candle]) -> List[float]:
    return [float(candle.close) for candle in candles]

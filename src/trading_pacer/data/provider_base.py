from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from .models import Candle


class CandleProvider(ABC):
    @abstractmethod
    def fetch_candles(self, symbol: str, interval: str, limit: int) -> List[Candle]:
        """Return up to ``limit`` candles, oldest first; raise on transport or parse errors."""
        raise NotImplementedError

    def close(self) -> None:
        return None

    def __enter__(self) -> "CandleProvider":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class TimeProvider(ABC):
    @abstractmethod
    def now(self) -> datetime:
        raise NotImplementedError

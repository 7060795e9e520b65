from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Sequence

from trading_pacer.volatility.models import Thresholds


@dataclass(slots=True)
class ExchangeConfig:
    base_url: str = "https://api.binance.com"
    timeout_seconds: float = 10.0
    retry_attempts: int = 3


@dataclass(slots=True)
class DataConfig:
    assets: Sequence[str] = ("BTC", "ETH", "SOL", "BNB")
    candle_interval: str = "1h"
    lookback: int = 150


@dataclass(slots=True)
class VolatilityConfig:
    # ATR as a fraction of price
    very_high: float = 0.03
    high: float = 0.02
    medium: float = 0.01
    atr_period: int = 14
    max_workers: int = 4

    def thresholds(self) -> Thresholds:
        return Thresholds(very_high=self.very_high, high=self.high, medium=self.medium)


@dataclass(slots=True)
class SchedulingConfig:
    default_interval_minutes: int = 12
    min_interval_minutes: int = 3
    max_interval_minutes: int = 25
    forecast_lead_minutes: int = 1


@dataclass(slots=True)
class AppConfig:
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    data: DataConfig = field(default_factory=DataConfig)
    volatility: VolatilityConfig = field(default_factory=VolatilityConfig)
    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    metadata: Dict[str, str] = field(default_factory=dict)


def default_config() -> AppConfig:
    return AppConfig()

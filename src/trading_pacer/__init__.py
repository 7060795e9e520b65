"""Technical indicators and ATR volatility pacing for a periodic trading cycle."""

__all__ = [
    "config",
    "data",
    "indicators",
    "volatility",
    "scheduler",
    "monitoring",
]

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class VolatilityLevel(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def interval_minutes(self) -> int:
        return LEVEL_INTERVALS[self]


# Lower interval = more frequent trading cycles
LEVEL_INTERVALS: Dict[VolatilityLevel, int] = {
    VolatilityLevel.VERY_HIGH: 3,
    VolatilityLevel.HIGH: 6,
    VolatilityLevel.MEDIUM: 12,
    VolatilityLevel.LOW: 25,
}


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Minimum ATR-to-price ratios for each level; anything below ``medium`` is low."""

    very_high: float = 0.03
    high: float = 0.02
    medium: float = 0.01

    def is_monotonic(self) -> bool:
        return self.very_high >= self.high >= self.medium > 0


DEFAULT_THRESHOLDS = Thresholds()


@dataclass(frozen=True, slots=True)
class VolatilityResult:
    level: VolatilityLevel
    interval_minutes: int
    atr_value: float | None = None
    atr_percentage: float | None = None

    @classmethod
    def for_level(
        cls,
        level: VolatilityLevel,
        atr_value: float | None = None,
        atr_percentage: float | None = None,
    ) -> "VolatilityResult":
        return cls(
            level=level,
            interval_minutes=LEVEL_INTERVALS[level],
            atr_value=atr_value,
            atr_percentage=atr_percentage,
        )

    @classmethod
    def default(cls) -> "VolatilityResult":
        """Medium volatility with no ATR data, used whenever volatility is unknown."""
        return cls.for_level(VolatilityLevel.MEDIUM)

    @property
    def is_default(self) -> bool:
        return self.atr_value is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level.value,
            "interval_minutes": self.interval_minutes,
            "atr_value": self.atr_value,
            "atr_percentage": self.atr_percentage,
        }

    def decision_fields(self) -> Dict[str, Any]:
        # atr_value on a decision record holds the percentage, not the raw ATR
        return {
            "volatility_level": self.level.value,
            "atr_value": self.atr_percentage,
            "next_cycle_interval": self.interval_minutes,
        }

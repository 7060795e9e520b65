"""ATR-based volatility classification driving the trading cycle interval.

ATR as a fraction of price maps to four levels:

- very high (>= 3%): 3 minute interval
- high (>= 2%): 6 minute interval
- medium (>= 1%): 12 minute interval
- low (< 1%): 25 minute interval

When volatility cannot be determined the result is medium (12 minutes).
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable, List, Sequence

from trading_pacer.data.models import FetchOutcome
from trading_pacer.data.provider_base import CandleProvider
from trading_pacer.indicators.engine import atr

from .models import DEFAULT_THRESHOLDS, Thresholds, VolatilityLevel, VolatilityResult

if TYPE_CHECKING:
    from trading_pacer.config.models import AppConfig

logger = logging.getLogger(__name__)


def determine_level(atr_percentage: float, thresholds: Thresholds) -> VolatilityLevel:
    # First match wins, so ties and unordered thresholds favour the more urgent level
    if atr_percentage >= thresholds.very_high:
        return VolatilityLevel.VERY_HIGH
    if atr_percentage >= thresholds.high:
        return VolatilityLevel.HIGH
    if atr_percentage >= thresholds.medium:
        return VolatilityLevel.MEDIUM
    return VolatilityLevel.LOW


def classify(
    atr_value: float | None,
    current_price: float | None,
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> VolatilityResult:
    if atr_value is None or current_price is None or current_price == 0:
        return VolatilityResult.default()

    atr_value = float(atr_value)
    current_price = float(current_price)
    # NaN would fail every threshold comparison and land on LOW
    if not math.isfinite(atr_value) or not math.isfinite(current_price):
        return VolatilityResult.default()

    atr_percentage = atr_value / current_price
    return VolatilityResult.for_level(
        determine_level(atr_percentage, thresholds),
        atr_value=atr_value,
        atr_percentage=atr_percentage,
    )


def most_urgent(results: Iterable[VolatilityResult]) -> VolatilityResult:
    """Result with the shortest interval; the first one wins on ties."""
    return min(results, key=lambda result: result.interval_minutes, default=VolatilityResult.default())


class VolatilityClassifier:
    def __init__(
        self,
        provider: CandleProvider,
        assets: Sequence[str] = (),
        thresholds: Thresholds = DEFAULT_THRESHOLDS,
        interval: str = "1h",
        lookback: int = 150,
        atr_period: int = 14,
        max_workers: int = 4,
    ) -> None:
        if not thresholds.is_monotonic():
            logger.warning(
                "Volatility thresholds are not ordered very_high >= high >= medium > 0: %s",
                thresholds,
            )
        self._provider = provider
        self._assets = tuple(assets)
        self._thresholds = thresholds
        self._interval = interval
        self._lookback = lookback
        self._atr_period = atr_period
        self._max_workers = max(max_workers, 1)

    @classmethod
    def from_config(cls, config: "AppConfig", provider: CandleProvider) -> "VolatilityClassifier":
        return cls(
            provider=provider,
            assets=config.data.assets,
            thresholds=config.volatility.thresholds(),
            interval=config.data.candle_interval,
            lookback=config.data.lookback,
            atr_period=config.volatility.atr_period,
            max_workers=config.volatility.max_workers,
        )

    @property
    def assets(self) -> tuple[str, ...]:
        return self._assets

    @property
    def thresholds(self) -> Thresholds:
        return self._thresholds

    def classify(
        self,
        atr_value: float | None,
        current_price: float | None,
        thresholds: Thresholds | None = None,
    ) -> VolatilityResult:
        if thresholds is None:
            thresholds = self._thresholds
        return classify(atr_value, current_price, thresholds)

    def fetch(self, symbol: str) -> FetchOutcome:
        try:
            candles = self._provider.fetch_candles(symbol, self._interval, self._lookback)
        except Exception as exc:
            return FetchOutcome(symbol=symbol, error=exc)
        if not candles:
            return FetchOutcome(symbol=symbol, error=ValueError("no candles returned"))
        return FetchOutcome(symbol=symbol, candles=candles)

    def classify_for_symbol(self, symbol: str) -> VolatilityResult:
        outcome = self.fetch(symbol)
        if not outcome.ok:
            logger.warning("Volatility classification failed for %s: %s", symbol, outcome.error)
            return VolatilityResult.default()

        try:
            current_price = float(outcome.latest().close)
            atr_value = atr(outcome.candles, self._atr_period)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Volatility classification failed for %s: %s", symbol, exc)
            return VolatilityResult.default()

        if atr_value is not None and not (math.isfinite(atr_value) and math.isfinite(current_price)):
            logger.warning("Non-finite candle data for %s (atr=%s, close=%s)", symbol, atr_value, current_price)

        result = self.classify(atr_value, current_price)
        logger.debug(
            "%s volatility %s (atr=%s, pct=%s)",
            symbol,
            result.level.value,
            result.atr_value,
            result.atr_percentage,
        )
        return result

    def classify_assets(self, assets: Sequence[str] | None = None) -> List[VolatilityResult]:
        """Per-asset results, in asset order, once every fetch has finished."""
        symbols = list(self._assets if assets is None else assets)
        if not symbols:
            return []
        workers = min(self._max_workers, len(symbols))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.classify_for_symbol, symbols))

    def classify_all_assets(self, assets: Sequence[str] | None = None) -> VolatilityResult:
        """Most urgent volatility across all assets.

        If any one asset is very volatile the whole system moves to the
        shortest cycle interval.
        """
        return most_urgent(self.classify_assets(assets))

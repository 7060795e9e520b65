from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable

from trading_pacer.config.models import SchedulingConfig
from trading_pacer.data.provider_base import TimeProvider
from trading_pacer.data.providers import SystemTimeProvider
from trading_pacer.volatility.classifier import VolatilityClassifier
from trading_pacer.volatility.models import VolatilityResult

logger = logging.getLogger(__name__)

CycleCallable = Callable[[], Any]
PlanCallback = Callable[["CyclePlan"], Any]


@dataclass(frozen=True, slots=True)
class CyclePlan:
    volatility: VolatilityResult
    interval_minutes: int
    next_run_at: datetime
    forecast_at: datetime | None = None


async def _invoke(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result


class CyclePacer:
    """Runs a trading cycle repeatedly, spacing runs by current market volatility."""

    def __init__(
        self,
        classifier: VolatilityClassifier,
        config: SchedulingConfig | None = None,
        cycle: CycleCallable | None = None,
        forecast: CycleCallable | None = None,
        time_provider: TimeProvider | None = None,
        on_plan: PlanCallback | None = None,
    ) -> None:
        self._classifier = classifier
        self._config = config or SchedulingConfig()
        self._cycle = cycle
        self._forecast = forecast
        self._time = time_provider or SystemTimeProvider()
        self._on_plan = on_plan
        self._tasks: list[asyncio.Task] = []
        self._running = False
        self.last_plan: CyclePlan | None = None

    def current_volatility(self) -> VolatilityResult:
        try:
            return self._classifier.classify_all_assets()
        except Exception as exc:
            logger.error("Volatility calculation failed: %s", exc)
            return VolatilityResult.default()

    def next_interval(self, volatility: VolatilityResult) -> int:
        low = self._config.min_interval_minutes
        high = self._config.max_interval_minutes
        return max(low, min(high, volatility.interval_minutes))

    def plan_next(self, volatility: VolatilityResult | None = None) -> CyclePlan:
        if volatility is None:
            volatility = self.current_volatility()
        interval = self.next_interval(volatility)
        now = self._time.now()

        forecast_at = None
        forecast_wait = interval - self._config.forecast_lead_minutes
        if forecast_wait > 0:
            forecast_at = now + timedelta(minutes=forecast_wait)

        plan = CyclePlan(
            volatility=volatility,
            interval_minutes=interval,
            next_run_at=now + timedelta(minutes=interval),
            forecast_at=forecast_at,
        )
        logger.info(
            "Scheduling next cycle in %s minutes (volatility: %s)",
            interval,
            volatility.level.value,
        )
        self.last_plan = plan
        return plan

    async def run_once(self) -> CyclePlan:
        """Run one trading cycle, then plan the next one even if the cycle failed."""
        try:
            if self._cycle is not None:
                logger.info("Starting trading cycle")
                await _invoke(self._cycle)
        except Exception as exc:
            logger.exception("Trading cycle failed: %s", exc)
        volatility = await asyncio.to_thread(self.current_volatility)
        plan = self.plan_next(volatility)
        if self._on_plan is not None:
            try:
                await _invoke(self._on_plan, plan)
            except Exception as exc:
                logger.exception("Plan callback failed: %s", exc)
        return plan

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._tasks = [asyncio.create_task(self._cycle_loop(), name="trading-cycle")]

    async def run_forever(self) -> None:
        await self.start()
        await self.wait_until_stopped()

    async def stop(self) -> None:
        self._running = False
        for task in self._tasks:
            task.cancel()
        try:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._tasks.clear()

    async def wait_until_stopped(self) -> None:
        if not self._tasks:
            return
        try:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        except asyncio.CancelledError:
            pass

    async def _cycle_loop(self) -> None:
        while self._running:
            try:
                plan = await self.run_once()
            except Exception as exc:
                logger.exception("Failed to schedule next cycle: %s", exc)
                await asyncio.sleep(self._config.default_interval_minutes * 60)
                continue
            await self._wait_for(plan)

    async def _wait_for(self, plan: CyclePlan) -> None:
        total = plan.interval_minutes * 60
        if self._forecast is not None and plan.forecast_at is not None:
            lead = total - self._config.forecast_lead_minutes * 60
            await asyncio.sleep(lead)
            try:
                await _invoke(self._forecast)
            except Exception as exc:
                logger.exception("Forecast refresh failed: %s", exc)
            total -= lead
        await asyncio.sleep(total)

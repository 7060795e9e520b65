"""Logging setup and Rich rendering of indicator and volatility results."""

from __future__ import annotations

import logging
from typing import Mapping

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from trading_pacer.indicators.models import IndicatorBundle
from trading_pacer.scheduler.orchestrator import CyclePlan
from trading_pacer.volatility.models import VolatilityLevel, VolatilityResult

_HANDLER_MARKER = "_trading_pacer_configured"


def configure_logging(level: str = "INFO", console: Console | None = None) -> None:
    """Install a single Rich handler on the root logger."""
    root = logging.getLogger()
    if getattr(root, _HANDLER_MARKER, False):
        root.setLevel(level.upper())
        return
    handler = RichHandler(console=console, rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s - %(message)s"))
    root.addHandler(handler)
    root.setLevel(level.upper())
    setattr(root, _HANDLER_MARKER, True)


def _fmt(value: float | None, digits: int = 4) -> str:
    if value is None:
        return "-"
    return f"{value:.{digits}f}"


def _fmt_pct(value: float | None) -> str:
    if value is None:
        return "-"
    return f"{value * 100:.2f}%"


class PacerReporter:
    _LEVEL_STYLES = {
        VolatilityLevel.VERY_HIGH: "red",
        VolatilityLevel.HIGH: "yellow",
        VolatilityLevel.MEDIUM: "cyan",
        VolatilityLevel.LOW: "green",
    }

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def log_volatility(
        self,
        per_asset: Mapping[str, VolatilityResult],
        aggregate: VolatilityResult | None = None,
    ) -> None:
        table = Table(title="Volatility", show_lines=True)
        table.add_column("Asset")
        table.add_column("Level")
        table.add_column("Interval")
        table.add_column("ATR", justify="right")
        table.add_column("ATR %", justify="right")
        for symbol, result in per_asset.items():
            table.add_row(symbol, *self._volatility_cells(result))
        if aggregate is not None:
            table.add_row("[bold]ALL", *self._volatility_cells(aggregate))
        self._console.print(table)

    def _volatility_cells(self, result: VolatilityResult) -> tuple[str, ...]:
        style = self._LEVEL_STYLES.get(result.level, "white")
        return (
            f"[{style}]{result.level.value}[/{style}]",
            f"{result.interval_minutes}m",
            _fmt(result.atr_value),
            _fmt_pct(result.atr_percentage),
        )

    def log_indicators(self, symbol: str, bundle: IndicatorBundle) -> None:
        table = Table(title=f"Indicators {symbol}", show_lines=True)
        table.add_column("Field")
        table.add_column("Value", justify="right")
        for name in ("ema_20", "ema_50", "ema_100", "ema_200", "rsi_14", "atr_14"):
            table.add_row(name, _fmt(getattr(bundle, name)))
        if bundle.macd is not None:
            table.add_row("macd", _fmt(bundle.macd.macd))
            table.add_row("macd_signal", _fmt(bundle.macd.signal))
            table.add_row("macd_hist", _fmt(bundle.macd.histogram))
        if bundle.pivot_points is not None:
            for name in ("pp", "r1", "r2", "s1", "s2"):
                table.add_row(name, _fmt(getattr(bundle.pivot_points, name), 2))
        for name, signal in (("rsi_zone", bundle.rsi_signal()), ("macd_trend", bundle.macd_signal())):
            if signal is not None:
                table.add_row(name, signal)
        self._console.print(table)

    def log_plan(self, plan: CyclePlan) -> None:
        forecast = plan.forecast_at.isoformat(timespec="seconds") if plan.forecast_at else "-"
        self._console.print(
            f"[bold]Next cycle[/bold] in {plan.interval_minutes}m at "
            f"{plan.next_run_at.isoformat(timespec='seconds')} "
            f"(volatility {plan.volatility.level.value}, forecast {forecast})"
        )

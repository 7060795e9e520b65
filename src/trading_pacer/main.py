from __future__ import annotations

import argparse
import asyncio
import logging
from contextlib import suppress

from trading_pacer.config.loader import load_config
from trading_pacer.config.models import AppConfig
from trading_pacer.data.provider_base import CandleProvider
from trading_pacer.data.providers import BinanceCandleProvider, MockCandleProvider
from trading_pacer.indicators.engine import bundle_from_candles
from trading_pacer.monitoring.logger import PacerReporter, configure_logging
from trading_pacer.scheduler.orchestrator import CyclePacer
from trading_pacer.volatility.classifier import VolatilityClassifier, most_urgent

logger = logging.getLogger(__name__)


def build_provider(config: AppConfig, mock: bool) -> CandleProvider:
    if mock:
        return MockCandleProvider()
    return BinanceCandleProvider(config.exchange)


def run_classify(config: AppConfig, provider: CandleProvider, reporter: PacerReporter) -> None:
    classifier = VolatilityClassifier.from_config(config, provider)
    results = classifier.classify_assets()
    per_asset = dict(zip(classifier.assets, results))
    reporter.log_volatility(per_asset, aggregate=most_urgent(results))


def run_indicators(config: AppConfig, provider: CandleProvider, reporter: PacerReporter) -> None:
    for symbol in config.data.assets:
        try:
            candles = provider.fetch_candles(symbol, config.data.candle_interval, config.data.lookback)
        except Exception as exc:
            logger.warning("Skipping %s: %s", symbol, exc)
            continue
        reporter.log_indicators(symbol, bundle_from_candles(candles))


async def run_pacer(
    config: AppConfig, provider: CandleProvider, reporter: PacerReporter, run_minutes: float
) -> None:
    classifier = VolatilityClassifier.from_config(config, provider)
    pacer = CyclePacer(classifier, config.scheduling, on_plan=reporter.log_plan)
    await pacer.start()
    try:
        await asyncio.sleep(run_minutes * 60)
    finally:
        await pacer.stop()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Volatility-paced trading cycle scheduler")
    parser.add_argument("--config", type=str, help="Path to TOML/JSON/YAML config", default=None)
    parser.add_argument(
        "--task", type=str, choices=["classify", "indicators", "run"], default="classify"
    )
    parser.add_argument("--mock", action="store_true", help="Use synthetic candles instead of Binance")
    parser.add_argument(
        "--minutes",
        type=float,
        default=1.0,
        help="Run duration in minutes for the run task",
    )
    parser.add_argument("--log-level", type=str, default="INFO")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging(args.log_level)
    config = load_config(args.config)
    provider = build_provider(config, mock=args.mock)
    reporter = PacerReporter()
    try:
        if args.task == "classify":
            run_classify(config, provider, reporter)
        elif args.task == "indicators":
            run_indicators(config, provider, reporter)
        else:
            asyncio.run(run_pacer(config, provider, reporter, run_minutes=args.minutes))
    finally:
        with suppress(Exception):
            provider.close()


if __name__ == "__main__":
    main()

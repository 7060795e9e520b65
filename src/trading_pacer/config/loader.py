from __future__ import annotations

import json
import os
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from trading_pacer.config.models import (
    AppConfig,
    DataConfig,
    ExchangeConfig,
    VolatilityConfig,
    default_config,
)

CONFIG_ENV_PREFIX = "PACER_"


def load_config(path: str | Path | None = None, env_prefix: str = CONFIG_ENV_PREFIX) -> AppConfig:
    config = default_config()
    if path:
        payload = _read_file(Path(path))
        config = AppConfig(
            exchange=_merge_section(config.exchange, payload.get("exchange")),
            data=_merge_data_config(config.data, payload.get("data")),
            volatility=_merge_section(config.volatility, payload.get("volatility")),
            scheduling=_merge_section(config.scheduling, payload.get("scheduling")),
            metadata=payload.get("metadata", config.metadata),
        )
    return _apply_env_overrides(config, env_prefix=env_prefix)


def _read_file(path: Path) -> Mapping[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    suffix = path.suffix.lower()
    if suffix in {".toml", ".tml"}:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    if suffix == ".json":
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}
    raise ValueError(f"Unsupported config format: {path.suffix}")


def _merge_data_config(base: DataConfig, payload: Mapping[str, Any] | None) -> DataConfig:
    if not payload:
        return base
    updates = dict(payload)
    if "assets" in updates:
        updates["assets"] = _normalize_assets(updates["assets"])
    return replace(base, **updates)


def _merge_section(base, payload: Mapping[str, Any] | None):
    if not payload:
        return base
    return replace(base, **payload)


def _normalize_assets(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        raw = raw.split(",")
    assets: list[str] = []
    for item in raw:
        symbol = str(item).strip().upper()
        if symbol and symbol not in assets:
            assets.append(symbol)
    return tuple(assets)


def _apply_env_overrides(config: AppConfig, env_prefix: str) -> AppConfig:
    exchange_cfg: ExchangeConfig = config.exchange
    data_cfg: DataConfig = config.data
    volatility_cfg: VolatilityConfig = config.volatility

    base_url = os.getenv(f"{env_prefix}BASE_URL")
    if base_url:
        exchange_cfg = replace(exchange_cfg, base_url=base_url)

    data_updates: dict[str, Any] = {}
    assets = os.getenv(f"{env_prefix}ASSETS")
    if assets:
        data_updates["assets"] = _normalize_assets(assets)
    interval = os.getenv(f"{env_prefix}INTERVAL")
    if interval:
        data_updates["candle_interval"] = interval
    lookback = _get_env_int(f"{env_prefix}LOOKBACK")
    if lookback is not None:
        data_updates["lookback"] = lookback
    if data_updates:
        data_cfg = replace(data_cfg, **data_updates)

    threshold_updates: dict[str, float] = {}
    for name in ("very_high", "high", "medium"):
        value = _get_env_float(f"{env_prefix}THRESHOLD_{name.upper()}")
        if value is not None:
            threshold_updates[name] = value
    if threshold_updates:
        volatility_cfg = replace(volatility_cfg, **threshold_updates)

    return AppConfig(
        exchange=exchange_cfg,
        data=data_cfg,
        volatility=volatility_cfg,
        scheduling=config.scheduling,
        metadata=config.metadata,
    )


def _get_env_float(key: str) -> float | None:
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _get_env_int(key: str) -> int | None:
    raw = os.getenv(key)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None

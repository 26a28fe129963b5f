"""Load and freeze configuration files."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

from tradecore.config.models import EngineConfig, MonitoringConfig
from tradecore.errors import InvalidConfigurationError
from tradecore.momentum import MomentumDetectorConfig
from tradecore.momentum.models import DEFAULT_CLEANUP_INTERVAL_MS, DEFAULT_MAX_HISTORY, DEFAULT_RATIO_CAP
from tradecore.pnl import DEFAULT_MAKER_FEE, DEFAULT_TAKER_FEE
from tradecore.rules import BlockingRulesConfig, StrategyKind
from tradecore.simulator import BacktestConfig, IndicatorPeriods, StrategyParams


def load_config(path: str | Path) -> EngineConfig:
    path = Path(path)
    data = _load_yaml(path)

    name = str(_require(data, "name"))
    version = str(_require(data, "version"))
    momentum = data.get("momentum")

    return EngineConfig(
        name=name,
        version=version,
        run_id_prefix=str(data.get("run_id_prefix", name)),
        backtest=_parse_backtest(_require(data, "backtest")),
        blocking_rules=_parse_blocking_rules(data.get("blocking_rules", {})),
        momentum=_parse_momentum(momentum) if momentum else None,
        monitoring=_parse_monitoring(data.get("monitoring", {})),
    )


def compute_config_hash(path: str | Path) -> str:
    path = Path(path)
    content = path.read_bytes()
    return hashlib.sha256(content).hexdigest()


def freeze_config(path: str | Path, lock_path: Optional[str | Path] = None) -> Path:
    path = Path(path)
    config_hash = compute_config_hash(path)
    if lock_path is None:
        lock_path = path.with_suffix(path.suffix + ".lock.json")
    lock_path = Path(lock_path)

    payload = {
        "config_path": str(path),
        "config_hash": config_hash,
        "frozen_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    lock_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return lock_path


def verify_config_lock(path: str | Path, lock_path: Optional[str | Path] = None) -> bool:
    path = Path(path)
    if lock_path is None:
        lock_path = path.with_suffix(path.suffix + ".lock.json")
    lock_path = Path(lock_path)
    if not lock_path.exists():
        return False
    payload = json.loads(lock_path.read_text(encoding="utf-8"))
    return payload.get("config_hash") == compute_config_hash(path)


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")
    return data


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"Missing required config key: {key}")
    return data[key]


def _parse_backtest(data: dict[str, Any]) -> BacktestConfig:
    return BacktestConfig(
        symbol=str(_require(data, "symbol")),
        initial_balance=float(_require(data, "initial_balance")),
        position_size_notional=float(_require(data, "position_size_notional")),
        leverage=float(data.get("leverage", 1.0)),
        taker_fee=float(data.get("taker_fee", DEFAULT_TAKER_FEE)),
        maker_fee=float(data.get("maker_fee", DEFAULT_MAKER_FEE)),
        indicator_periods=_parse_indicator_periods(data.get("indicator_periods", {})),
        strategy_params=_parse_strategy(data.get("strategy", {})),
    )


def _parse_indicator_periods(data: dict[str, Any]) -> IndicatorPeriods:
    defaults = IndicatorPeriods()
    return IndicatorPeriods(
        rsi=int(data.get("rsi", defaults.rsi)),
        ema_fast=int(data.get("ema_fast", defaults.ema_fast)),
        ema_slow=int(data.get("ema_slow", defaults.ema_slow)),
        atr=int(data.get("atr", defaults.atr)),
        zigzag_depth=int(data.get("zigzag_depth", defaults.zigzag_depth)),
        volume=int(data.get("volume", defaults.volume)),
        neutral_fallback=float(data.get("neutral_fallback", defaults.neutral_fallback)),
    )


def _parse_strategy(data: dict[str, Any]) -> StrategyParams:
    defaults = StrategyParams()
    try:
        strategy = StrategyKind(data.get("strategy", defaults.strategy.value))
    except ValueError as exc:
        raise InvalidConfigurationError(f"Invalid strategy: {data.get('strategy')}") from exc

    take_profits = defaults.take_profits
    if "take_profits" in data:
        take_profits = tuple(
            (float(_require(level, "percent")), float(_require(level, "close_percent")))
            for level in data["take_profits"]
        )

    return StrategyParams(
        strategy=strategy,
        stop_loss_percent=float(data.get("stop_loss_percent", defaults.stop_loss_percent)),
        take_profits=take_profits,
        min_confidence=float(data.get("min_confidence", defaults.min_confidence)),
        warmup_bars=int(data.get("warmup_bars", defaults.warmup_bars)),
        history_window=int(data.get("history_window", defaults.history_window)),
        equity_sample_interval=int(data.get("equity_sample_interval", defaults.equity_sample_interval)),
        min_balance_fraction=float(data.get("min_balance_fraction", defaults.min_balance_fraction)),
    )


def _parse_blocking_rules(data: dict[str, Any]) -> BlockingRulesConfig:
    defaults = asdict(BlockingRulesConfig())
    unknown = set(data) - set(defaults)
    if unknown:
        raise InvalidConfigurationError(f"Unknown blocking_rules keys: {sorted(unknown)}")
    values = {}
    for key, default in defaults.items():
        value = data.get(key, default)
        if isinstance(default, bool):
            if not isinstance(value, bool):
                raise InvalidConfigurationError(f"blocking_rules.{key} must be true or false, got {value!r}")
            values[key] = value
        else:
            values[key] = type(default)(value)
    return BlockingRulesConfig(**values)


def _parse_momentum(data: dict[str, Any]) -> MomentumDetectorConfig:
    return MomentumDetectorConfig(
        min_delta_ratio=float(_require(data, "min_delta_ratio")),
        detection_window_ms=int(_require(data, "detection_window_ms")),
        min_event_count=int(_require(data, "min_event_count")),
        min_volume_notional=float(_require(data, "min_volume_notional")),
        max_confidence=float(_require(data, "max_confidence")),
        ratio_cap=float(data.get("ratio_cap", DEFAULT_RATIO_CAP)),
        cleanup_interval_ms=int(data.get("cleanup_interval_ms", DEFAULT_CLEANUP_INTERVAL_MS)),
        max_history=int(data.get("max_history", DEFAULT_MAX_HISTORY)),
    )


def _parse_monitoring(data: dict[str, Any]) -> MonitoringConfig:
    audit_log_path = data.get("audit_log_path")
    return MonitoringConfig(
        audit_log_path=str(audit_log_path) if audit_log_path else None,
        log_level=str(data.get("log_level", "INFO")).upper(),
    )


def serialize_config(config: EngineConfig) -> dict[str, Any]:
    payload = asdict(config)
    payload["backtest"]["strategy_params"]["strategy"] = config.backtest.strategy_params.strategy.value
    payload["backtest"]["strategy_params"]["take_profits"] = [
        {"percent": distance, "close_percent": share}
        for distance, share in config.backtest.strategy_params.take_profits
    ]
    return payload

"""Configuration models for reproducible backtest runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from tradecore.momentum import MomentumDetectorConfig
from tradecore.rules import BlockingRulesConfig
from tradecore.simulator import BacktestConfig


@dataclass(frozen=True)
class MonitoringConfig:
    audit_log_path: Optional[str] = None
    log_level: str = "INFO"


@dataclass(frozen=True)
class EngineConfig:
    name: str
    version: str
    backtest: BacktestConfig
    blocking_rules: BlockingRulesConfig = field(default_factory=BlockingRulesConfig)
    momentum: Optional[MomentumDetectorConfig] = None
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    run_id_prefix: str = ""

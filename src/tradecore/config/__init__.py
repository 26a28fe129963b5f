"""Config loading and freezing."""

from tradecore.config.loader import (
    compute_config_hash,
    freeze_config,
    load_config,
    serialize_config,
    verify_config_lock,
)
from tradecore.config.models import EngineConfig, MonitoringConfig

__all__ = [
    "EngineConfig",
    "MonitoringConfig",
    "compute_config_hash",
    "freeze_config",
    "load_config",
    "serialize_config",
    "verify_config_lock",
]

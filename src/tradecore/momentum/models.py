"""Data models for tick and order-flow momentum detection."""

from __future__ import annotations

from dataclasses import dataclass

from tradecore.errors import InvalidConfigurationError
from tradecore.market import Direction, TickSide

DEFAULT_RATIO_CAP = 10.0
DEFAULT_CLEANUP_INTERVAL_MS = 10_000
DEFAULT_MAX_HISTORY = 10_000


@dataclass(frozen=True)
class MomentumDetectorConfig:
    min_delta_ratio: float
    detection_window_ms: int
    min_event_count: int
    min_volume_notional: float
    max_confidence: float
    ratio_cap: float = DEFAULT_RATIO_CAP
    cleanup_interval_ms: int = DEFAULT_CLEANUP_INTERVAL_MS
    max_history: int = DEFAULT_MAX_HISTORY

    def __post_init__(self) -> None:
        if self.min_delta_ratio <= 1:
            raise InvalidConfigurationError("min_delta_ratio must be greater than 1")
        if self.detection_window_ms <= 0 or self.cleanup_interval_ms <= 0:
            raise InvalidConfigurationError("detection_window_ms and cleanup_interval_ms must be positive")
        if self.min_event_count < 0 or self.min_volume_notional < 0:
            raise InvalidConfigurationError("min_event_count and min_volume_notional must be non-negative")
        if not 0 < self.max_confidence <= 100:
            raise InvalidConfigurationError("max_confidence must be in (0, 100]")
        if self.ratio_cap < self.min_delta_ratio:
            raise InvalidConfigurationError("ratio_cap must be at least min_delta_ratio")
        if self.max_history < 1:
            raise InvalidConfigurationError("max_history must be at least 1")

    @property
    def retention_ms(self) -> int:
        return self.detection_window_ms * 2


@dataclass(frozen=True)
class MomentumEvent:
    timestamp: int
    side: TickSide
    price: float
    size: float

    @property
    def notional(self) -> float:
        return self.price * self.size


@dataclass(frozen=True)
class WindowStats:
    buy_volume: float
    sell_volume: float
    event_count: int
    notional: float


@dataclass(frozen=True)
class MomentumSpike:
    direction: Direction
    ratio: float
    confidence: float
    event_count: int
    notional: float
    timestamp: int

"""Data models for the pre-entry blocking gate."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from tradecore.errors import InvalidConfigurationError
from tradecore.market import Candle, Direction


class StrategyKind(str, Enum):
    TREND_FOLLOWING = "trend_following"
    LEVEL_BASED = "level_based"
    COUNTER_TREND = "counter_trend"


class BlockId(str, Enum):
    INSUFFICIENT_DATA = "GLOBAL_1"
    EMA_DISTANCE = "GLOBAL_2"
    ACTIVE_POSITION = "GLOBAL_3"
    COOLDOWN = "GLOBAL_4"
    VOLUME_TREND = "VOL_TREND_1"
    VOLUME_LEVEL = "VOL_LEVEL_1"
    WICK_LONG = "WICK_LONG"
    WICK_SHORT = "WICK_SHORT"
    NEAR_RECENT_HIGH = "ATH_LONG"


@dataclass(frozen=True)
class BlockingRulesConfig:
    max_distance_to_ema_percent: float = 5.5
    cooldown_period_ms: int = 10_000
    min_candles: int = 50
    volume_min_multiplier_trend: float = 0.5
    volume_min_multiplier_level: float = 0.3
    min_drop_from_recent_high_for_long: float = 0.2  # percent
    recent_high_lookback: int = 288
    wick_check_candles: int = 3
    enable_data_check: bool = True
    enable_ema_distance_check: bool = True
    enable_position_check: bool = True
    enable_cooldown_check: bool = True
    enable_volume_checks: bool = True
    enable_wick_checks: bool = True
    enable_ath_protection: bool = True

    def __post_init__(self) -> None:
        if self.max_distance_to_ema_percent <= 0:
            raise InvalidConfigurationError("max_distance_to_ema_percent must be positive")
        if self.cooldown_period_ms < 0:
            raise InvalidConfigurationError("cooldown_period_ms must be non-negative")
        if self.min_candles < 0:
            raise InvalidConfigurationError("min_candles must be non-negative")
        if self.volume_min_multiplier_trend < 0 or self.volume_min_multiplier_level < 0:
            raise InvalidConfigurationError("volume multipliers must be non-negative")
        if self.min_drop_from_recent_high_for_long < 0:
            raise InvalidConfigurationError("min_drop_from_recent_high_for_long must be non-negative")
        if self.recent_high_lookback < 1 or self.wick_check_candles < 1:
            raise InvalidConfigurationError("recent_high_lookback and wick_check_candles must be at least 1")


@dataclass(frozen=True)
class BlockingContext:
    direction: Direction
    strategy: StrategyKind
    candles: Sequence[Candle]
    current_price: float
    ema: float
    has_active_position: bool
    now: int
    last_signal_time: Optional[int] = None
    rsi: Optional[float] = None


@dataclass(frozen=True)
class BlockDecision:
    blocked: bool
    block_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "BlockDecision":
        return cls(blocked=False)

    @classmethod
    def block(cls, block_id: BlockId, reason: str) -> "BlockDecision":
        return cls(blocked=True, block_id=block_id.value, reason=reason)

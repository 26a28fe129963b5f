"""Indicator state and result structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from tradecore.errors import InvalidConfigurationError
from tradecore.market import Direction

# Returned by RSI/Stochastic on flat input (zero gain and loss, zero high-low range).
DEFAULT_NEUTRAL_FALLBACK = 70.0


@dataclass(frozen=True)
class Uninitialized:
    pass


@dataclass(frozen=True)
class Ready:
    value: Any
    internals: Any = None


IndicatorState = Union[Uninitialized, Ready]
UNINITIALIZED = Uninitialized()


@dataclass(frozen=True)
class RSIInternals:
    avg_gain: float
    avg_loss: float
    prev_close: float


@dataclass(frozen=True)
class EMAInternals:
    ema: float


@dataclass(frozen=True)
class ATRInternals:
    atr: float
    prev_close: float


@dataclass(frozen=True)
class StochasticResult:
    k: float
    d: float


class Crossover(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NONE = "NONE"


@dataclass(frozen=True)
class BollingerResult:
    upper: float
    middle: float
    lower: float
    width: float  # percent of middle band
    percent_b: float


@dataclass(frozen=True)
class VolatilityRegimes:
    """ATR/price thresholds (fractions) and the band multiplier used above each."""

    high_threshold: float = 0.05
    medium_threshold: float = 0.03
    high_std_dev: float = 2.5
    medium_std_dev: float = 2.0
    low_std_dev: float = 1.5

    def __post_init__(self) -> None:
        if self.medium_threshold > self.high_threshold:
            raise InvalidConfigurationError("medium_threshold must not exceed high_threshold")
        if min(self.high_std_dev, self.medium_std_dev, self.low_std_dev) <= 0:
            raise InvalidConfigurationError("band multipliers must be positive")


@dataclass(frozen=True)
class SwingPoint:
    timestamp: int
    price: float
    index: int


@dataclass(frozen=True)
class SwingPoints:
    highs: list[SwingPoint] = field(default_factory=list)
    lows: list[SwingPoint] = field(default_factory=list)


@dataclass(frozen=True)
class VolumeCalculatorConfig:
    rolling_period: int = 20
    low_volume_ratio: float = 0.5
    high_volume_ratio: float = 2.0
    modifier: float = 0.1  # +/- confidence adjustment

    def __post_init__(self) -> None:
        if self.rolling_period < 1:
            raise InvalidConfigurationError("rolling_period must be at least 1")
        if self.low_volume_ratio >= self.high_volume_ratio:
            raise InvalidConfigurationError("low_volume_ratio must be below high_volume_ratio")
        if not 0 <= self.modifier < 1:
            raise InvalidConfigurationError("modifier must be in [0, 1)")


@dataclass(frozen=True)
class VolumeAnalysis:
    current_volume: float
    avg_volume: float
    volume_ratio: float
    is_low_volume: bool
    is_high_volume: bool
    volume_modifier: float


class WickDirection(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    NONE = "NONE"


@dataclass(frozen=True)
class WickAnalysis:
    has_large_wick: bool
    wick_direction: WickDirection
    wick_size: float
    body_size: float
    wick_to_body_ratio: float
    blocks_direction: Optional[Direction] = None

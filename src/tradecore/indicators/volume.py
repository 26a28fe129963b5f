"""Rolling volume ratio and the confidence modifier derived from it."""

from __future__ import annotations

from collections import deque
from typing import Sequence

from tradecore.errors import InsufficientDataError, NotInitializedError
from tradecore.indicators.averages import sma
from tradecore.indicators.models import (
    UNINITIALIZED,
    IndicatorState,
    Ready,
    VolumeAnalysis,
    VolumeCalculatorConfig,
)
from tradecore.market import Candle


class VolumeCalculator:
    def __init__(self, config: VolumeCalculatorConfig = VolumeCalculatorConfig()) -> None:
        self.config = config
        self._volumes: deque[float] = deque(maxlen=config.rolling_period)
        self._state: IndicatorState = UNINITIALIZED

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    def reset(self) -> None:
        self._volumes.clear()
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> VolumeAnalysis:
        period = self.config.rolling_period
        if len(candles) < period:
            raise InsufficientDataError("VolumeCalculator", period, len(candles))
        self._volumes.clear()
        self._volumes.extend(candle.volume for candle in candles[-period:])
        return self._commit()

    def update(self, candle: Candle) -> VolumeAnalysis:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("VolumeCalculator")
        self._volumes.append(candle.volume)
        return self._commit()

    def _commit(self) -> VolumeAnalysis:
        volumes = list(self._volumes)
        current = volumes[-1]
        average = sma(volumes)
        if average <= 0:
            analysis = VolumeAnalysis(current, average, 0.0, False, False, 1.0)
        else:
            ratio = current / average
            is_low = ratio < self.config.low_volume_ratio
            is_high = ratio > self.config.high_volume_ratio
            modifier = 1.0
            if is_low:
                modifier = 1.0 - self.config.modifier
            elif is_high:
                modifier = 1.0 + self.config.modifier
            analysis = VolumeAnalysis(current, average, ratio, is_low, is_high, modifier)
        self._state = Ready(analysis)
        return analysis

"""Bollinger Bands with squeeze detection and volatility-adaptive width."""

from __future__ import annotations

import math
from collections import deque
from typing import Sequence

from tradecore.errors import InsufficientDataError, InvalidConfigurationError, NotInitializedError
from tradecore.indicators.averages import sma
from tradecore.indicators.models import UNINITIALIZED, BollingerResult, IndicatorState, Ready, VolatilityRegimes
from tradecore.market import Candle

MAX_WIDTH_HISTORY = 100
DEFAULT_SQUEEZE_THRESHOLD = 0.8
DEFAULT_SQUEEZE_LOOKBACK = 20


class BollingerBandsIndicator:
    def __init__(
        self,
        period: int = 20,
        std_dev: float = 2.0,
        regimes: VolatilityRegimes = VolatilityRegimes(),
    ) -> None:
        if period < 1:
            raise InvalidConfigurationError("Bollinger period must be at least 1")
        if std_dev <= 0:
            raise InvalidConfigurationError("Bollinger std_dev must be positive")
        self.period = period
        self.std_dev = std_dev
        self.regimes = regimes
        self._closes: deque[float] = deque(maxlen=period)
        self._widths: deque[float] = deque(maxlen=MAX_WIDTH_HISTORY)
        self._state: IndicatorState = UNINITIALIZED

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    @property
    def widths(self) -> list[float]:
        return list(self._widths)

    def reset(self) -> None:
        self._closes.clear()
        self._widths.clear()
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> BollingerResult:
        if len(candles) < self.period:
            raise InsufficientDataError("Bollinger Bands", self.period, len(candles))
        self._closes.clear()
        self._closes.extend(candle.close for candle in candles[-self.period :])
        return self._commit()

    def update(self, candle: Candle) -> BollingerResult:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("Bollinger Bands")
        self._closes.append(candle.close)
        return self._commit()

    def _commit(self) -> BollingerResult:
        closes = list(self._closes)
        middle = sma(closes)
        deviation = math.sqrt(sma([(value - middle) ** 2 for value in closes]))
        upper = middle + self.std_dev * deviation
        lower = middle - self.std_dev * deviation
        width = (upper - lower) / middle * 100.0 if middle != 0 else 0.0

        if upper == lower:
            percent_b = 0.5
        else:
            percent_b = max(0.0, min(1.0, (closes[-1] - lower) / (upper - lower)))

        result = BollingerResult(upper=upper, middle=middle, lower=lower, width=width, percent_b=percent_b)
        self._widths.append(width)
        self._state = Ready(result)
        return result

    def is_squeeze(
        self,
        threshold: float = DEFAULT_SQUEEZE_THRESHOLD,
        lookback: int = DEFAULT_SQUEEZE_LOOKBACK,
    ) -> bool:
        """True when the latest width is below ``threshold`` x the average of the last ``lookback`` widths."""
        if len(self._widths) < lookback:
            return False
        recent = list(self._widths)[-lookback:]
        return recent[-1] < threshold * sma(recent)

    def adaptive_std_dev(self, atr: float, price: float) -> float:
        if price <= 0:
            return self.regimes.low_std_dev
        volatility = atr / price
        if volatility > self.regimes.high_threshold:
            return self.regimes.high_std_dev
        if volatility > self.regimes.medium_threshold:
            return self.regimes.medium_std_dev
        return self.regimes.low_std_dev

    def apply_std_dev(self, std_dev: float) -> None:
        if std_dev <= 0:
            raise InvalidConfigurationError("Bollinger std_dev must be positive")
        self.std_dev = std_dev

    @staticmethod
    def is_near_lower_band(percent_b: float, threshold: float = 0.15) -> bool:
        return percent_b <= threshold

    @staticmethod
    def is_near_upper_band(percent_b: float, threshold: float = 0.85) -> bool:
        return percent_b >= threshold

    @staticmethod
    def is_in_middle_zone(percent_b: float) -> bool:
        return 0.3 < percent_b < 0.7

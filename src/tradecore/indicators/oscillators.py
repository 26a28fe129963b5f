"""Bounded momentum oscillators: RSI and the Stochastic oscillator."""

from __future__ import annotations

from collections import deque
from typing import Sequence

from tradecore.errors import InsufficientDataError, InvalidConfigurationError, NotInitializedError
from tradecore.indicators.averages import sma
from tradecore.indicators.models import (
    DEFAULT_NEUTRAL_FALLBACK,
    UNINITIALIZED,
    Crossover,
    IndicatorState,
    Ready,
    RSIInternals,
    StochasticResult,
)
from tradecore.market import Candle

OSCILLATOR_MIN = 0.0
OSCILLATOR_MAX = 100.0
STOCH_OVERSOLD = 20.0
STOCH_OVERBOUGHT = 80.0


def _clamp(value: float) -> float:
    return max(OSCILLATOR_MIN, min(OSCILLATOR_MAX, value))


def _check_neutral(value: float) -> None:
    if not OSCILLATOR_MIN <= value <= OSCILLATOR_MAX:
        raise InvalidConfigurationError("neutral fallback must be within [0, 100]")


class RSIIndicator:
    def __init__(self, period: int, neutral_value: float = DEFAULT_NEUTRAL_FALLBACK) -> None:
        if period < 1:
            raise InvalidConfigurationError("RSI period must be at least 1")
        _check_neutral(neutral_value)
        self.period = period
        self.neutral_value = neutral_value
        self._state: IndicatorState = UNINITIALIZED

    @property
    def min_candles(self) -> int:
        return self.period + 1

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    def reset(self) -> None:
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> float:
        """Seed averages from the first ``period`` deltas, then apply Wilder smoothing."""
        if len(candles) < self.min_candles:
            raise InsufficientDataError("RSI", self.min_candles, len(candles))

        changes = [candles[i].close - candles[i - 1].close for i in range(1, len(candles))]
        sum_gain = 0.0
        sum_loss = 0.0
        for change in changes[: self.period]:
            if change > 0:
                sum_gain += change
            else:
                sum_loss += abs(change)

        avg_gain = sum_gain / self.period
        avg_loss = sum_loss / self.period
        for change in changes[self.period :]:
            avg_gain, avg_loss = self._smooth(avg_gain, avg_loss, change)

        value = self._rsi(avg_gain, avg_loss)
        self._state = Ready(value, RSIInternals(avg_gain, avg_loss, candles[-1].close))
        return value

    def update(self, candle: Candle) -> float:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("RSI")
        internals = self._state.internals
        avg_gain, avg_loss = self._smooth(
            internals.avg_gain, internals.avg_loss, candle.close - internals.prev_close
        )
        value = self._rsi(avg_gain, avg_loss)
        self._state = Ready(value, RSIInternals(avg_gain, avg_loss, candle.close))
        return value

    def _smooth(self, avg_gain: float, avg_loss: float, change: float) -> tuple[float, float]:
        gain = change if change > 0 else 0.0
        loss = abs(change) if change < 0 else 0.0
        avg_gain = (avg_gain * (self.period - 1) + gain) / self.period
        avg_loss = (avg_loss * (self.period - 1) + loss) / self.period
        return avg_gain, avg_loss

    def _rsi(self, avg_gain: float, avg_loss: float) -> float:
        if avg_loss == 0:
            return self.neutral_value if avg_gain == 0 else OSCILLATOR_MAX
        rs = avg_gain / avg_loss
        return _clamp(OSCILLATOR_MAX - OSCILLATOR_MAX / (1.0 + rs))


class StochasticIndicator:
    """%K from the rolling high/low range, smoothed by SMA(smooth); %D = SMA(d_period) of %K."""

    def __init__(
        self,
        k_period: int = 14,
        smooth: int = 3,
        d_period: int = 3,
        neutral_value: float = DEFAULT_NEUTRAL_FALLBACK,
    ) -> None:
        if min(k_period, smooth, d_period) < 1:
            raise InvalidConfigurationError("Stochastic periods must be at least 1")
        _check_neutral(neutral_value)
        self.k_period = k_period
        self.smooth = smooth
        self.d_period = d_period
        self.neutral_value = neutral_value
        self._highs: deque[float] = deque(maxlen=k_period)
        self._lows: deque[float] = deque(maxlen=k_period)
        self._raw_k: deque[float] = deque(maxlen=smooth)
        self._smoothed_k: deque[float] = deque(maxlen=d_period)
        self._state: IndicatorState = UNINITIALIZED

    @property
    def min_candles(self) -> int:
        return self.k_period + self.smooth + self.d_period - 2

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    def reset(self) -> None:
        self._highs.clear()
        self._lows.clear()
        self._raw_k.clear()
        self._smoothed_k.clear()
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> StochasticResult:
        if len(candles) < self.min_candles:
            raise InsufficientDataError("Stochastic", self.min_candles, len(candles))

        raw_values: list[float] = []
        for end in range(self.k_period, len(candles) + 1):
            window = candles[end - self.k_period : end]
            raw_values.append(
                self._raw_k_value(
                    window[-1].close,
                    max(candle.high for candle in window),
                    min(candle.low for candle in window),
                )
            )
        smoothed_values = [
            sma(raw_values[end - self.smooth : end]) for end in range(self.smooth, len(raw_values) + 1)
        ]

        self.reset()
        for candle in candles[-self.k_period :]:
            self._highs.append(candle.high)
            self._lows.append(candle.low)
        self._raw_k.extend(raw_values[-self.smooth :])
        self._smoothed_k.extend(smoothed_values[-self.d_period :])
        return self._commit()

    def update(self, candle: Candle) -> StochasticResult:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("Stochastic")
        self._highs.append(candle.high)
        self._lows.append(candle.low)
        self._raw_k.append(self._raw_k_value(candle.close, max(self._highs), min(self._lows)))
        self._smoothed_k.append(sma(list(self._raw_k)))
        return self._commit()

    def _commit(self) -> StochasticResult:
        result = StochasticResult(
            k=_clamp(self._smoothed_k[-1]),
            d=_clamp(sma(list(self._smoothed_k))),
        )
        self._state = Ready(result)
        return result

    def _raw_k_value(self, close: float, highest: float, lowest: float) -> float:
        if highest == lowest:
            return self.neutral_value
        return (close - lowest) / (highest - lowest) * OSCILLATOR_MAX

    @staticmethod
    def is_oversold(k: float) -> bool:
        return k < STOCH_OVERSOLD

    @staticmethod
    def is_overbought(k: float) -> bool:
        return k > STOCH_OVERBOUGHT

    @staticmethod
    def detect_crossover(current: StochasticResult, previous: StochasticResult) -> Crossover:
        if previous.k <= previous.d and current.k > current.d:
            return Crossover.BULLISH
        if previous.k >= previous.d and current.k < current.d:
            return Crossover.BEARISH
        return Crossover.NONE

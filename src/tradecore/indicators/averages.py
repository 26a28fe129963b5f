"""Moving averages and volatility: EMA and ATR with batch and incremental paths."""

from __future__ import annotations

from typing import Sequence

from tradecore.errors import InsufficientDataError, InvalidConfigurationError, NotInitializedError
from tradecore.indicators.models import UNINITIALIZED, ATRInternals, EMAInternals, IndicatorState, Ready
from tradecore.market import Candle


def sma(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def true_range(current: Candle, previous: Candle) -> float:
    return max(
        current.high - current.low,
        abs(current.high - previous.close),
        abs(current.low - previous.close),
    )


class EMAIndicator:
    def __init__(self, period: int) -> None:
        if period < 1:
            raise InvalidConfigurationError("EMA period must be at least 1")
        self.period = period
        self.multiplier = 2.0 / (period + 1.0)
        self._state: IndicatorState = UNINITIALIZED

    @property
    def min_candles(self) -> int:
        return self.period

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    def reset(self) -> None:
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> float:
        if len(candles) < self.min_candles:
            raise InsufficientDataError("EMA", self.min_candles, len(candles))

        ema = sma([candle.close for candle in candles[: self.period]])
        for candle in candles[self.period :]:
            ema = self._step(ema, candle.close)
        self._state = Ready(ema, EMAInternals(ema=ema))
        return ema

    def update(self, candle: Candle) -> float:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("EMA")
        ema = self._step(self._state.internals.ema, candle.close)
        self._state = Ready(ema, EMAInternals(ema=ema))
        return ema

    def _step(self, ema: float, close: float) -> float:
        return (close - ema) * self.multiplier + ema


class ATRIndicator:
    """Average True Range, reported as a percentage of the latest close.

    The first ``period`` true ranges are averaged to seed the value, after which
    Wilder smoothing (factor ``1/period``) applies. ``atr_value`` exposes the raw
    price-unit ATR.
    """

    def __init__(self, period: int) -> None:
        if period < 1:
            raise InvalidConfigurationError("ATR period must be at least 1")
        self.period = period
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

    @property
    def atr_value(self) -> float:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("ATR")
        return self._state.internals.atr

    def reset(self) -> None:
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> float:
        if len(candles) < self.min_candles:
            raise InsufficientDataError("ATR", self.min_candles, len(candles))

        ranges = [true_range(candles[i], candles[i - 1]) for i in range(1, len(candles))]
        atr = sma(ranges[: self.period])
        for value in ranges[self.period :]:
            atr = self._smooth(atr, value)

        last_close = candles[-1].close
        percent = self._as_percent(atr, last_close)
        self._state = Ready(percent, ATRInternals(atr=atr, prev_close=last_close))
        return percent

    def update(self, candle: Candle) -> float:
        if not isinstance(self._state, Ready):
            raise NotInitializedError("ATR")
        internals = self._state.internals
        value = max(
            candle.high - candle.low,
            abs(candle.high - internals.prev_close),
            abs(candle.low - internals.prev_close),
        )
        atr = self._smooth(internals.atr, value)
        percent = self._as_percent(atr, candle.close)
        self._state = Ready(percent, ATRInternals(atr=atr, prev_close=candle.close))
        return percent

    def _smooth(self, atr: float, value: float) -> float:
        return (atr * (self.period - 1) + value) / self.period

    @staticmethod
    def _as_percent(atr: float, close: float) -> float:
        if close <= 0:
            return 0.0
        return atr / close * 100.0

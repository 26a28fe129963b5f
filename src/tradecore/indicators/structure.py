"""Candle structure: swing points and rejection wicks."""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional, Sequence

from tradecore.errors import InsufficientDataError, InvalidConfigurationError, NotInitializedError
from tradecore.indicators.models import (
    UNINITIALIZED,
    IndicatorState,
    Ready,
    SwingPoint,
    SwingPoints,
    WickAnalysis,
    WickDirection,
)
from tradecore.market import Candle, Direction

logger = logging.getLogger(__name__)


def _is_swing_high(candles: Sequence[Candle], index: int, left: int, right: int) -> bool:
    pivot = candles[index].high
    for i in range(index - left, index):
        if candles[i].high > pivot:
            return False
    for i in range(index + 1, index + right + 1):
        if candles[i].high > pivot:
            return False
    return True


def _is_swing_low(candles: Sequence[Candle], index: int, left: int, right: int) -> bool:
    pivot = candles[index].low
    for i in range(index - left, index):
        if candles[i].low < pivot:
            return False
    for i in range(index + 1, index + right + 1):
        if candles[i].low < pivot:
            return False
    return True


class SwingPointDetector:
    """Zigzag-style pivots confirmed by ``depth`` candles on each side."""

    def __init__(self, depth: int = 12) -> None:
        if depth < 1:
            raise InvalidConfigurationError("swing depth must be at least 1")
        self.depth = depth
        self._buffer: deque[Candle] = deque(maxlen=2 * depth + 1)
        self._seen = 0
        self._state: IndicatorState = UNINITIALIZED

    @property
    def min_candles(self) -> int:
        return 2 * self.depth + 1

    @property
    def state(self) -> IndicatorState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return isinstance(self._state, Ready)

    def reset(self) -> None:
        self._buffer.clear()
        self._seen = 0
        self._state = UNINITIALIZED

    def calculate(self, candles: Sequence[Candle]) -> SwingPoints:
        if len(candles) < self.min_candles:
            raise InsufficientDataError("SwingPointDetector", self.min_candles, len(candles))

        points = self._scan(candles, self.depth)
        self._buffer.clear()
        self._buffer.extend(candles[-self.min_candles :])
        self._seen = len(candles)
        self._state = Ready(points)
        logger.debug(
            "Swing scan complete: %d candles, %d highs, %d lows",
            len(candles),
            len(points.highs),
            len(points.lows),
        )
        return points

    def update(self, candle: Candle) -> SwingPoints:
        """Return the pivots confirmed by ``candle`` (at most one high and one low)."""
        if not isinstance(self._state, Ready):
            raise NotInitializedError("SwingPointDetector")
        self._buffer.append(candle)
        self._seen += 1
        window = list(self._buffer)
        center = self.depth
        index = self._seen - 1 - self.depth
        highs: list[SwingPoint] = []
        lows: list[SwingPoint] = []
        if _is_swing_high(window, center, self.depth, self.depth):
            highs.append(SwingPoint(window[center].timestamp, window[center].high, index))
        if _is_swing_low(window, center, self.depth, self.depth):
            lows.append(SwingPoint(window[center].timestamp, window[center].low, index))
        points = SwingPoints(highs=highs, lows=lows)
        self._state = Ready(points)
        return points

    def detect_pending(self, candles: Sequence[Candle], quick_depth: Optional[int] = None) -> SwingPoints:
        """Pivots confirmed by only ``quick_depth`` right-hand candles and not yet by ``depth``."""
        if quick_depth is None:
            quick_depth = max(2, self.depth // 3)
        if len(candles) < self.depth + quick_depth + 1:
            return SwingPoints()
        confirmed = self._scan(candles, self.depth) if len(candles) >= self.min_candles else SwingPoints()
        confirmed_highs = {point.index for point in confirmed.highs}
        confirmed_lows = {point.index for point in confirmed.lows}
        quick = self._scan(candles, quick_depth)
        return SwingPoints(
            highs=[point for point in quick.highs if point.index not in confirmed_highs],
            lows=[point for point in quick.lows if point.index not in confirmed_lows],
        )

    def _scan(self, candles: Sequence[Candle], right: int) -> SwingPoints:
        highs: list[SwingPoint] = []
        lows: list[SwingPoint] = []
        for index in range(self.depth, len(candles) - right):
            candle = candles[index]
            if _is_swing_high(candles, index, self.depth, right):
                highs.append(SwingPoint(candle.timestamp, candle.high, index))
            if _is_swing_low(candles, index, self.depth, right):
                lows.append(SwingPoint(candle.timestamp, candle.low, index))
        return SwingPoints(highs=highs, lows=lows)


class WickAnalyzer:
    def __init__(self, wick_to_body_threshold: float = 2.0) -> None:
        if wick_to_body_threshold <= 0:
            raise InvalidConfigurationError("wick_to_body_threshold must be positive")
        self.threshold = wick_to_body_threshold

    def analyze(self, candle: Candle) -> WickAnalysis:
        body = abs(candle.close - candle.open)
        upper = candle.high - max(candle.open, candle.close)
        lower = min(candle.open, candle.close) - candle.low

        if body == 0:
            return WickAnalysis(False, WickDirection.NONE, max(upper, lower), 0.0, 0.0)

        if upper >= lower:
            direction, wick, blocks = WickDirection.UP, upper, Direction.LONG
        else:
            direction, wick, blocks = WickDirection.DOWN, lower, Direction.SHORT

        ratio = wick / body
        if ratio <= self.threshold:
            return WickAnalysis(False, WickDirection.NONE, wick, body, 0.0)
        return WickAnalysis(True, direction, wick, body, ratio, blocks)

    @staticmethod
    def blocks_signal(analysis: WickAnalysis, direction: Direction) -> bool:
        return analysis.has_large_wick and analysis.blocks_direction == direction

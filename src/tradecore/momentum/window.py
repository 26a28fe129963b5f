"""Time-bounded event history backing the momentum detectors."""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional

from tradecore.market import TickSide
from tradecore.momentum.models import (
    DEFAULT_CLEANUP_INTERVAL_MS,
    DEFAULT_MAX_HISTORY,
    DEFAULT_RATIO_CAP,
    MomentumEvent,
    WindowStats,
)

logger = logging.getLogger(__name__)


def capped_ratio(numerator: float, denominator: float, cap: float = DEFAULT_RATIO_CAP) -> float:
    """``numerator / denominator`` with 1.0 for no volume and ``cap`` / ``1/cap`` when one-sided."""
    if numerator == 0 and denominator == 0:
        return 1.0
    if denominator == 0:
        return cap
    if numerator == 0:
        return 1.0 / cap
    return numerator / denominator


class MomentumWindow:
    """Events ordered by timestamp, pruned to ``retention_ms`` behind the newest event.

    Pruning runs from ``add`` at most once per ``cleanup_interval_ms`` of event
    time; ``max_history`` bounds memory between cleanups.
    """

    def __init__(
        self,
        retention_ms: int,
        cleanup_interval_ms: int = DEFAULT_CLEANUP_INTERVAL_MS,
        max_history: int = DEFAULT_MAX_HISTORY,
        ratio_cap: float = DEFAULT_RATIO_CAP,
    ) -> None:
        self.retention_ms = retention_ms
        self.cleanup_interval_ms = cleanup_interval_ms
        self.ratio_cap = ratio_cap
        self._events: deque[MomentumEvent] = deque(maxlen=max_history)
        self._last_cleanup: Optional[int] = None

    def __len__(self) -> int:
        return len(self._events)

    @property
    def latest_timestamp(self) -> Optional[int]:
        return self._events[-1].timestamp if self._events else None

    @property
    def events(self) -> list[MomentumEvent]:
        return list(self._events)

    def add(self, timestamp: int, side: TickSide, price: float, size: float) -> MomentumEvent:
        event = MomentumEvent(timestamp=timestamp, side=side, price=price, size=size)
        self._events.append(event)
        if self._last_cleanup is None:
            self._last_cleanup = timestamp
        elif timestamp - self._last_cleanup >= self.cleanup_interval_ms:
            self.prune(timestamp)
        return event

    def prune(self, now: int) -> int:
        cutoff = now - self.retention_ms
        removed = 0
        while self._events and self._events[0].timestamp < cutoff:
            self._events.popleft()
            removed += 1
        self._last_cleanup = now
        if removed:
            logger.debug("Pruned %d events older than %d, %d remaining", removed, cutoff, len(self._events))
        return removed

    def clear(self) -> None:
        self._events.clear()
        self._last_cleanup = None

    def stats(self, window_ms: int, now: int) -> WindowStats:
        cutoff = now - window_ms
        buy = 0.0
        sell = 0.0
        count = 0
        notional = 0.0
        for event in self._events:
            if event.timestamp < cutoff or event.timestamp > now:
                continue
            count += 1
            notional += event.notional
            if event.side == TickSide.BUY:
                buy += event.size
            else:
                sell += event.size
        return WindowStats(buy_volume=buy, sell_volume=sell, event_count=count, notional=notional)

    def ratio(self, window_ms: int, now: int) -> float:
        stats = self.stats(window_ms, now)
        return capped_ratio(stats.buy_volume, stats.sell_volume, self.ratio_cap)

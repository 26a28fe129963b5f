"""Buy/sell imbalance detectors over trade ticks and order-book depth changes."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from tradecore.errors import InvalidConfigurationError
from tradecore.market import Direction, OrderBookSnapshot, Tick, TickSide
from tradecore.momentum.models import MomentumDetectorConfig, MomentumEvent, MomentumSpike
from tradecore.momentum.window import MomentumWindow, capped_ratio

logger = logging.getLogger(__name__)

DEFAULT_PRICE_MOVE_THRESHOLD_PCT = 0.01


class _WindowedDetector:
    name = "momentum"

    def __init__(self, config: MomentumDetectorConfig) -> None:
        self.config = config
        self.window = MomentumWindow(
            retention_ms=config.retention_ms,
            cleanup_interval_ms=config.cleanup_interval_ms,
            max_history=config.max_history,
            ratio_cap=config.ratio_cap,
        )

    def _resolve_now(self, now: Optional[int]) -> Optional[int]:
        return self.window.latest_timestamp if now is None else now

    def calculate_ratio(self, window_ms: Optional[int] = None, now: Optional[int] = None) -> float:
        """Buy/sell volume ratio over ``[now - window_ms, now]``; 1.0 with no history."""
        now = self._resolve_now(now)
        if now is None:
            return 1.0
        if window_ms is None:
            window_ms = self.config.detection_window_ms
        return self.window.ratio(window_ms, now)

    def detect_spike(self, now: Optional[int] = None) -> Optional[MomentumSpike]:
        now = self._resolve_now(now)
        if now is None:
            return None
        config = self.config
        stats = self.window.stats(config.detection_window_ms, now)

        if stats.event_count < config.min_event_count:
            logger.debug("%s: %d events below minimum %d", self.name, stats.event_count, config.min_event_count)
            return None
        if stats.notional < config.min_volume_notional:
            logger.debug("%s: notional %.2f below minimum %.2f", self.name, stats.notional, config.min_volume_notional)
            return None
        if stats.buy_volume == 0 and stats.sell_volume == 0:
            return None

        ratio = capped_ratio(stats.buy_volume, stats.sell_volume, config.ratio_cap)
        if ratio >= config.min_delta_ratio:
            direction = Direction.LONG
        elif ratio <= 1.0 / config.min_delta_ratio:
            direction = Direction.SHORT
            ratio = capped_ratio(stats.sell_volume, stats.buy_volume, config.ratio_cap)
        else:
            logger.debug("%s: ratio %.4f inside neutral band", self.name, ratio)
            return None

        confidence = min(
            config.max_confidence,
            (ratio - config.min_delta_ratio) / config.min_delta_ratio * 100.0,
        )
        spike = MomentumSpike(
            direction=direction,
            ratio=ratio,
            confidence=confidence,
            event_count=stats.event_count,
            notional=stats.notional,
            timestamp=now,
        )
        logger.info(
            "%s spike %s ratio=%.4f confidence=%.1f events=%d notional=%.2f",
            self.name,
            direction.value,
            ratio,
            confidence,
            stats.event_count,
            stats.notional,
        )
        return spike

    def clear(self) -> None:
        self.window.clear()


class TickDeltaAnalyzer(_WindowedDetector):
    name = "tick_delta"

    def add_tick(self, tick: Tick) -> MomentumEvent:
        return self.window.add(tick.timestamp, tick.side, tick.price, tick.size)


def removed_volume(previous: Sequence[tuple[float, float]], current: Sequence[tuple[float, float]]) -> float:
    """Size that disappeared from price levels between two snapshots of one book side."""
    current_sizes = {price: size for price, size in current}
    removed = 0.0
    for price, size in previous:
        remaining = current_sizes.get(price, 0.0)
        if remaining < size:
            removed += size - remaining
    return removed


class OrderFlowAnalyzer(_WindowedDetector):
    """Infers aggressive buying/selling from consecutive order-book snapshots.

    A mid-price rise beyond ``price_move_threshold_pct`` with ask depth removed
    records an aggressive BUY of the removed size; a fall with bid depth removed
    records an aggressive SELL. The first snapshot only seeds the baseline.
    """

    name = "order_flow"

    def __init__(
        self,
        config: MomentumDetectorConfig,
        price_move_threshold_pct: float = DEFAULT_PRICE_MOVE_THRESHOLD_PCT,
    ) -> None:
        if price_move_threshold_pct < 0:
            raise InvalidConfigurationError("price_move_threshold_pct must be non-negative")
        super().__init__(config)
        self.price_move_threshold_pct = price_move_threshold_pct
        self._last_snapshot: Optional[OrderBookSnapshot] = None
        self._last_mid: Optional[float] = None

    def process_snapshot(self, snapshot: OrderBookSnapshot) -> Optional[MomentumEvent]:
        mid = snapshot.mid_price
        if mid is None or mid <= 0:
            logger.debug("Skipping one-sided book for %s at %d", snapshot.symbol, snapshot.timestamp)
            return None

        previous, previous_mid = self._last_snapshot, self._last_mid
        self._last_snapshot = snapshot
        self._last_mid = mid
        if previous is None or previous_mid is None:
            return None

        change_pct = (mid - previous_mid) / previous_mid * 100.0
        if change_pct > self.price_move_threshold_pct:
            side, removed = TickSide.BUY, removed_volume(previous.asks, snapshot.asks)
        elif change_pct < -self.price_move_threshold_pct:
            side, removed = TickSide.SELL, removed_volume(previous.bids, snapshot.bids)
        else:
            return None

        if removed <= 0:
            return None
        logger.debug("Aggressive %s %.4f at %.6f (move %.4f%%)", side.value, removed, mid, change_pct)
        return self.window.add(snapshot.timestamp, side, mid, removed)

    def clear(self) -> None:
        super().clear()
        self._last_snapshot = None
        self._last_mid = None

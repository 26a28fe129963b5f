"""Momentum detectors built on trade-tick and order-book imbalances."""

from tradecore.momentum.analyzers import OrderFlowAnalyzer, TickDeltaAnalyzer, removed_volume
from tradecore.momentum.models import MomentumDetectorConfig, MomentumEvent, MomentumSpike, WindowStats
from tradecore.momentum.window import MomentumWindow, capped_ratio

__all__ = [
    "MomentumDetectorConfig",
    "MomentumEvent",
    "MomentumSpike",
    "MomentumWindow",
    "OrderFlowAnalyzer",
    "TickDeltaAnalyzer",
    "WindowStats",
    "capped_ratio",
    "removed_volume",
]

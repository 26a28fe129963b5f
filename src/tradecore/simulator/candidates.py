"""Candidate providers: map a market snapshot to a proposed entry."""

from __future__ import annotations

from typing import Callable, Optional

from tradecore.market import Direction
from tradecore.simulator.models import Candidate, MarketSnapshot

CandidateProvider = Callable[[MarketSnapshot], Optional[Candidate]]

RSI_MIDLINE = 50.0


def trend_candidate(snapshot: MarketSnapshot) -> Optional[Candidate]:
    """EMA fast/slow alignment confirmed by RSI on the same side of 50.

    Confidence starts at 0.5 and grows with RSI distance from the midline and
    with the EMA spread, then is scaled by the volume modifier when available.
    """
    if snapshot.ema_fast > snapshot.ema_slow and snapshot.rsi > RSI_MIDLINE:
        direction = Direction.LONG
    elif snapshot.ema_fast < snapshot.ema_slow and snapshot.rsi < RSI_MIDLINE:
        direction = Direction.SHORT
    else:
        return None

    rsi_strength = abs(snapshot.rsi - RSI_MIDLINE) / RSI_MIDLINE
    spread_percent = 0.0
    if snapshot.ema_slow > 0:
        spread_percent = abs(snapshot.ema_fast - snapshot.ema_slow) / snapshot.ema_slow * 100.0
    confidence = 0.5 + 0.3 * rsi_strength + 0.2 * min(1.0, spread_percent)
    if snapshot.volume is not None:
        confidence *= snapshot.volume.volume_modifier
    return Candidate(direction=direction, confidence=min(1.0, confidence))

"""Market data primitives shared across the decision pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from tradecore.errors import InvalidCandleError


class Direction(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"

    @property
    def sign(self) -> int:
        return 1 if self == Direction.LONG else -1


class TickSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Candle:
    timestamp: int  # bar close time, epoch ms
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    def __post_init__(self) -> None:
        if self.high < max(self.open, self.close):
            raise InvalidCandleError(f"Candle {self.timestamp}: high below body")
        if self.low > min(self.open, self.close):
            raise InvalidCandleError(f"Candle {self.timestamp}: low above body")
        if self.volume < 0:
            raise InvalidCandleError(f"Candle {self.timestamp}: negative volume")


@dataclass(frozen=True)
class Tick:
    timestamp: int
    price: float
    size: float
    side: TickSide


@dataclass(frozen=True)
class OrderBookSnapshot:
    symbol: str
    bids: tuple[tuple[float, float], ...]
    asks: tuple[tuple[float, float], ...]
    timestamp: int
    update_id: int = 0

    @property
    def best_bid(self) -> Optional[tuple[float, float]]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[tuple[float, float]]:
        return self.asks[0] if self.asks else None

    @property
    def mid_price(self) -> Optional[float]:
        if not self.bids or not self.asks:
            return None
        return (self.bids[0][0] + self.asks[0][0]) / 2.0

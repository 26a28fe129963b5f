"""PnL result structures."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_TAKER_FEE = 0.00055
DEFAULT_MAKER_FEE = 0.0002


@dataclass(frozen=True)
class PnLResult:
    pnl_gross: float
    fees: float
    pnl_net: float
    pnl_percent: float


@dataclass(frozen=True)
class PartialClose:
    quantity: float
    exit_price: float

"""Exchange-style PnL accounting for full closes, partial closes and breakeven."""

from __future__ import annotations

from typing import Iterable, Optional

from tradecore.errors import PnLInputError
from tradecore.market import Direction
from tradecore.pnl.models import PartialClose, PnLResult


def _check_price(name: str, value: float) -> None:
    if value <= 0:
        raise PnLInputError(f"{name} must be positive, got {value}")


def _check_fee(name: str, value: float) -> None:
    if not 0 <= value < 1:
        raise PnLInputError(f"{name} must be in [0, 1), got {value}")


def check_balance(balance: float) -> None:
    if balance < 0:
        raise PnLInputError(f"Balance must not be negative, got {balance}")


def calculate(
    direction: Direction,
    entry_price: float,
    exit_price: float,
    quantity: float,
    fee_rate: float,
    exit_fee_rate: Optional[float] = None,
) -> PnLResult:
    """PnL of closing ``quantity`` units.

    Fees are charged on both legs: ``entry_notional * fee_rate`` plus
    ``exit_notional * exit_fee_rate`` (``fee_rate`` when not given).
    ``pnl_percent`` is the gross price move relative to entry.
    """
    _check_price("entry_price", entry_price)
    _check_price("exit_price", exit_price)
    if quantity < 0:
        raise PnLInputError(f"quantity must not be negative, got {quantity}")
    _check_fee("fee_rate", fee_rate)
    if exit_fee_rate is None:
        exit_fee_rate = fee_rate
    _check_fee("exit_fee_rate", exit_fee_rate)

    sign = direction.sign
    pnl_gross = (exit_price - entry_price) * quantity * sign
    fees = entry_price * quantity * fee_rate + exit_price * quantity * exit_fee_rate
    pnl_percent = (exit_price - entry_price) / entry_price * 100.0 * sign
    return PnLResult(
        pnl_gross=pnl_gross,
        fees=fees,
        pnl_net=pnl_gross - fees,
        pnl_percent=pnl_percent,
    )


def calculate_partial_closes(
    direction: Direction,
    entry_price: float,
    closes: Iterable[PartialClose],
    fee_rate: float,
) -> PnLResult:
    """Sum of per-close results, each at its own quantity and exit price."""
    closes = list(closes)
    if not closes:
        raise PnLInputError("closes must not be empty")

    pnl_gross = 0.0
    fees = 0.0
    total_quantity = 0.0
    for close in closes:
        result = calculate(direction, entry_price, close.exit_price, close.quantity, fee_rate)
        pnl_gross += result.pnl_gross
        fees += result.fees
        total_quantity += close.quantity

    entry_notional = entry_price * total_quantity
    pnl_percent = pnl_gross / entry_notional * 100.0 if entry_notional > 0 else 0.0
    return PnLResult(
        pnl_gross=pnl_gross,
        fees=fees,
        pnl_net=pnl_gross - fees,
        pnl_percent=pnl_percent,
    )


def calculate_breakeven(direction: Direction, entry_price: float, fee_rate: float) -> float:
    """Exit price at which ``pnl_net`` is zero with ``fee_rate`` on both legs."""
    _check_price("entry_price", entry_price)
    _check_fee("fee_rate", fee_rate)
    if fee_rate == 0:
        return entry_price
    if direction == Direction.LONG:
        return entry_price * (1.0 + fee_rate) / (1.0 - fee_rate)
    return entry_price * (1.0 - fee_rate) / (1.0 + fee_rate)

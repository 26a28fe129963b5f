"""Pure PnL accounting functions."""

from tradecore.pnl.calculator import calculate, calculate_breakeven, calculate_partial_closes, check_balance
from tradecore.pnl.models import DEFAULT_MAKER_FEE, DEFAULT_TAKER_FEE, PartialClose, PnLResult

__all__ = [
    "DEFAULT_MAKER_FEE",
    "DEFAULT_TAKER_FEE",
    "PartialClose",
    "PnLResult",
    "calculate",
    "calculate_breakeven",
    "calculate_partial_closes",
    "check_balance",
]

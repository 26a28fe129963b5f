"""Aggregate statistics over a closed-trade ledger."""

from __future__ import annotations

import math
from typing import Iterable

from tradecore.simulator.models import ClosedTrade, TradeStatistics

ANNUALIZATION_DAYS = 252


def sharpe_ratio(returns: list[float]) -> float:
    """Mean over population standard deviation of fractional returns, scaled by sqrt(252)."""
    if len(returns) < 2:
        return 0.0
    mean = sum(returns) / len(returns)
    variance = sum((value - mean) ** 2 for value in returns) / len(returns)
    std = math.sqrt(variance)
    if std == 0:
        return 0.0
    return mean / std * math.sqrt(ANNUALIZATION_DAYS)


def summarize_trades(trades: Iterable[ClosedTrade], initial_balance: float) -> TradeStatistics:
    trades_list = list(trades)
    total = len(trades_list)

    balance = initial_balance
    peak = initial_balance
    max_drawdown = 0.0
    for trade in trades_list:
        balance += trade.pnl_net
        peak = max(peak, balance)
        max_drawdown = max(max_drawdown, peak - balance)

    if total == 0:
        return TradeStatistics(0, 0, 0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, balance)

    wins = [trade.pnl_net for trade in trades_list if trade.pnl_net > 0]
    losses = [trade.pnl_net for trade in trades_list if trade.pnl_net <= 0]
    gross_win = sum(wins)
    gross_loss = abs(sum(losses))
    avg_win = gross_win / len(wins) if wins else 0.0
    avg_loss = gross_loss / len(losses) if losses else 0.0
    net_pnl = sum(trade.pnl_net for trade in trades_list)

    return TradeStatistics(
        total_trades=total,
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=len(wins) / total * 100.0,
        gross_pnl=sum(trade.pnl_gross for trade in trades_list),
        total_fees=sum(trade.fees for trade in trades_list),
        net_pnl=net_pnl,
        net_pnl_percent=net_pnl / initial_balance * 100.0 if initial_balance > 0 else 0.0,
        profit_factor=gross_win / gross_loss if gross_loss > 0 else 0.0,
        win_loss_ratio=avg_win / avg_loss if avg_loss > 0 else 0.0,
        avg_win=avg_win,
        avg_loss=avg_loss,
        max_drawdown=max_drawdown,
        max_drawdown_percent=max_drawdown / initial_balance * 100.0 if initial_balance > 0 else 0.0,
        sharpe_ratio=sharpe_ratio([trade.pnl_percent / 100.0 for trade in trades_list]),
        avg_holding_time=sum(trade.holding_time for trade in trades_list) / total,
        final_balance=balance,
    )

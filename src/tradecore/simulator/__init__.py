"""Backtest engine and trade statistics."""

from tradecore.simulator.candidates import CandidateProvider, trend_candidate
from tradecore.simulator.engine import BacktestEngine
from tradecore.simulator.models import (
    END_OF_BACKTEST,
    STOP_LOSS,
    BacktestConfig,
    BacktestResult,
    Candidate,
    ClosedTrade,
    EquityPoint,
    IndicatorPeriods,
    MarketSnapshot,
    Position,
    PositionStatus,
    StrategyParams,
    TakeProfitLevel,
    TradeStatistics,
)
from tradecore.simulator.stats import sharpe_ratio, summarize_trades

__all__ = [
    "BacktestConfig",
    "BacktestEngine",
    "BacktestResult",
    "Candidate",
    "CandidateProvider",
    "ClosedTrade",
    "END_OF_BACKTEST",
    "EquityPoint",
    "IndicatorPeriods",
    "MarketSnapshot",
    "Position",
    "PositionStatus",
    "STOP_LOSS",
    "StrategyParams",
    "TakeProfitLevel",
    "TradeStatistics",
    "sharpe_ratio",
    "summarize_trades",
    "trend_candidate",
]

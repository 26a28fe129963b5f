"""Backtest configuration, position state and result structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Sequence

from tradecore.errors import InvalidConfigurationError
from tradecore.indicators import DEFAULT_NEUTRAL_FALLBACK, SwingPoints, VolumeAnalysis
from tradecore.market import Candle, Direction
from tradecore.pnl import DEFAULT_MAKER_FEE, DEFAULT_TAKER_FEE
from tradecore.rules import StrategyKind

END_OF_BACKTEST = "END_OF_BACKTEST"
STOP_LOSS = "STOP_LOSS"


@dataclass(frozen=True)
class IndicatorPeriods:
    rsi: int = 14
    ema_fast: int = 20
    ema_slow: int = 50
    atr: int = 14
    zigzag_depth: int = 12
    volume: int = 20
    neutral_fallback: float = DEFAULT_NEUTRAL_FALLBACK  # RSI value when a window has no movement

    def __post_init__(self) -> None:
        for name in ("rsi", "ema_fast", "ema_slow", "atr", "zigzag_depth", "volume"):
            if getattr(self, name) < 1:
                raise InvalidConfigurationError(f"indicator period {name} must be at least 1")
        if self.ema_fast >= self.ema_slow:
            raise InvalidConfigurationError("ema_fast must be shorter than ema_slow")
        if not 0 <= self.neutral_fallback <= 100:
            raise InvalidConfigurationError("neutral_fallback must be within [0, 100]")


@dataclass(frozen=True)
class StrategyParams:
    strategy: StrategyKind = StrategyKind.TREND_FOLLOWING
    stop_loss_percent: float = 1.5
    # (distance from entry in percent, share of the initial size to close in percent)
    take_profits: tuple[tuple[float, float], ...] = ((2.0, 50.0), (3.0, 30.0), (4.0, 20.0))
    min_confidence: float = 0.65
    warmup_bars: int = 200
    history_window: int = 200
    equity_sample_interval: int = 1000
    min_balance_fraction: float = 0.5

    def __post_init__(self) -> None:
        if self.stop_loss_percent <= 0:
            raise InvalidConfigurationError("stop_loss_percent must be positive")
        if not self.take_profits:
            raise InvalidConfigurationError("at least one take-profit level is required")
        for distance, share in self.take_profits:
            if distance <= 0 or share <= 0:
                raise InvalidConfigurationError("take-profit distance and share must be positive")
        if abs(sum(share for _, share in self.take_profits) - 100.0) > 1e-9:
            raise InvalidConfigurationError("take-profit close percents must sum to 100")
        if not 0 <= self.min_confidence <= 1:
            raise InvalidConfigurationError("min_confidence must be in [0, 1]")
        if self.warmup_bars < 0 or self.history_window < 1 or self.equity_sample_interval < 1:
            raise InvalidConfigurationError("warmup_bars, history_window and equity_sample_interval out of range")
        if not 0 <= self.min_balance_fraction <= 1:
            raise InvalidConfigurationError("min_balance_fraction must be in [0, 1]")


@dataclass(frozen=True)
class BacktestConfig:
    symbol: str
    initial_balance: float
    position_size_notional: float
    leverage: float = 1.0
    taker_fee: float = DEFAULT_TAKER_FEE
    maker_fee: float = DEFAULT_MAKER_FEE
    indicator_periods: IndicatorPeriods = field(default_factory=IndicatorPeriods)
    strategy_params: StrategyParams = field(default_factory=StrategyParams)

    def __post_init__(self) -> None:
        if self.initial_balance <= 0:
            raise InvalidConfigurationError("initial_balance must be positive")
        if self.position_size_notional <= 0:
            raise InvalidConfigurationError("position_size_notional must be positive")
        if self.leverage < 1:
            raise InvalidConfigurationError("leverage must be at least 1")
        if not 0 <= self.taker_fee < 1 or not 0 <= self.maker_fee < 1:
            raise InvalidConfigurationError("fees must be in [0, 1)")


class PositionStatus(str, Enum):
    NONE = "NONE"
    OPEN = "OPEN"
    PARTIALLY_CLOSED = "PARTIALLY_CLOSED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class TakeProfitLevel:
    level: int
    price: float
    close_percent: float

    @property
    def label(self) -> str:
        return f"TP{self.level}"


@dataclass
class Position:
    entry_time: int
    entry_price: float
    direction: Direction
    initial_size: float
    size: float
    stop_loss: float
    take_profit_levels: list[TakeProfitLevel]
    status: PositionStatus = PositionStatus.OPEN

    @property
    def is_open(self) -> bool:
        return self.status in {PositionStatus.OPEN, PositionStatus.PARTIALLY_CLOSED}


@dataclass(frozen=True)
class ClosedTrade:
    entry_time: int
    entry_price: float
    exit_time: int
    exit_price: float
    direction: Direction
    size: float
    pnl_gross: float
    fees: float
    pnl_net: float
    exit_reason: str
    pnl_percent: float

    @property
    def holding_time(self) -> int:
        return self.exit_time - self.entry_time


@dataclass(frozen=True)
class EquityPoint:
    timestamp: int
    balance: float


@dataclass(frozen=True)
class Candidate:
    direction: Direction
    confidence: float  # 0..1


@dataclass(frozen=True)
class MarketSnapshot:
    index: int
    candle: Candle
    candles: Sequence[Candle]
    rsi: float
    ema_fast: float
    ema_slow: float
    atr_percent: float
    swing_points: SwingPoints
    volume: Optional[VolumeAnalysis]
    context: tuple[Sequence[Candle], ...] = ()


@dataclass(frozen=True)
class TradeStatistics:
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    gross_pnl: float
    total_fees: float
    net_pnl: float
    net_pnl_percent: float
    profit_factor: float
    win_loss_ratio: float
    avg_win: float
    avg_loss: float
    max_drawdown: float
    max_drawdown_percent: float
    sharpe_ratio: float
    avg_holding_time: float
    final_balance: float


@dataclass(frozen=True)
class BacktestResult:
    symbol: str
    trades: list[ClosedTrade]
    equity_curve: list[EquityPoint]
    statistics: TradeStatistics
    blocked_signals: dict[str, int]
    bars_processed: int

    @property
    def win_rate(self) -> float:
        return self.statistics.win_rate

    @property
    def net_pnl(self) -> float:
        return self.statistics.net_pnl

    @property
    def profit_factor(self) -> float:
        return self.statistics.profit_factor

    @property
    def max_drawdown(self) -> float:
        return self.statistics.max_drawdown

    @property
    def sharpe_ratio(self) -> float:
        return self.statistics.sharpe_ratio

    @property
    def avg_holding_time(self) -> float:
        return self.statistics.avg_holding_time

    @property
    def final_balance(self) -> float:
        return self.statistics.final_balance

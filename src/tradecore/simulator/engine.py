"""Bar-by-bar replay of entries, stop-loss/take-profit exits and equity."""

from __future__ import annotations

import logging
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Optional, Sequence

from tradecore.errors import InsufficientDataError, NotInitializedError
from tradecore.indicators import (
    ATRIndicator,
    EMAIndicator,
    Ready,
    RSIIndicator,
    SwingPointDetector,
    VolumeCalculator,
    VolumeCalculatorConfig,
)
from tradecore.market import Candle, Direction
from tradecore.pnl import calculate, check_balance
from tradecore.rules import BlockingContext, BlockingRulesGate
from tradecore.simulator.candidates import CandidateProvider, trend_candidate
from tradecore.simulator.models import (
    END_OF_BACKTEST,
    STOP_LOSS,
    BacktestConfig,
    BacktestResult,
    ClosedTrade,
    EquityPoint,
    IndicatorPeriods,
    MarketSnapshot,
    Position,
    PositionStatus,
    TakeProfitLevel,
)
from tradecore.simulator.stats import summarize_trades

logger = logging.getLogger(__name__)


def _ready_value(indicator, name: str) -> float:
    state = indicator.state
    if not isinstance(state, Ready):
        raise NotInitializedError(name)
    return state.value


class _BarIndicators:
    """Per-run indicator instances; the running ones advance on every bar."""

    def __init__(self, periods: IndicatorPeriods) -> None:
        self.rsi = RSIIndicator(periods.rsi, neutral_value=periods.neutral_fallback)
        self.ema_fast = EMAIndicator(periods.ema_fast)
        self.ema_slow = EMAIndicator(periods.ema_slow)
        self.atr = ATRIndicator(periods.atr)
        self.swings = SwingPointDetector(periods.zigzag_depth)
        self.volume = VolumeCalculator(VolumeCalculatorConfig(rolling_period=periods.volume))

    def advance(self, candles: Sequence[Candle], index: int) -> None:
        for indicator in (self.rsi, self.ema_fast, self.ema_slow, self.atr):
            if indicator.is_ready:
                indicator.update(candles[index])
            elif index + 1 >= indicator.min_candles:
                indicator.calculate(candles[: index + 1])


@dataclass
class _RunState:
    balance: float
    peak_balance: float
    max_drawdown: float = 0.0
    position: Optional[Position] = None
    last_signal_time: Optional[int] = None
    trades: list[ClosedTrade] = field(default_factory=list)
    equity_curve: list[EquityPoint] = field(default_factory=list)
    blocked_signals: dict[str, int] = field(default_factory=dict)


class BacktestEngine:
    """Deterministic single-position replay over a closed-candle sequence.

    Each bar with an open position checks the stop-loss first against the
    intrabar worst price (low for LONG, high for SHORT), then the nearest
    take-profit level against the intrabar best price, filling at most one level
    per bar. Partial closes consume
    ``close_percent`` of the initial size; the last remaining level closes the
    rest. A position still open after the final bar is closed at its close with
    reason ``END_OF_BACKTEST``.
    """

    def __init__(
        self,
        config: BacktestConfig,
        blocking_gate: Optional[BlockingRulesGate] = None,
        candidate_provider: Optional[CandidateProvider] = None,
    ) -> None:
        self.config = config
        self.blocking_gate = blocking_gate or BlockingRulesGate()
        self.candidate_provider = candidate_provider or trend_candidate

    def run(self, candles_base: Sequence[Candle], *candles_context: Sequence[Candle]) -> BacktestResult:
        config = self.config
        params = config.strategy_params
        candles = list(candles_base)
        contexts = [list(series) for series in candles_context]
        context_times = [[candle.timestamp for candle in series] for series in contexts]

        state = _RunState(balance=config.initial_balance, peak_balance=config.initial_balance)
        indicators = _BarIndicators(config.indicator_periods)
        logger.info(
            "Backtest %s started: %d bars, %d context series", config.symbol, len(candles), len(contexts)
        )

        for index, candle in enumerate(candles):
            indicators.advance(candles, index)
            if state.position is not None:
                self._manage_position(state, candle)
            if state.position is None and index >= params.warmup_bars:
                self._try_entry(state, indicators, candles, index, contexts, context_times)
            if index % params.equity_sample_interval == 0:
                state.equity_curve.append(EquityPoint(candle.timestamp, state.balance))

        if candles:
            last = candles[-1]
            if state.position is not None:
                self._close(state, last.close, last.timestamp, END_OF_BACKTEST, config.taker_fee)
            final_point = EquityPoint(last.timestamp, state.balance)
            if not state.equity_curve or state.equity_curve[-1] != final_point:
                state.equity_curve.append(final_point)

        statistics = summarize_trades(state.trades, config.initial_balance)
        logger.info(
            "Backtest %s finished: %d trades, net %.2f, max drawdown %.2f, blocked %s",
            config.symbol,
            statistics.total_trades,
            statistics.net_pnl,
            state.max_drawdown,
            state.blocked_signals,
        )
        return BacktestResult(
            symbol=config.symbol,
            trades=state.trades,
            equity_curve=state.equity_curve,
            statistics=statistics,
            blocked_signals=dict(state.blocked_signals),
            bars_processed=len(candles),
        )

    def _manage_position(self, state: _RunState, candle: Candle) -> None:
        position = state.position
        is_long = position.direction == Direction.LONG

        worst = candle.low if is_long else candle.high
        if (is_long and worst <= position.stop_loss) or (not is_long and worst >= position.stop_loss):
            self._close(state, position.stop_loss, candle.timestamp, STOP_LOSS, self.config.taker_fee)
            return

        # at most one take-profit fills per bar; farther levels wait for the next bar
        best = candle.high if is_long else candle.low
        level = position.take_profit_levels[0]
        if (is_long and best < level.price) or (not is_long and best > level.price):
            return
        position.take_profit_levels.pop(0)
        size = None
        if position.take_profit_levels:
            size = position.initial_size * level.close_percent / 100.0
        self._close(state, level.price, candle.timestamp, level.label, self.config.maker_fee, size)

    def _close(
        self,
        state: _RunState,
        price: float,
        timestamp: int,
        reason: str,
        exit_fee_rate: float,
        size: Optional[float] = None,
    ) -> None:
        check_balance(state.balance)
        position = state.position
        full_close = size is None or size >= position.size
        quantity = position.size if full_close else size

        result = calculate(
            position.direction,
            position.entry_price,
            price,
            quantity,
            self.config.taker_fee,
            exit_fee_rate=exit_fee_rate,
        )
        trade = ClosedTrade(
            entry_time=position.entry_time,
            entry_price=position.entry_price,
            exit_time=timestamp,
            exit_price=price,
            direction=position.direction,
            size=quantity,
            pnl_gross=result.pnl_gross,
            fees=result.fees,
            pnl_net=result.pnl_net,
            exit_reason=reason,
            pnl_percent=result.pnl_percent,
        )
        state.trades.append(trade)
        state.balance += result.pnl_net
        state.peak_balance = max(state.peak_balance, state.balance)
        state.max_drawdown = max(state.max_drawdown, state.peak_balance - state.balance)

        if full_close:
            position.size = 0.0
            position.take_profit_levels.clear()
            position.status = PositionStatus.CLOSED
            state.position = None
        else:
            position.size -= quantity
            position.status = PositionStatus.PARTIALLY_CLOSED
        logger.debug(
            "%s %s closed %.6f @ %.6f net %.4f balance %.2f",
            reason,
            position.direction.value,
            quantity,
            price,
            result.pnl_net,
            state.balance,
        )

    def _try_entry(
        self,
        state: _RunState,
        indicators: _BarIndicators,
        candles: Sequence[Candle],
        index: int,
        contexts: list[list[Candle]],
        context_times: list[list[int]],
    ) -> None:
        config = self.config
        params = config.strategy_params
        candle = candles[index]
        if state.balance < config.initial_balance * params.min_balance_fraction:
            return

        try:
            snapshot = self._snapshot(indicators, candles, index, contexts, context_times)
        except (InsufficientDataError, NotInitializedError) as exc:
            logger.debug("Bar %d skipped: %s", index, exc)
            return

        candidate = self.candidate_provider(snapshot)
        if candidate is None or candidate.confidence < params.min_confidence:
            return

        gate_window = max(params.history_window, self.blocking_gate.config.recent_high_lookback)
        decision = self.blocking_gate.check_blocking_rules(
            BlockingContext(
                direction=candidate.direction,
                strategy=params.strategy,
                candles=candles[max(0, index + 1 - gate_window) : index + 1],
                current_price=candle.close,
                ema=snapshot.ema_slow,
                has_active_position=state.position is not None,
                now=candle.timestamp,
                last_signal_time=state.last_signal_time,
                rsi=snapshot.rsi,
            )
        )
        if decision.blocked:
            state.blocked_signals[decision.block_id] = state.blocked_signals.get(decision.block_id, 0) + 1
            return

        margin = config.position_size_notional / config.leverage
        if margin > state.balance:
            logger.debug("Bar %d skipped: margin %.2f exceeds balance %.2f", index, margin, state.balance)
            return

        state.position = self._open(candle, candidate.direction)
        state.last_signal_time = candle.timestamp

    def _snapshot(
        self,
        indicators: _BarIndicators,
        candles: Sequence[Candle],
        index: int,
        contexts: list[list[Candle]],
        context_times: list[list[int]],
    ) -> MarketSnapshot:
        window_size = self.config.strategy_params.history_window
        candle = candles[index]
        window = candles[max(0, index + 1 - window_size) : index + 1]

        context_windows = []
        for series, times in zip(contexts, context_times):
            end = bisect_right(times, candle.timestamp)
            context_windows.append(series[max(0, end - window_size) : end])

        return MarketSnapshot(
            index=index,
            candle=candle,
            candles=window,
            rsi=_ready_value(indicators.rsi, "RSI"),
            ema_fast=_ready_value(indicators.ema_fast, "EMA fast"),
            ema_slow=_ready_value(indicators.ema_slow, "EMA slow"),
            atr_percent=_ready_value(indicators.atr, "ATR"),
            swing_points=indicators.swings.calculate(window),
            volume=indicators.volume.calculate(window),
            context=tuple(context_windows),
        )

    def _open(self, candle: Candle, direction: Direction) -> Position:
        params = self.config.strategy_params
        entry = candle.close
        sign = direction.sign
        levels = [
            TakeProfitLevel(level=number, price=entry * (1.0 + sign * distance / 100.0), close_percent=share)
            for number, (distance, share) in enumerate(params.take_profits, start=1)
        ]
        levels.sort(key=lambda level: abs(level.price - entry))
        position = Position(
            entry_time=candle.timestamp,
            entry_price=entry,
            direction=direction,
            initial_size=self.config.position_size_notional / entry,
            size=self.config.position_size_notional / entry,
            stop_loss=entry * (1.0 - sign * params.stop_loss_percent / 100.0),
            take_profit_levels=levels,
        )
        logger.debug(
            "Opened %s @ %.6f size %.6f SL %.6f TPs %s",
            direction.value,
            entry,
            position.size,
            position.stop_loss,
            [round(level.price, 6) for level in levels],
        )
        return position

import math

from tradecore.market import Candle, Direction
from tradecore.pnl import DEFAULT_TAKER_FEE, PartialClose, calculate_breakeven, calculate_partial_closes
from tradecore.rules import BlockingContext, BlockingRulesConfig, BlockingRulesGate, StrategyKind
from tradecore.simulator import BacktestConfig, BacktestEngine, StrategyParams

BAR_MS = 5 * 60_000

candles = []
previous = 0.60
for i in range(1500):
    close = 0.60 + 0.02 * math.sin(i / 40.0) + 0.0004 * i / 10.0
    candles.append(
        Candle(
            timestamp=(i + 1) * BAR_MS,
            open=previous,
            high=max(previous, close) * 1.001,
            low=min(previous, close) * 0.999,
            close=close,
            volume=1000.0 + 300.0 * math.cos(i / 7.0),
        )
    )
    previous = close

gate = BlockingRulesGate(BlockingRulesConfig(recent_high_lookback=100))
decision = gate.check_blocking_rules(
    BlockingContext(
        direction=Direction.LONG,
        strategy=StrategyKind.TREND_FOLLOWING,
        candles=candles[-200:],
        current_price=candles[-1].close,
        ema=candles[-1].close,
        has_active_position=False,
        now=candles[-1].timestamp,
    )
)
print("Gate:", "blocked" if decision.blocked else "allowed", decision.block_id, decision.reason)

partial = calculate_partial_closes(
    Direction.SHORT,
    1.1748,
    [PartialClose(28.4, 1.1676), PartialClose(28.4, 1.1617), PartialClose(28.4, 1.1363)],
    DEFAULT_TAKER_FEE,
)
print("Partial closes net:", round(partial.pnl_net, 4))
print("Breakeven LONG @ 1.1316:", round(calculate_breakeven(Direction.LONG, 1.1316, DEFAULT_TAKER_FEE), 6))

config = BacktestConfig(
    symbol="XRPUSDT",
    initial_balance=1000.0,
    position_size_notional=100.0,
    leverage=10.0,
    strategy_params=StrategyParams(min_confidence=0.55, equity_sample_interval=100),
)
result = BacktestEngine(config, blocking_gate=BlockingRulesGate(BlockingRulesConfig(recent_high_lookback=100))).run(
    candles
)
print("Trades:", result.statistics.total_trades)
print("Win rate:", round(result.win_rate, 1))
print("Net PnL:", round(result.net_pnl, 4))
print("Max drawdown:", round(result.max_drawdown, 4))
print("Blocked:", result.blocked_signals)

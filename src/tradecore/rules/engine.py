"""Ordered veto chain evaluated before any entry."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from tradecore.errors import InsufficientDataError
from tradecore.indicators import VolumeCalculator, VolumeCalculatorConfig, WickAnalyzer
from tradecore.market import Direction
from tradecore.rules.models import BlockDecision, BlockId, BlockingContext, BlockingRulesConfig, StrategyKind

logger = logging.getLogger(__name__)


def check_insufficient_data(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    config = gate.config
    if not config.enable_data_check:
        return None
    if len(context.candles) < config.min_candles:
        return BlockDecision.block(
            BlockId.INSUFFICIENT_DATA,
            f"Insufficient data: {len(context.candles)} < {config.min_candles} candles",
        )
    return None


def check_ema_distance(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    config = gate.config
    if not config.enable_ema_distance_check:
        return None
    if context.ema <= 0:
        return BlockDecision.block(BlockId.EMA_DISTANCE, f"Invalid reference EMA {context.ema}")
    distance = abs(context.current_price - context.ema) / context.ema * 100.0
    if distance > config.max_distance_to_ema_percent:
        return BlockDecision.block(
            BlockId.EMA_DISTANCE,
            f"EMA distance {distance:.2f}% > {config.max_distance_to_ema_percent}%",
        )
    return None


def check_active_position(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    if not gate.config.enable_position_check:
        return None
    if context.has_active_position:
        return BlockDecision.block(BlockId.ACTIVE_POSITION, "Active position exists (max 1 position)")
    return None


def check_cooldown(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    config = gate.config
    if not config.enable_cooldown_check or context.last_signal_time is None:
        return None
    elapsed = context.now - context.last_signal_time
    if elapsed < config.cooldown_period_ms:
        return BlockDecision.block(
            BlockId.COOLDOWN,
            f"Cooldown active: {elapsed}ms < {config.cooldown_period_ms}ms",
        )
    return None


def check_volume(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    config = gate.config
    if not config.enable_volume_checks:
        return None
    try:
        analysis = gate.volume_calculator.calculate(context.candles)
    except InsufficientDataError:
        return None
    if analysis.avg_volume == 0:
        return None

    if context.strategy == StrategyKind.LEVEL_BASED:
        threshold, block_id = config.volume_min_multiplier_level, BlockId.VOLUME_LEVEL
    else:
        threshold, block_id = config.volume_min_multiplier_trend, BlockId.VOLUME_TREND
    if analysis.is_low_volume and analysis.volume_ratio < threshold:
        return BlockDecision.block(
            block_id,
            f"Low volume: {analysis.volume_ratio:.2f}x < {threshold}x",
        )
    return None


def check_wicks(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    config = gate.config
    if not config.enable_wick_checks or len(context.candles) < config.wick_check_candles:
        return None
    for candle in context.candles[-config.wick_check_candles :]:
        analysis = gate.wick_analyzer.analyze(candle)
        if gate.wick_analyzer.blocks_signal(analysis, context.direction):
            block_id = BlockId.WICK_LONG if context.direction == Direction.LONG else BlockId.WICK_SHORT
            return BlockDecision.block(
                block_id,
                f"Large {analysis.wick_direction.value} wick at {candle.timestamp} "
                f"({analysis.wick_to_body_ratio:.2f}x body)",
            )
    return None


def check_recent_high(gate: BlockingRulesGate, context: BlockingContext) -> Optional[BlockDecision]:
    config = gate.config
    if not config.enable_ath_protection or context.direction != Direction.LONG:
        return None
    if len(context.candles) < config.recent_high_lookback:
        return None
    recent_high = max(candle.high for candle in context.candles[-config.recent_high_lookback :])
    if recent_high <= 0:
        return None
    drop = (recent_high - context.current_price) / recent_high * 100.0
    if drop < config.min_drop_from_recent_high_for_long:
        return BlockDecision.block(
            BlockId.NEAR_RECENT_HIGH,
            f"Too close to recent high: drop {drop:.2f}% < {config.min_drop_from_recent_high_for_long}%",
        )
    return None


BlockingRule = Callable[["BlockingRulesGate", BlockingContext], Optional[BlockDecision]]

DEFAULT_RULES: tuple[BlockingRule, ...] = (
    check_insufficient_data,
    check_ema_distance,
    check_active_position,
    check_cooldown,
    check_volume,
    check_wicks,
    check_recent_high,
)


class BlockingRulesGate:
    """Strict veto chain: the first rule that blocks wins and evaluation stops."""

    def __init__(
        self,
        config: BlockingRulesConfig = BlockingRulesConfig(),
        volume_calculator: Optional[VolumeCalculator] = None,
        wick_analyzer: Optional[WickAnalyzer] = None,
        rules: tuple[BlockingRule, ...] = DEFAULT_RULES,
    ) -> None:
        self.config = config
        self.volume_calculator = volume_calculator or VolumeCalculator(VolumeCalculatorConfig())
        self.wick_analyzer = wick_analyzer or WickAnalyzer()
        self.rules = rules

    def check_blocking_rules(self, context: BlockingContext) -> BlockDecision:
        for rule in self.rules:
            decision = rule(self, context)
            if decision is None:
                continue
            level = logging.DEBUG if decision.block_id == BlockId.COOLDOWN.value else logging.WARNING
            logger.log(
                level,
                "[%s] %s %s blocked: %s",
                decision.block_id,
                context.direction.value,
                context.strategy.value,
                decision.reason,
            )
            return decision
        return BlockDecision.allow()

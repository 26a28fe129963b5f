"""Blocking rules gate applied to every trade candidate."""

from tradecore.rules.engine import DEFAULT_RULES, BlockingRule, BlockingRulesGate
from tradecore.rules.models import BlockDecision, BlockId, BlockingContext, BlockingRulesConfig, StrategyKind

__all__ = [
    "BlockDecision",
    "BlockId",
    "BlockingContext",
    "BlockingRule",
    "BlockingRulesConfig",
    "BlockingRulesGate",
    "DEFAULT_RULES",
    "StrategyKind",
]

"""Stateful technical indicators with batch and incremental paths."""

from tradecore.indicators.averages import ATRIndicator, EMAIndicator, sma, true_range
from tradecore.indicators.bands import BollingerBandsIndicator
from tradecore.indicators.models import (
    DEFAULT_NEUTRAL_FALLBACK,
    UNINITIALIZED,
    BollingerResult,
    Crossover,
    IndicatorState,
    Ready,
    StochasticResult,
    SwingPoint,
    SwingPoints,
    Uninitialized,
    VolatilityRegimes,
    VolumeAnalysis,
    VolumeCalculatorConfig,
    WickAnalysis,
    WickDirection,
)
from tradecore.indicators.oscillators import RSIIndicator, StochasticIndicator
from tradecore.indicators.structure import SwingPointDetector, WickAnalyzer
from tradecore.indicators.volume import VolumeCalculator

__all__ = [
    "ATRIndicator",
    "BollingerBandsIndicator",
    "BollingerResult",
    "Crossover",
    "DEFAULT_NEUTRAL_FALLBACK",
    "EMAIndicator",
    "IndicatorState",
    "RSIIndicator",
    "Ready",
    "StochasticIndicator",
    "StochasticResult",
    "SwingPoint",
    "SwingPointDetector",
    "SwingPoints",
    "UNINITIALIZED",
    "Uninitialized",
    "VolatilityRegimes",
    "VolumeAnalysis",
    "VolumeCalculator",
    "VolumeCalculatorConfig",
    "WickAnalysis",
    "WickAnalyzer",
    "WickDirection",
    "sma",
    "true_range",
]

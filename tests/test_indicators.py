import math

import pytest

from tradecore.errors import InsufficientDataError, InvalidConfigurationError, NotInitializedError
from tradecore.indicators import (
    UNINITIALIZED,
    ATRIndicator,
    BollingerBandsIndicator,
    Crossover,
    EMAIndicator,
    Ready,
    RSIIndicator,
    StochasticIndicator,
    StochasticResult,
    SwingPointDetector,
    VolumeCalculator,
    VolumeCalculatorConfig,
    WickAnalyzer,
    WickDirection,
)
from tradecore.market import Candle, Direction


def _series(closes, spread=0.5, volume=100.0):
    candles = []
    previous = closes[0]
    for index, close in enumerate(closes):
        candles.append(
            Candle(
                timestamp=index * 60_000,
                open=previous,
                high=max(previous, close) + spread,
                low=min(previous, close) - spread,
                close=close,
                volume=volume,
            )
        )
        previous = close
    return candles


def _wave(length):
    return [100.0 + 5.0 * math.sin(i / 5.0) + 0.05 * i for i in range(length)]


def _flat(length, price=100.0):
    return [Candle(i * 60_000, price, price, price, price, 100.0) for i in range(length)]


def test_rsi_all_gains_is_100():
    rsi = RSIIndicator(14)
    assert rsi.calculate(_series([100.0 + i for i in range(20)])) == 100.0


def test_rsi_all_losses_is_0():
    rsi = RSIIndicator(14)
    assert rsi.calculate(_series([100.0 - i for i in range(20)])) == 0.0


def test_rsi_constant_price_uses_neutral_fallback():
    assert RSIIndicator(14).calculate(_flat(30)) == 70.0
    assert RSIIndicator(14, neutral_value=50.0).calculate(_flat(30)) == 50.0


def test_rsi_rejects_out_of_range_neutral_value():
    with pytest.raises(InvalidConfigurationError):
        RSIIndicator(14, neutral_value=120.0)


@pytest.mark.parametrize(
    "factory",
    [lambda: EMAIndicator(10), lambda: ATRIndicator(10), lambda: RSIIndicator(10)],
)
def test_update_matches_full_recalculation(factory):
    candles = _series(_wave(60))
    incremental = factory()
    start = incremental.min_candles
    incremental.calculate(candles[:start])

    for index in range(start, len(candles)):
        value = incremental.update(candles[index])
        expected = factory().calculate(candles[: index + 1])
        assert value == pytest.approx(expected, rel=1e-9)


def test_update_requires_initialization():
    with pytest.raises(NotInitializedError):
        EMAIndicator(5).update(_flat(1)[0])
    with pytest.raises(NotInitializedError):
        RSIIndicator(5).update(_flat(1)[0])


def test_failed_calculate_leaves_state_untouched():
    rsi = RSIIndicator(14)
    with pytest.raises(InsufficientDataError) as excinfo:
        rsi.calculate(_flat(10))
    assert excinfo.value.required == 15
    assert excinfo.value.got == 10
    assert rsi.state == UNINITIALIZED

    rsi.calculate(_flat(20))
    ready = rsi.state
    with pytest.raises(InsufficientDataError):
        rsi.calculate(_flat(3))
    assert rsi.state is ready


def test_ema_seeds_with_simple_average():
    ema = EMAIndicator(3)
    candles = _series([1.0, 2.0, 3.0, 4.0])
    value = ema.calculate(candles)
    assert value == pytest.approx((4.0 - 2.0) * 0.5 + 2.0)
    assert isinstance(ema.state, Ready)


def test_atr_is_reported_as_percent_of_close():
    candles = [Candle(i * 60_000, 100.0, 101.0, 99.0, 100.0, 10.0) for i in range(20)]
    atr = ATRIndicator(14)
    assert atr.calculate(candles) == pytest.approx(2.0)
    assert atr.atr_value == pytest.approx(2.0)


def test_stochastic_flat_range_uses_neutral_fallback():
    stochastic = StochasticIndicator()
    result = stochastic.calculate(_flat(stochastic.min_candles))
    assert result == StochasticResult(k=70.0, d=70.0)


def test_stochastic_update_matches_calculate():
    candles = _series(_wave(50))
    incremental = StochasticIndicator(k_period=14, smooth=3, d_period=3)
    incremental.calculate(candles[:30])
    for index in range(30, len(candles)):
        result = incremental.update(candles[index])
        expected = StochasticIndicator(k_period=14, smooth=3, d_period=3).calculate(candles[: index + 1])
        assert result.k == pytest.approx(expected.k)
        assert result.d == pytest.approx(expected.d)
        assert 0.0 <= result.k <= 100.0


def test_stochastic_crossover():
    previous = StochasticResult(k=20.0, d=25.0)
    assert StochasticIndicator.detect_crossover(StochasticResult(45.0, 40.0), previous) == Crossover.BULLISH
    assert StochasticIndicator.detect_crossover(StochasticResult(10.0, 30.0), previous) == Crossover.NONE
    assert StochasticIndicator.is_oversold(15.0)
    assert StochasticIndicator.is_overbought(85.0)


def test_bollinger_zero_width_band():
    result = BollingerBandsIndicator(period=20).calculate(_flat(20))
    assert result.upper == result.middle == result.lower == 100.0
    assert result.width == 0.0
    assert result.percent_b == 0.5


def test_bollinger_percent_b_is_clamped():
    closes = [100.0] * 19 + [130.0]
    result = BollingerBandsIndicator(period=20, std_dev=1.0).calculate(_series(closes))
    assert result.percent_b == 1.0


def test_bollinger_squeeze_after_volatility_contracts():
    closes = [100.0 if i % 2 == 0 else 110.0 for i in range(39)]
    candles = _series(closes + [105.0] * 10)
    bands = BollingerBandsIndicator(period=20)
    bands.calculate(candles[:20])
    for candle in candles[20:39]:
        bands.update(candle)
    assert not bands.is_squeeze()

    for candle in candles[39:]:
        bands.update(candle)
    assert bands.is_squeeze()


def test_bollinger_adaptive_std_dev_regimes():
    bands = BollingerBandsIndicator()
    assert bands.adaptive_std_dev(atr=6.0, price=100.0) == 2.5
    assert bands.adaptive_std_dev(atr=4.0, price=100.0) == 2.0
    assert bands.adaptive_std_dev(atr=1.0, price=100.0) == 1.5


def _pivot_candles():
    highs = [10, 11, 12, 15, 12, 11, 10, 9, 8, 9, 10]
    return [Candle(i * 60_000, h - 0.5, h, h - 1, h - 0.5, 1.0) for i, h in enumerate(highs)]


def test_swing_points_batch():
    points = SwingPointDetector(depth=2).calculate(_pivot_candles())
    assert [point.index for point in points.highs] == [3]
    assert [(point.index, point.price) for point in points.lows] == [(8, 7)]


def test_swing_points_incremental_confirmation():
    candles = _pivot_candles()
    detector = SwingPointDetector(depth=2)
    detector.calculate(candles[:5])
    highs, lows = [], []
    for candle in candles[5:]:
        confirmed = detector.update(candle)
        highs.extend(confirmed.highs)
        lows.extend(confirmed.lows)
    assert [point.index for point in highs] == [3]
    assert [(point.index, point.price) for point in lows] == [(8, 7)]


def test_swing_flat_top_reports_every_plateau_bar():
    highs = [100, 101, 105, 105, 101, 100, 99]
    candles = [Candle(i * 60_000, h - 0.5, h, h - 1, h - 0.5, 1.0) for i, h in enumerate(highs)]
    points = SwingPointDetector(depth=2).calculate(candles)
    assert [point.index for point in points.highs] == [2, 3]


def test_swing_flat_bottom_incremental_matches_batch():
    lows = [20, 18, 15, 15, 18, 19, 21, 22]
    candles = [Candle(i * 60_000, low + 0.5, low + 1, low, low + 0.5, 1.0) for i, low in enumerate(lows)]
    detector = SwingPointDetector(depth=2)
    detector.calculate(candles[:5])
    confirmed = [point.index for point in detector.state.value.lows]
    for candle in candles[5:]:
        confirmed.extend(point.index for point in detector.update(candle).lows)
    assert confirmed == [2, 3]
    assert [point.index for point in SwingPointDetector(depth=2).calculate(candles).lows] == [2, 3]


def test_swing_pending_points():
    pending = SwingPointDetector(depth=2).detect_pending(_pivot_candles()[:10], quick_depth=1)
    assert [point.index for point in pending.lows] == [8]
    assert pending.highs == []


def _volume_candles(volumes):
    return [Candle(i * 60_000, 100.0, 100.0, 100.0, 100.0, volume) for i, volume in enumerate(volumes)]


def test_volume_ratio_low_and_high():
    calculator = VolumeCalculator()
    low = calculator.calculate(_volume_candles([100.0] * 19 + [10.0]))
    assert low.avg_volume == pytest.approx(95.5)
    assert low.is_low_volume
    assert low.volume_modifier == pytest.approx(0.9)

    high = calculator.calculate(_volume_candles([100.0] * 19 + [500.0]))
    assert high.volume_ratio == pytest.approx(500.0 / 120.0)
    assert high.is_high_volume
    assert high.volume_modifier == pytest.approx(1.1)


def test_volume_zero_average_is_neutral():
    analysis = VolumeCalculator().calculate(_volume_candles([0.0] * 20))
    assert analysis.volume_ratio == 0.0
    assert not analysis.is_low_volume
    assert analysis.volume_modifier == 1.0


def test_volume_requires_rolling_period():
    with pytest.raises(InsufficientDataError):
        VolumeCalculator(VolumeCalculatorConfig(rolling_period=20)).calculate(_volume_candles([1.0] * 5))


def test_volume_update_rolls_window():
    calculator = VolumeCalculator(VolumeCalculatorConfig(rolling_period=3))
    calculator.calculate(_volume_candles([10.0, 10.0, 10.0]))
    analysis = calculator.update(_volume_candles([40.0])[0])
    assert analysis.avg_volume == pytest.approx(20.0)
    assert analysis.volume_ratio == pytest.approx(2.0)


def test_wick_analysis():
    analyzer = WickAnalyzer()
    upper = analyzer.analyze(Candle(0, 100.0, 104.0, 99.5, 101.0))
    assert upper.has_large_wick
    assert upper.wick_direction == WickDirection.UP
    assert upper.wick_to_body_ratio == pytest.approx(3.0)
    assert WickAnalyzer.blocks_signal(upper, Direction.LONG)
    assert not WickAnalyzer.blocks_signal(upper, Direction.SHORT)

    lower = analyzer.analyze(Candle(0, 101.0, 101.2, 97.0, 100.0))
    assert lower.wick_direction == WickDirection.DOWN
    assert WickAnalyzer.blocks_signal(lower, Direction.SHORT)


def test_wick_doji_and_threshold_boundary():
    analyzer = WickAnalyzer()
    assert not analyzer.analyze(Candle(0, 100.0, 105.0, 95.0, 100.0)).has_large_wick
    assert not analyzer.analyze(Candle(0, 100.0, 103.0, 100.0, 101.0)).has_large_wick


def test_candle_rejects_invalid_bounds():
    with pytest.raises(ValueError):
        Candle(0, 100.0, 99.0, 98.0, 100.0)
    with pytest.raises(ValueError):
        Candle(0, 100.0, 101.0, 99.0, 100.0, volume=-1.0)

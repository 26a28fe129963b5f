import pytest

from tradecore.errors import InvalidConfigurationError
from tradecore.market import Direction, OrderBookSnapshot, Tick, TickSide
from tradecore.momentum import MomentumDetectorConfig, MomentumWindow, OrderFlowAnalyzer, TickDeltaAnalyzer


def _config(**overrides):
    values = dict(
        min_delta_ratio=2.0,
        detection_window_ms=60_000,
        min_event_count=50,
        min_volume_notional=5_000.0,
        max_confidence=100.0,
    )
    values.update(overrides)
    return MomentumDetectorConfig(**values)


def _feed(analyzer, buys, sells, size=100.0, price=1.0, start=0):
    timestamp = start
    for _ in range(buys):
        analyzer.add_tick(Tick(timestamp, price, size, TickSide.BUY))
        timestamp += 1
    for _ in range(sells):
        analyzer.add_tick(Tick(timestamp, price, size, TickSide.SELL))
        timestamp += 1
    return timestamp


def test_buy_imbalance_produces_long_spike():
    analyzer = TickDeltaAnalyzer(_config())
    _feed(analyzer, buys=40, sells=15)

    assert analyzer.calculate_ratio() == pytest.approx(40 / 15)
    spike = analyzer.detect_spike()
    assert spike is not None
    assert spike.direction == Direction.LONG
    assert spike.ratio == pytest.approx(2.6667, abs=1e-4)
    assert spike.confidence == pytest.approx((40 / 15 - 2.0) / 2.0 * 100.0)
    assert spike.event_count == 55
    assert spike.notional == pytest.approx(5_500.0)


def test_spike_requires_event_count_and_notional():
    analyzer = TickDeltaAnalyzer(_config(min_event_count=56))
    _feed(analyzer, buys=40, sells=15)
    assert analyzer.detect_spike() is None

    analyzer = TickDeltaAnalyzer(_config(min_volume_notional=5_501.0))
    _feed(analyzer, buys=40, sells=15)
    assert analyzer.detect_spike() is None


def test_sell_imbalance_reports_inverse_ratio():
    analyzer = TickDeltaAnalyzer(_config(min_event_count=10, min_volume_notional=0.0, max_confidence=60.0))
    _feed(analyzer, buys=10, sells=35)

    spike = analyzer.detect_spike()
    assert spike.direction == Direction.SHORT
    assert spike.ratio == pytest.approx(3.5)
    assert spike.confidence == 60.0


def test_neutral_band_returns_no_signal():
    analyzer = TickDeltaAnalyzer(_config(min_event_count=1, min_volume_notional=0.0))
    _feed(analyzer, buys=12, sells=10)
    assert analyzer.detect_spike() is None


def test_ratio_is_capped_when_one_sided():
    buys_only = TickDeltaAnalyzer(_config())
    _feed(buys_only, buys=5, sells=0)
    assert buys_only.calculate_ratio() == 10.0

    sells_only = TickDeltaAnalyzer(_config())
    _feed(sells_only, buys=0, sells=5)
    assert sells_only.calculate_ratio() == pytest.approx(0.1)

    empty = TickDeltaAnalyzer(_config())
    assert empty.calculate_ratio() == 1.0
    assert empty.detect_spike() is None


def test_one_sided_spike_confidence_is_finite():
    analyzer = TickDeltaAnalyzer(_config(min_event_count=1, min_volume_notional=0.0, max_confidence=80.0))
    _feed(analyzer, buys=0, sells=20)
    spike = analyzer.detect_spike()
    assert spike.direction == Direction.SHORT
    assert spike.ratio == 10.0
    assert spike.confidence == 80.0


def test_window_uses_event_time():
    analyzer = TickDeltaAnalyzer(_config(detection_window_ms=5_000))
    analyzer.add_tick(Tick(0, 1.0, 100.0, TickSide.BUY))
    analyzer.add_tick(Tick(10_000, 1.0, 100.0, TickSide.SELL))
    assert analyzer.calculate_ratio() == pytest.approx(0.1)
    assert analyzer.calculate_ratio(window_ms=20_000) == 1.0
    assert analyzer.calculate_ratio(now=2_000) == 10.0


def test_cleanup_runs_at_most_once_per_interval():
    window = MomentumWindow(retention_ms=2_000, cleanup_interval_ms=10_000)
    window.add(0, TickSide.BUY, 1.0, 1.0)
    window.add(5_000, TickSide.BUY, 1.0, 1.0)
    assert len(window) == 2

    window.add(10_000, TickSide.SELL, 1.0, 1.0)
    assert len(window) == 1
    assert window.events[0].timestamp == 10_000


def test_prune_keeps_twice_the_detection_window():
    analyzer = TickDeltaAnalyzer(_config(detection_window_ms=1_000, cleanup_interval_ms=1_000))
    for timestamp in (0, 500, 2_500, 3_000):
        analyzer.add_tick(Tick(timestamp, 1.0, 1.0, TickSide.BUY))
    removed = analyzer.window.prune(3_000)
    assert removed == 1
    assert [event.timestamp for event in analyzer.window.events] == [2_500, 3_000]


def test_clear_empties_history():
    analyzer = TickDeltaAnalyzer(_config())
    _feed(analyzer, buys=40, sells=15)
    analyzer.clear()
    assert len(analyzer.window) == 0
    assert analyzer.detect_spike() is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"min_delta_ratio": 1.0},
        {"detection_window_ms": 0},
        {"min_event_count": -1},
        {"max_confidence": 0.0},
        {"max_confidence": 150.0},
        {"ratio_cap": 1.5},
    ],
)
def test_invalid_config_rejected(overrides):
    with pytest.raises(InvalidConfigurationError):
        _config(**overrides)


def _book(timestamp, bids, asks):
    return OrderBookSnapshot(symbol="XRPUSDT", bids=tuple(bids), asks=tuple(asks), timestamp=timestamp)


def test_order_flow_first_snapshot_only_seeds():
    analyzer = OrderFlowAnalyzer(_config())
    assert analyzer.process_snapshot(_book(0, [(99.9, 5.0)], [(100.1, 5.0)])) is None
    assert len(analyzer.window) == 0


def test_order_flow_aggressive_buy_and_sell():
    analyzer = OrderFlowAnalyzer(_config(min_event_count=1, min_volume_notional=0.0))
    analyzer.process_snapshot(_book(0, [(99.9, 5.0)], [(100.1, 5.0), (100.2, 7.0)]))

    buy = analyzer.process_snapshot(_book(100, [(100.1, 3.0)], [(100.2, 7.0), (100.3, 4.0)]))
    assert buy.side == TickSide.BUY
    assert buy.size == pytest.approx(5.0)
    assert buy.price == pytest.approx(100.15)

    sell = analyzer.process_snapshot(_book(200, [(100.1, 2.0)], [(100.15, 4.0)]))
    assert sell.side == TickSide.SELL
    assert sell.size == pytest.approx(1.0)

    assert analyzer.calculate_ratio() == pytest.approx(5.0)
    spike = analyzer.detect_spike()
    assert spike.direction == Direction.LONG


def test_order_flow_ignores_small_moves():
    analyzer = OrderFlowAnalyzer(_config(), price_move_threshold_pct=0.5)
    analyzer.process_snapshot(_book(0, [(99.9, 5.0)], [(100.1, 5.0)]))
    assert analyzer.process_snapshot(_book(100, [(100.0, 5.0)], [(100.2, 1.0)])) is None


def test_order_flow_clear_resets_baseline():
    analyzer = OrderFlowAnalyzer(_config())
    analyzer.process_snapshot(_book(0, [(99.9, 5.0)], [(100.1, 5.0)]))
    analyzer.clear()
    assert analyzer.process_snapshot(_book(100, [(100.5, 1.0)], [(100.7, 1.0)])) is None

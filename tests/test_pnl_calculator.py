import pytest

from tradecore.errors import PnLInputError
from tradecore.market import Direction
from tradecore.pnl import (
    DEFAULT_MAKER_FEE,
    DEFAULT_TAKER_FEE,
    PartialClose,
    calculate,
    calculate_breakeven,
    calculate_partial_closes,
    check_balance,
)

FEE_RATES = [0.0, 0.0001, 0.00055, 0.001, 0.005, 0.01]


def test_short_loss_matches_settlement():
    result = calculate(Direction.SHORT, 1.1316, 1.1428, 88.4, DEFAULT_TAKER_FEE)
    assert result.pnl_gross == pytest.approx(-0.9901, abs=1e-4)
    assert result.fees == pytest.approx(0.1106, abs=1e-4)
    assert result.pnl_net == pytest.approx(-1.1007, abs=1e-4)
    assert result.pnl_percent == pytest.approx(-0.99, abs=1e-2)


def test_long_gain_has_positive_percent():
    result = calculate(Direction.LONG, 100.0, 110.0, 2.0, 0.0)
    assert result.pnl_gross == pytest.approx(20.0)
    assert result.fees == 0.0
    assert result.pnl_net == pytest.approx(20.0)
    assert result.pnl_percent == pytest.approx(10.0)


def test_partial_closes_sum_each_slice():
    closes = [
        PartialClose(quantity=28.4, exit_price=1.1676),
        PartialClose(quantity=28.4, exit_price=1.1617),
        PartialClose(quantity=28.4, exit_price=1.1363),
    ]
    slices = [calculate(Direction.SHORT, 1.1748, c.exit_price, c.quantity, DEFAULT_TAKER_FEE) for c in closes]
    assert [s.pnl_net for s in slices] == pytest.approx([0.1679, 0.3356, 1.0573], abs=1e-4)

    total = calculate_partial_closes(Direction.SHORT, 1.1748, closes, DEFAULT_TAKER_FEE)
    assert total.pnl_net == pytest.approx(1.5608, abs=1e-3)
    assert total.pnl_net == pytest.approx(sum(s.pnl_net for s in slices))
    assert total.fees == pytest.approx(sum(s.fees for s in slices))

    naive = (1.1748 - 1.1363) * sum(c.quantity for c in closes)
    assert total.pnl_gross != pytest.approx(naive)
    assert total.pnl_net != pytest.approx(naive)


def test_partial_close_percent_is_relative_to_entry_notional():
    closes = [PartialClose(1.0, 110.0), PartialClose(1.0, 90.0)]
    result = calculate_partial_closes(Direction.LONG, 100.0, closes, 0.0)
    assert result.pnl_gross == pytest.approx(0.0)
    assert result.pnl_percent == pytest.approx(0.0)


def test_partial_closes_require_input():
    with pytest.raises(PnLInputError):
        calculate_partial_closes(Direction.LONG, 100.0, [], DEFAULT_TAKER_FEE)


@pytest.mark.parametrize("direction", [Direction.LONG, Direction.SHORT])
@pytest.mark.parametrize("fee_rate", FEE_RATES)
def test_breakeven_nets_to_zero(direction, fee_rate):
    entry = 1.1316
    breakeven = calculate_breakeven(direction, entry, fee_rate)
    result = calculate(direction, entry, breakeven, 88.4, fee_rate)
    assert abs(result.pnl_net) < 1e-6


def test_breakeven_direction_and_zero_fee():
    assert calculate_breakeven(Direction.LONG, 2.5, 0.0) == 2.5
    assert calculate_breakeven(Direction.SHORT, 2.5, 0.0) == 2.5
    assert calculate_breakeven(Direction.LONG, 100.0, 0.001) > 100.0
    assert calculate_breakeven(Direction.SHORT, 100.0, 0.001) < 100.0


def test_separate_exit_fee_rate():
    result = calculate(Direction.LONG, 100.0, 110.0, 1.0, DEFAULT_TAKER_FEE, exit_fee_rate=DEFAULT_MAKER_FEE)
    assert result.fees == pytest.approx(100.0 * DEFAULT_TAKER_FEE + 110.0 * DEFAULT_MAKER_FEE)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(entry_price=0.0, exit_price=1.0, quantity=1.0, fee_rate=0.0),
        dict(entry_price=1.0, exit_price=-1.0, quantity=1.0, fee_rate=0.0),
        dict(entry_price=1.0, exit_price=1.0, quantity=-1.0, fee_rate=0.0),
        dict(entry_price=1.0, exit_price=1.0, quantity=1.0, fee_rate=1.0),
        dict(entry_price=1.0, exit_price=1.0, quantity=1.0, fee_rate=0.0, exit_fee_rate=-0.1),
    ],
)
def test_invalid_inputs_rejected(kwargs):
    with pytest.raises(PnLInputError):
        calculate(Direction.LONG, **kwargs)


def test_check_balance():
    check_balance(0.0)
    check_balance(12.5)
    with pytest.raises(PnLInputError):
        check_balance(-0.01)

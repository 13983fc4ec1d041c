from datetime import date, timedelta

import pytest

from tradekernel.core.types import Bar
from tradekernel.indicators.base import MACDValue, PivotLevel, StochasticValue
from tradekernel.indicators.builtin.momentum import MACD, Stochastic
from tradekernel.indicators.builtin.pivot import Pivot


def _make_bars(closes: list[float], spread: float = 1.0) -> list[Bar]:
    return [
        Bar(
            code="WES", exchange="ASX", date=date(2024, 5, 1) + timedelta(days=i),
            open=c, high=c + spread, low=c - spread, close=c, volume=500.0,
        )
        for i, c in enumerate(closes)
    ]


class TestMACD:
    def test_linear_series_has_constant_line(self):
        # Both EMAs are seeded at their steady-state lag, so the line is flat.
        series = MACD(fast_period=3, slow_period=5, signal_period=2).calculate(
            _make_bars([float(i) for i in range(1, 11)])
        )
        assert isinstance(series.values[0], MACDValue)
        assert not series.values[4].valid
        assert series.values[4].line == pytest.approx(1.0)
        for value in series.values[5:]:
            assert value.valid
            assert value.line == pytest.approx(1.0)
            assert value.signal == pytest.approx(1.0)
            assert value.histogram == pytest.approx(0.0)

    def test_histogram_is_line_minus_signal(self):
        closes = [10.0, 11.0, 10.5, 12.0, 13.5, 12.5, 14.0, 15.5, 14.5, 16.0, 17.0]
        series = MACD(3, 6, 3).calculate(_make_bars(closes))
        valid = [v for v in series.values if v.valid]
        assert valid
        for value in valid:
            assert value.histogram == pytest.approx(value.line - value.signal)

    def test_series_params(self):
        series = MACD(12, 26, 9).calculate(_make_bars([1.0] * 40))
        assert (series.period, series.param2, series.param3) == (12, 26, 9)
        assert series.latest().line == pytest.approx(0.0)

    def test_invalid_periods(self):
        assert MACD(12, 26, 0).calculate(_make_bars([1.0] * 5)) is None
        assert MACD(12, 26, 9).calculate([]) is None


class TestStochastic:
    def test_rising_series(self):
        series = Stochastic(k_period=3, d_period=2).calculate(_make_bars([1.0, 2.0, 3.0, 4.0, 5.0, 6.0]))
        assert isinstance(series.values[0], StochasticValue)
        assert [v.valid for v in series.values] == [False, False, False, True, True, True]
        # close sits 3/4 of the way up the window range every bar
        for value in series.values[3:]:
            assert value.k == pytest.approx(75.0)
            assert value.d == pytest.approx(75.0)

    def test_flat_range_gives_midpoint(self):
        series = Stochastic(k_period=2, d_period=2).calculate(_make_bars([10.0] * 4, spread=0.0))
        assert series.latest().k == pytest.approx(50.0)
        assert series.latest().d == pytest.approx(50.0)

    def test_bounded(self):
        closes = [10.0, 14.0, 9.0, 13.0, 8.0, 15.0, 11.0, 12.0]
        series = Stochastic(k_period=3, d_period=3).calculate(_make_bars(closes))
        for value in series.values:
            if value.valid:
                assert 0.0 <= value.k <= 100.0
                assert 0.0 <= value.d <= 100.0


class TestPivot:
    def test_first_bar_invalid(self):
        series = Pivot().calculate(_make_bars([10.0, 10.0]))
        assert not series.values[0].valid
        assert series.values[1].valid

    def test_levels_from_previous_bar(self):
        series = Pivot().calculate(_make_bars([10.0, 50.0]))
        value = series.values[1]
        # previous bar: H=11, L=9, C=10
        assert value.pivot == pytest.approx(10.0)
        assert value.r1 == pytest.approx(11.0)
        assert value.s1 == pytest.approx(9.0)
        assert value.r2 == pytest.approx(12.0)
        assert value.s2 == pytest.approx(8.0)
        assert value.r3 == pytest.approx(13.0)
        assert value.s3 == pytest.approx(7.0)

    def test_levels_ordered(self):
        series = Pivot().calculate(_make_bars([10.0, 12.0, 11.5, 13.0], spread=2.0))
        for value in series.values[1:]:
            levels = [value.s3, value.s2, value.s1, value.pivot, value.r1, value.r2, value.r3]
            assert levels == sorted(levels)
            assert len(set(levels)) == 7

    def test_level_selector(self):
        value = Pivot().calculate(_make_bars([10.0, 10.0])).values[1]
        assert value.level(PivotLevel.PIVOT) == pytest.approx(value.pivot)
        assert value.level(PivotLevel.R3) == pytest.approx(value.r3)
        assert value.level(PivotLevel.S2) == pytest.approx(value.s2)

    def test_empty(self):
        assert Pivot().calculate([]) is None

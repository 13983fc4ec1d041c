import pytest

from tradekernel.core.exceptions import StrategyError
from tradekernel.indicators.base import BollingerBand, IndicatorSpec, IndicatorType
from tradekernel.strategy import rules as r
from tradekernel.strategy.base import Strategy

ENTRY = r.cross_above(r.indicator(IndicatorType.SMA, 3), r.indicator(IndicatorType.SMA, 5))
EXIT = r.cross_below(r.indicator(IndicatorType.SMA, 3), r.indicator(IndicatorType.SMA, 5))


class TestStrategyValidation:
    def test_defaults(self):
        strategy = Strategy(name="sma", entry_long=ENTRY, exit_long=EXIT)
        assert strategy.position_size == 0.25
        assert strategy.max_positions == 1
        assert strategy.stop_loss_pct == 0.0
        assert not strategy.has_short_rules

    def test_missing_rules(self):
        with pytest.raises(StrategyError):
            Strategy(name="x", entry_long=ENTRY, exit_long=None)

    @pytest.mark.parametrize("size", [0.0, -0.1, 1.5])
    def test_position_size_range(self, size):
        with pytest.raises(StrategyError):
            Strategy(name="x", entry_long=ENTRY, exit_long=EXIT, position_size=size)

    def test_full_position_size_allowed(self):
        assert Strategy(name="x", entry_long=ENTRY, exit_long=EXIT, position_size=1.0).position_size == 1.0

    def test_negative_stops(self):
        with pytest.raises(StrategyError):
            Strategy(name="x", entry_long=ENTRY, exit_long=EXIT, stop_loss_pct=-1.0)
        with pytest.raises(StrategyError):
            Strategy(name="x", entry_long=ENTRY, exit_long=EXIT, take_profit_pct=-1.0)

    def test_max_positions(self):
        with pytest.raises(StrategyError):
            Strategy(name="x", entry_long=ENTRY, exit_long=EXIT, max_positions=0)


class TestRequiredIndicators:
    def test_collects_across_all_rules(self):
        strategy = Strategy(
            name="mixed",
            entry_long=ENTRY,
            exit_long=EXIT,
            entry_short=r.below(r.price("close"), r.bollinger(20, 2.0, BollingerBand.LOWER)),
            exit_short=r.above(r.price("close"), r.bollinger(20, 2.0, BollingerBand.MIDDLE)),
        )
        assert strategy.has_short_rules
        assert [op.key for op in strategy.indicator_operands()] == ["SMA_3", "SMA_5", "BOLLINGER_20_200"]
        assert strategy.required_indicators == [
            IndicatorSpec(IndicatorType.SMA, 3),
            IndicatorSpec(IndicatorType.SMA, 5),
            IndicatorSpec(IndicatorType.BOLLINGER, 20, 200),
        ]

    def test_price_only_strategy(self):
        strategy = Strategy(
            name="breakout",
            entry_long=r.above(r.price("close"), r.constant(100)),
            exit_long=r.below(r.price("close"), r.constant(90)),
        )
        assert strategy.required_indicators == []
        assert len(strategy.rules) == 2

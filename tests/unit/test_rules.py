import pytest

from tradekernel.indicators.base import BollingerBand, IndicatorSpec, IndicatorType, PivotLevel, StochasticLine
from tradekernel.strategy import rules as r
from tradekernel.strategy.rules import (
    Between,
    Comparison,
    ConstantOperand,
    IndicatorOperand,
    PriceOperand,
    RuleType,
    Window,
    indicator_key,
    indicator_operands,
)


class TestOperands:
    def test_price_operand_validates_field(self):
        assert str(r.price("close")) == "close"
        with pytest.raises(ValueError):
            PriceOperand("vwap")

    def test_constant_operand(self):
        op = r.constant(30)
        assert isinstance(op, ConstantOperand)
        assert op.value == 30.0
        assert str(op) == "30"

    def test_operands_are_immutable(self):
        op = r.indicator(IndicatorType.SMA, 20)
        with pytest.raises(AttributeError):
            op.period = 50

    def test_operand_rendering(self):
        assert str(r.indicator(IndicatorType.SMA, 20)) == "SMA(20)"
        assert str(r.macd(12, 26, 9)) == "MACD(12, 26, 9)"
        assert str(r.bollinger(20, 2.0, BollingerBand.UPPER)) == "BOLLINGER_UPPER(20, 2)"
        assert str(r.stochastic(14, 3, StochasticLine.D)) == "STOCHASTIC_D(14, 3)"
        assert str(r.pivot()) == "PIVOT"
        assert str(r.pivot(PivotLevel.R1)) == "PIVOT_R1"

    def test_rendering_unknown_selectors(self):
        assert str(r.indicator(IndicatorType.PIVOT, 0, 9)) == "PIVOT_9"
        assert str(r.indicator(IndicatorType.BOLLINGER, 20, 200, 7)) == "BOLLINGER_7(20, 2)"
        assert str(r.indicator(IndicatorType.STOCHASTIC, 14, 3, 5)) == "STOCHASTIC_5(14, 3)"
        rule = r.above(r.price("close"), r.indicator(IndicatorType.PIVOT, 0, 9))
        assert str(rule) == "ABOVE(close, PIVOT_9)"


class TestIndicatorKey:
    def test_single_period(self):
        assert indicator_key(r.indicator(IndicatorType.SMA, 20)) == "SMA_20"
        assert indicator_key(r.indicator(IndicatorType.RSI, 14)) == "RSI_14"

    def test_macd(self):
        assert indicator_key(r.macd(12, 26, 9)) == "MACD_12_26_9"

    def test_bollinger_bands_share_key(self):
        keys = {indicator_key(r.bollinger(20, 2.0, band)) for band in BollingerBand}
        assert keys == {"BOLLINGER_20_200"}

    def test_stochastic_lines_share_key(self):
        assert indicator_key(r.stochastic(14, 3, StochasticLine.K)) == "STOCHASTIC_14_3"
        assert indicator_key(r.stochastic(14, 3, StochasticLine.D)) == "STOCHASTIC_14_3"

    def test_pivot_levels_share_key(self):
        assert indicator_key(r.pivot(PivotLevel.S3)) == "PIVOT"

    def test_non_indicator_operands(self):
        assert indicator_key(r.price("close")) is None
        assert indicator_key(r.constant(1.0)) is None
        assert indicator_key(None) is None

    def test_spec_drops_component_selectors(self):
        assert r.bollinger(20, 2.0, BollingerBand.LOWER).spec == IndicatorSpec(IndicatorType.BOLLINGER, 20, 200)
        assert r.pivot(PivotLevel.R2).spec == IndicatorSpec(IndicatorType.PIVOT)

    def test_key_matches_engine_key(self):
        op = IndicatorOperand(IndicatorType.EMA, 9)
        assert op.key == IndicatorSpec(IndicatorType.EMA, 9).key


class TestRuleConstruction:
    def test_comparison_types(self):
        rule = r.cross_above(r.indicator(IndicatorType.SMA, 3), r.indicator(IndicatorType.SMA, 5))
        assert rule.type == RuleType.CROSS_ABOVE
        assert str(rule) == "CROSS_ABOVE(SMA(3), SMA(5))"

    def test_comparison_rejects_logical_type(self):
        with pytest.raises(ValueError):
            Comparison(RuleType.AND, r.price("close"), r.constant(1))

    def test_window_rejects_comparison_type(self):
        with pytest.raises(ValueError):
            Window(RuleType.ABOVE, r.above(r.price("close"), r.constant(1)), 3)

    def test_between_wraps_numeric_lower(self):
        rule = r.between(r.indicator(IndicatorType.RSI, 14), 30, 70)
        assert isinstance(rule, Between)
        assert rule.lower == ConstantOperand(30.0)
        assert rule.type == RuleType.BETWEEN
        assert str(rule) == "BETWEEN(RSI(14), 30, 70)"

    def test_nested_rendering(self):
        rule = r.and_(
            r.above(r.price("close"), r.indicator(IndicatorType.SMA, 20)),
            r.not_(r.below(r.indicator(IndicatorType.RSI, 14), r.constant(30))),
            r.consecutive(r.above(r.price("volume"), r.constant(1000)), 3),
        )
        assert str(rule) == (
            "AND(ABOVE(close, SMA(20)), NOT(BELOW(RSI(14), 30)), "
            "CONSECUTIVE(ABOVE(volume, 1000), 3))"
        )

    def test_rules_are_immutable(self):
        rule = r.above(r.price("close"), r.constant(1))
        with pytest.raises(AttributeError):
            rule.left = r.price("open")


class TestIndicatorOperands:
    def test_collects_distinct_keys(self):
        sma = r.indicator(IndicatorType.SMA, 20)
        rule = r.or_(
            r.above(r.price("close"), sma),
            r.and_(
                r.cross_above(sma, r.bollinger(20, 2.0, BollingerBand.UPPER)),
                r.below(r.price("close"), r.bollinger(20, 2.0, BollingerBand.LOWER)),
            ),
            r.any_of(r.above(r.macd(), r.constant(0)), 5),
        )
        keys = [op.key for op in indicator_operands(rule)]
        assert keys == ["SMA_20", "BOLLINGER_20_200", "MACD_12_26_9"]

    def test_price_only_rule(self):
        assert indicator_operands(r.above(r.price("close"), r.constant(10))) == []
        assert indicator_operands(None) == []

"""Pure rule evaluation against bars and precomputed indicator series.

Anything that cannot be resolved (missing series, warmup value, index out of
range, missing table) makes the enclosing comparison False. "Cannot confirm"
never raises.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence

from tradekernel.core.types import Bar
from tradekernel.indicators.base import (
    BollingerBand,
    BollingerValue,
    IndicatorSeries,
    MACDValue,
    PivotLevel,
    PivotValue,
    SimpleValue,
    StochasticLine,
    StochasticValue,
)
from tradekernel.strategy.rules import (
    Between,
    Comparison,
    Composite,
    ConstantOperand,
    IndicatorOperand,
    Not,
    Operand,
    PriceOperand,
    Rule,
    RuleType,
    Window,
)

EQUALS_TOLERANCE = 1e-9

IndicatorTable = Mapping[str, IndicatorSeries]


def _read_component(operand: IndicatorOperand, value: object) -> float | None:
    if isinstance(value, SimpleValue):
        return value.value
    if isinstance(value, BollingerValue):
        try:
            return value.band(BollingerBand(operand.param3))
        except ValueError:
            return None
    if isinstance(value, PivotValue):
        try:
            return value.level(PivotLevel(operand.param2))
        except ValueError:
            return None
    if isinstance(value, MACDValue):
        return value.line
    if isinstance(value, StochasticValue):
        return value.d if operand.param3 == StochasticLine.D else value.k
    return None


def resolve_operand(
    operand: Operand | None,
    bars: Sequence[Bar] | None,
    indicators: IndicatorTable | None,
    index: int,
) -> float | None:
    """Numeric value of ``operand`` at ``index``, or None if unavailable."""
    if operand is None:
        return None
    if isinstance(operand, ConstantOperand):
        return operand.value
    if not bars or index < 0 or index >= len(bars):
        return None
    if isinstance(operand, PriceOperand):
        return float(getattr(bars[index], operand.field))
    if isinstance(operand, IndicatorOperand):
        if indicators is None:
            return None
        series = indicators.get(operand.key)
        if series is None:
            return None
        value = series.at(index)
        if value is None or not value.valid:
            return None
        return _read_component(operand, value)
    return None


def _compare(rule_type: RuleType, left: float, right: float) -> bool:
    if rule_type == RuleType.ABOVE:
        return left > right
    if rule_type == RuleType.BELOW:
        return left < right
    return abs(left - right) <= EQUALS_TOLERANCE


def _evaluate_cross(
    rule: Comparison,
    bars: Sequence[Bar],
    indicators: IndicatorTable | None,
    index: int,
) -> bool:
    if index == 0:
        return False
    values = (
        resolve_operand(rule.left, bars, indicators, index - 1),
        resolve_operand(rule.right, bars, indicators, index - 1),
        resolve_operand(rule.left, bars, indicators, index),
        resolve_operand(rule.right, bars, indicators, index),
    )
    if any(v is None for v in values):
        return False
    prev_left, prev_right, left, right = values
    if rule.type == RuleType.CROSS_ABOVE:
        return prev_left <= prev_right and left > right
    return prev_left >= prev_right and left < right


def _evaluate_window(
    rule: Window,
    bars: Sequence[Bar],
    indicators: IndicatorTable | None,
    index: int,
) -> bool:
    if rule.lookback <= 0:
        return False
    start = index - rule.lookback + 1
    if rule.type == RuleType.CONSECUTIVE:
        # Needs a full window of evidence.
        if start < 0:
            return False
        return all(_evaluate(rule.child, bars, indicators, i) for i in range(start, index + 1))
    return any(_evaluate(rule.child, bars, indicators, i) for i in range(max(start, 0), index + 1))


def _evaluate(
    rule: Rule,
    bars: Sequence[Bar],
    indicators: IndicatorTable | None,
    index: int,
) -> bool:
    if isinstance(rule, Comparison):
        if rule.type in (RuleType.CROSS_ABOVE, RuleType.CROSS_BELOW):
            return _evaluate_cross(rule, bars, indicators, index)
        left = resolve_operand(rule.left, bars, indicators, index)
        right = resolve_operand(rule.right, bars, indicators, index)
        if left is None or right is None:
            return False
        return _compare(rule.type, left, right)

    if isinstance(rule, Between):
        value = resolve_operand(rule.value, bars, indicators, index)
        lower = resolve_operand(rule.lower, bars, indicators, index)
        if value is None or lower is None:
            return False
        return lower <= value <= rule.upper

    if isinstance(rule, Composite):
        if rule.type == RuleType.AND:
            return all(_evaluate(c, bars, indicators, index) for c in rule.children)
        return any(_evaluate(c, bars, indicators, index) for c in rule.children)

    if isinstance(rule, Not):
        return not _evaluate(rule.child, bars, indicators, index)

    if isinstance(rule, Window):
        return _evaluate_window(rule, bars, indicators, index)

    return False


def evaluate(
    rule: Rule | None,
    bars: Sequence[Bar] | None,
    indicators: IndicatorTable | None,
    index: int,
) -> bool:
    """Evaluate ``rule`` at bar ``index``.

    Args:
        rule: Root of the rule tree.
        bars: Bar sequence the indicator series were computed from.
        indicators: Series keyed by canonical indicator key. May be None for
            rules that only use prices and constants.
        index: Bar index to evaluate at.

    Returns:
        True only when the rule can be confirmed at ``index``.
    """
    if rule is None or not bars:
        return False
    if index < 0 or index >= len(bars):
        return False
    return _evaluate(rule, bars, indicators, index)

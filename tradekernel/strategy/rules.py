"""Operand and rule tree for strategy conditions.

Rules are immutable and built bottom-up, so a tree never contains cycles.
Every node renders back to its DSL text, e.g. ``CROSS_ABOVE(SMA(3), SMA(5))``
or ``BETWEEN(RSI(14), 30, 70)``, which is what gets logged.
"""
from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Literal, Union

from tradekernel.indicators.base import (
    BollingerBand,
    IndicatorSpec,
    IndicatorType,
    PivotLevel,
    StochasticLine,
)

PriceField = Literal["open", "high", "low", "close", "volume"]
PRICE_FIELDS: tuple[str, ...] = ("open", "high", "low", "close", "volume")


def _fmt_number(value: float) -> str:
    return f"{value:g}"


def _selector_name(selector: type[IntEnum], value: int) -> str:
    try:
        return selector(value).name
    except ValueError:
        return str(value)


# ---------------------------------------------------------------------------
# Operands
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PriceOperand:
    field: PriceField

    def __post_init__(self) -> None:
        if self.field not in PRICE_FIELDS:
            raise ValueError(f"Unknown price field: {self.field}")

    def __str__(self) -> str:
        return self.field


@dataclass(frozen=True)
class ConstantOperand:
    value: float

    def __str__(self) -> str:
        return _fmt_number(self.value)


@dataclass(frozen=True)
class IndicatorOperand:
    """Reference to one component of an indicator series.

    ``param2``/``param3`` follow the indicator: MACD (slow, signal), Bollinger
    (multiplier x 100, band), Stochastic (%D period, line), Pivot (level, -).
    """

    indicator: IndicatorType
    period: int = 0
    param2: int = 0
    param3: int = 0

    @property
    def spec(self) -> IndicatorSpec:
        """The series this operand reads; component selectors are dropped."""
        t = self.indicator
        if t in (IndicatorType.PIVOT, IndicatorType.OBV):
            return IndicatorSpec(t)
        if t == IndicatorType.MACD:
            return IndicatorSpec(t, self.period, self.param2, self.param3)
        if t in (IndicatorType.BOLLINGER, IndicatorType.STOCHASTIC):
            return IndicatorSpec(t, self.period, self.param2)
        return IndicatorSpec(t, self.period)

    @property
    def key(self) -> str:
        return self.spec.key

    def __str__(self) -> str:
        t = self.indicator
        if t == IndicatorType.PIVOT:
            if self.param2 == PivotLevel.PIVOT:
                return "PIVOT"
            return f"PIVOT_{_selector_name(PivotLevel, self.param2)}"
        if t == IndicatorType.OBV:
            return "OBV"
        if t == IndicatorType.MACD:
            return f"MACD({self.period}, {self.param2}, {self.param3})"
        if t == IndicatorType.BOLLINGER:
            band = _selector_name(BollingerBand, self.param3)
            return f"BOLLINGER_{band}({self.period}, {_fmt_number(self.param2 / 100.0)})"
        if t == IndicatorType.STOCHASTIC:
            line = _selector_name(StochasticLine, self.param3)
            return f"STOCHASTIC_{line}({self.period}, {self.param2})"
        return f"{t.value}({self.period})"


Operand = Union[PriceOperand, ConstantOperand, IndicatorOperand]


def price(field: PriceField) -> PriceOperand:
    return PriceOperand(field)


def constant(value: float) -> ConstantOperand:
    return ConstantOperand(float(value))


def indicator(indicator_type: IndicatorType, period: int, param2: int = 0, param3: int = 0) -> IndicatorOperand:
    return IndicatorOperand(indicator_type, period, param2, param3)


def macd(fast: int = 12, slow: int = 26, signal: int = 9) -> IndicatorOperand:
    return IndicatorOperand(IndicatorType.MACD, fast, slow, signal)


def bollinger(period: int = 20, multiplier: float = 2.0, band: BollingerBand = BollingerBand.MIDDLE) -> IndicatorOperand:
    return IndicatorOperand(IndicatorType.BOLLINGER, period, int(round(multiplier * 100)), int(band))


def stochastic(k_period: int = 14, d_period: int = 3, line: StochasticLine = StochasticLine.K) -> IndicatorOperand:
    return IndicatorOperand(IndicatorType.STOCHASTIC, k_period, d_period, int(line))


def pivot(level: PivotLevel = PivotLevel.PIVOT) -> IndicatorOperand:
    return IndicatorOperand(IndicatorType.PIVOT, 0, int(level), 0)


def indicator_key(operand: Operand | None) -> str | None:
    """Canonical series key for an indicator operand, None for anything else."""
    if not isinstance(operand, IndicatorOperand):
        return None
    return operand.key


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class RuleType(Enum):
    CROSS_ABOVE = "CROSS_ABOVE"
    CROSS_BELOW = "CROSS_BELOW"
    ABOVE = "ABOVE"
    BELOW = "BELOW"
    EQUALS = "EQUALS"
    BETWEEN = "BETWEEN"
    AND = "AND"
    OR = "OR"
    NOT = "NOT"
    CONSECUTIVE = "CONSECUTIVE"
    ANY_OF = "ANY_OF"


_COMPARISON_TYPES = frozenset({
    RuleType.CROSS_ABOVE, RuleType.CROSS_BELOW,
    RuleType.ABOVE, RuleType.BELOW, RuleType.EQUALS,
})
_COMPOSITE_TYPES = frozenset({RuleType.AND, RuleType.OR})
_WINDOW_TYPES = frozenset({RuleType.CONSECUTIVE, RuleType.ANY_OF})


@dataclass(frozen=True)
class Comparison:
    """Two-operand comparison, including the cross-over transitions."""

    type: RuleType
    left: Operand
    right: Operand

    def __post_init__(self) -> None:
        if self.type not in _COMPARISON_TYPES:
            raise ValueError(f"{self.type.value} is not a comparison rule")

    def operands(self) -> Iterator[Operand]:
        yield self.left
        yield self.right

    def __str__(self) -> str:
        return f"{self.type.value}({self.left}, {self.right})"


@dataclass(frozen=True)
class Between:
    """Inclusive range check: ``lower <= value <= upper``."""

    value: Operand
    lower: Operand
    upper: float

    @property
    def type(self) -> RuleType:
        return RuleType.BETWEEN

    def operands(self) -> Iterator[Operand]:
        yield self.value
        yield self.lower

    def __str__(self) -> str:
        return f"BETWEEN({self.value}, {self.lower}, {_fmt_number(self.upper)})"


@dataclass(frozen=True)
class Composite:
    type: RuleType
    children: tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        if self.type not in _COMPOSITE_TYPES:
            raise ValueError(f"{self.type.value} is not a composite rule")

    def operands(self) -> Iterator[Operand]:
        for child in self.children:
            yield from child.operands()

    def __str__(self) -> str:
        return f"{self.type.value}({', '.join(str(c) for c in self.children)})"


@dataclass(frozen=True)
class Not:
    child: Rule

    @property
    def type(self) -> RuleType:
        return RuleType.NOT

    def operands(self) -> Iterator[Operand]:
        yield from self.child.operands()

    def __str__(self) -> str:
        return f"NOT({self.child})"


@dataclass(frozen=True)
class Window:
    """CONSECUTIVE or ANY_OF over the last ``lookback`` bars."""

    type: RuleType
    child: Rule
    lookback: int

    def __post_init__(self) -> None:
        if self.type not in _WINDOW_TYPES:
            raise ValueError(f"{self.type.value} is not a windowed rule")

    def operands(self) -> Iterator[Operand]:
        yield from self.child.operands()

    def __str__(self) -> str:
        return f"{self.type.value}({self.child}, {self.lookback})"


Rule = Union[Comparison, Between, Composite, Not, Window]


def above(left: Operand, right: Operand) -> Comparison:
    return Comparison(RuleType.ABOVE, left, right)


def below(left: Operand, right: Operand) -> Comparison:
    return Comparison(RuleType.BELOW, left, right)


def equals(left: Operand, right: Operand) -> Comparison:
    return Comparison(RuleType.EQUALS, left, right)


def cross_above(left: Operand, right: Operand) -> Comparison:
    return Comparison(RuleType.CROSS_ABOVE, left, right)


def cross_below(left: Operand, right: Operand) -> Comparison:
    return Comparison(RuleType.CROSS_BELOW, left, right)


def between(value: Operand, lower: Operand | float, upper: float) -> Between:
    if not isinstance(lower, (PriceOperand, ConstantOperand, IndicatorOperand)):
        lower = constant(lower)
    return Between(value, lower, float(upper))


def and_(*children: Rule) -> Composite:
    return Composite(RuleType.AND, tuple(children))


def or_(*children: Rule) -> Composite:
    return Composite(RuleType.OR, tuple(children))


def not_(child: Rule) -> Not:
    return Not(child)


def consecutive(child: Rule, lookback: int) -> Window:
    return Window(RuleType.CONSECUTIVE, child, lookback)


def any_of(child: Rule, lookback: int) -> Window:
    return Window(RuleType.ANY_OF, child, lookback)


def indicator_operands(rule: Rule | None) -> list[IndicatorOperand]:
    """Indicator operands referenced by ``rule``, one per canonical key."""
    if rule is None:
        return []
    seen: dict[str, IndicatorOperand] = {}
    for operand in rule.operands():
        if isinstance(operand, IndicatorOperand):
            seen.setdefault(operand.key, operand)
    return list(seen.values())

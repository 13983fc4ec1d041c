from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum, IntEnum
from typing import Union

from tradekernel.core.types import Bar


class IndicatorType(Enum):
    """Supported indicator types. The value is the canonical key prefix."""

    SMA = "SMA"
    EMA = "EMA"
    WMA = "WMA"
    RSI = "RSI"
    MACD = "MACD"
    STOCHASTIC = "STOCHASTIC"
    ROC = "ROC"
    BOLLINGER = "BOLLINGER"
    ATR = "ATR"
    STDDEV = "STDDEV"
    OBV = "OBV"
    VWAP = "VWAP"
    PIVOT = "PIVOT"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[IndicatorType, str] = {
    IndicatorType.SMA: "Simple Moving Average",
    IndicatorType.EMA: "Exponential Moving Average",
    IndicatorType.WMA: "Weighted Moving Average",
    IndicatorType.RSI: "Relative Strength Index",
    IndicatorType.MACD: "MACD",
    IndicatorType.STOCHASTIC: "Stochastic Oscillator",
    IndicatorType.ROC: "Rate of Change",
    IndicatorType.BOLLINGER: "Bollinger Bands",
    IndicatorType.ATR: "Average True Range",
    IndicatorType.STDDEV: "Standard Deviation",
    IndicatorType.OBV: "On-Balance Volume",
    IndicatorType.VWAP: "Volume-Weighted Average Price",
    IndicatorType.PIVOT: "Pivot Points",
}

# Indicators computed from the whole history rather than a period window.
PERIODLESS_TYPES: frozenset[IndicatorType] = frozenset({IndicatorType.OBV, IndicatorType.PIVOT})


class BollingerBand(IntEnum):
    UPPER = 0
    MIDDLE = 1
    LOWER = 2


class PivotLevel(IntEnum):
    PIVOT = 0
    R1 = 1
    R2 = 2
    R3 = 3
    S1 = 4
    S2 = 5
    S3 = 6


class StochasticLine(IntEnum):
    K = 0
    D = 1


@dataclass(frozen=True, slots=True)
class SimpleValue:
    date: date
    value: float
    valid: bool


@dataclass(frozen=True, slots=True)
class BollingerValue:
    date: date
    upper: float
    middle: float
    lower: float
    valid: bool

    def band(self, which: BollingerBand) -> float:
        if which == BollingerBand.UPPER:
            return self.upper
        if which == BollingerBand.LOWER:
            return self.lower
        return self.middle


@dataclass(frozen=True, slots=True)
class PivotValue:
    date: date
    pivot: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float
    valid: bool

    def level(self, which: PivotLevel) -> float:
        return (self.pivot, self.r1, self.r2, self.r3, self.s1, self.s2, self.s3)[which]


@dataclass(frozen=True, slots=True)
class MACDValue:
    date: date
    line: float
    signal: float
    histogram: float
    valid: bool


@dataclass(frozen=True, slots=True)
class StochasticValue:
    date: date
    k: float
    d: float
    valid: bool


IndicatorValue = Union[SimpleValue, BollingerValue, PivotValue, MACDValue, StochasticValue]


@dataclass(frozen=True)
class IndicatorSpec:
    """A request for one indicator series.

    Bollinger requests encode the multiplier in ``param2`` as multiplier x 100
    (``BOLLINGER_20_200`` is a 2.0 stddev band), matching the operand layout.
    """

    type: IndicatorType
    period: int = 0
    param2: int = 0
    param3: int = 0

    @property
    def key(self) -> str:
        """Canonical lookup key shared by the engine and the rule evaluator."""
        name = self.type.value
        if self.type in PERIODLESS_TYPES:
            return name
        if self.type == IndicatorType.MACD:
            return f"{name}_{self.period}_{self.param2}_{self.param3}"
        if self.type in (IndicatorType.BOLLINGER, IndicatorType.STOCHASTIC):
            return f"{name}_{self.period}_{self.param2}"
        return f"{name}_{self.period}"

    @property
    def multiplier(self) -> float:
        return self.param2 / 100.0 if self.param2 else 2.0


@dataclass
class IndicatorSeries:
    """Indicator values aligned 1:1 with the bar sequence they came from."""

    type: IndicatorType
    period: int = 0
    param2: int = 0
    param3: int = 0
    multiplier: float = 0.0
    values: list[IndicatorValue] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def add(self, value: IndicatorValue) -> None:
        self.values.append(value)

    def at(self, index: int) -> IndicatorValue | None:
        if index < 0 or index >= len(self.values):
            return None
        return self.values[index]

    def latest(self) -> IndicatorValue | None:
        """Most recent valid value, or None if the series never warmed up."""
        for value in reversed(self.values):
            if value.valid:
                return value
        return None


class Indicator(ABC):
    name: str
    warmup_period: int

    @abstractmethod
    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None: ...

from __future__ import annotations

import math
from collections.abc import Sequence

from tradekernel.core.types import Bar
from tradekernel.indicators.base import (
    BollingerValue,
    Indicator,
    IndicatorSeries,
    IndicatorType,
    SimpleValue,
)


def _true_range(bar: Bar, prev: Bar | None) -> float:
    high_low = bar.high - bar.low
    if prev is None:
        return high_low
    high_prev_close = abs(bar.high - prev.close)
    low_prev_close = abs(bar.low - prev.close)
    return max(high_low, high_prev_close, low_prev_close)


def _population_stddev(window: Sequence[float], mean: float) -> float:
    variance = sum((c - mean) ** 2 for c in window) / len(window)
    return math.sqrt(variance)


class ATR(Indicator):
    """Average True Range with Wilder smoothing.

    The first bar's true range is its high-low span; the seed is the plain
    mean of the first ``period`` true ranges.
    """

    def __init__(self, period: int = 14) -> None:
        self.name = "ATR"
        self.warmup_period = period
        self.period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        period = self.period
        series = IndicatorSeries(type=IndicatorType.ATR, period=period)
        tr_sum = 0.0
        atr = 0.0
        for i, bar in enumerate(bars):
            tr = _true_range(bar, bars[i - 1] if i > 0 else None)
            if i + 1 < period:
                tr_sum += tr
                series.add(SimpleValue(date=bar.date, value=0.0, valid=False))
                continue
            if i + 1 == period:
                atr = (tr_sum + tr) / period
            else:
                atr = (atr * (period - 1) + tr) / period
            series.add(SimpleValue(date=bar.date, value=atr, valid=True))
        return series


class BollingerBands(Indicator):
    def __init__(self, period: int = 20, num_std: float = 2.0) -> None:
        self.name = "BOLLINGER"
        self.period = period
        self.num_std = num_std
        self.warmup_period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        closes = [b.close for b in bars]
        series = IndicatorSeries(
            type=IndicatorType.BOLLINGER,
            period=self.period,
            param2=int(round(self.num_std * 100)),
            multiplier=self.num_std,
        )
        for i, bar in enumerate(bars):
            if i + 1 < self.period:
                series.add(BollingerValue(
                    date=bar.date, upper=0.0, middle=0.0, lower=0.0, valid=False,
                ))
                continue
            window = closes[i - self.period + 1 : i + 1]
            middle = sum(window) / self.period
            stdev = _population_stddev(window, middle)
            series.add(BollingerValue(
                date=bar.date,
                upper=middle + self.num_std * stdev,
                middle=middle,
                lower=middle - self.num_std * stdev,
                valid=True,
            ))
        return series


class StdDev(Indicator):
    """Population standard deviation of the closing window."""

    def __init__(self, period: int = 20) -> None:
        self.name = "STDDEV"
        self.period = period
        self.warmup_period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        closes = [b.close for b in bars]
        series = IndicatorSeries(type=IndicatorType.STDDEV, period=self.period)
        for i, bar in enumerate(bars):
            if i + 1 < self.period:
                series.add(SimpleValue(date=bar.date, value=0.0, valid=False))
                continue
            window = closes[i - self.period + 1 : i + 1]
            mean = sum(window) / self.period
            series.add(SimpleValue(date=bar.date, value=_population_stddev(window, mean), valid=True))
        return series

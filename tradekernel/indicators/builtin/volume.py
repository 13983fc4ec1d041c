from __future__ import annotations

from collections.abc import Sequence

from tradekernel.core.types import Bar
from tradekernel.indicators.base import Indicator, IndicatorSeries, IndicatorType, SimpleValue


class OBV(Indicator):
    """On-Balance Volume. Cumulative from the first bar, so it has no warmup."""

    def __init__(self) -> None:
        self.name = "OBV"
        self.warmup_period = 1

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars:
            return None
        series = IndicatorSeries(type=IndicatorType.OBV)
        obv = 0.0
        for i, bar in enumerate(bars):
            if i > 0:
                prev_close = bars[i - 1].close
                if bar.close > prev_close:
                    obv += bar.volume
                elif bar.close < prev_close:
                    obv -= bar.volume
            series.add(SimpleValue(date=bar.date, value=obv, valid=True))
        return series


class VWAP(Indicator):
    """Rolling volume-weighted typical price over ``period`` bars."""

    def __init__(self, period: int = 20) -> None:
        self.name = "VWAP"
        self.period = period
        self.warmup_period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        series = IndicatorSeries(type=IndicatorType.VWAP, period=self.period)
        for i, bar in enumerate(bars):
            if i + 1 < self.period:
                series.add(SimpleValue(date=bar.date, value=0.0, valid=False))
                continue
            window = bars[i - self.period + 1 : i + 1]
            volume = sum(b.volume for b in window)
            if volume == 0:
                series.add(SimpleValue(date=bar.date, value=0.0, valid=False))
                continue
            weighted = sum(b.typical_price * b.volume for b in window)
            series.add(SimpleValue(date=bar.date, value=weighted / volume, valid=True))
        return series

"""Classic floor-trader pivot points.

Each bar's levels come from the previous bar's high, low and close, so the
first bar never has a valid value. With a prior high above the prior low the
levels are strictly ordered: S3 < S2 < S1 < P < R1 < R2 < R3.
"""
from __future__ import annotations

from collections.abc import Sequence

from tradekernel.core.types import Bar
from tradekernel.indicators.base import Indicator, IndicatorSeries, IndicatorType, PivotValue


class Pivot(Indicator):
    def __init__(self) -> None:
        self.name = "PIVOT"
        self.warmup_period = 2

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars:
            return None
        series = IndicatorSeries(type=IndicatorType.PIVOT)
        series.add(PivotValue(
            date=bars[0].date,
            pivot=0.0, r1=0.0, r2=0.0, r3=0.0, s1=0.0, s2=0.0, s3=0.0,
            valid=False,
        ))
        for i in range(1, len(bars)):
            prev = bars[i - 1]
            high, low, close = prev.high, prev.low, prev.close
            p = (high + low + close) / 3
            series.add(PivotValue(
                date=bars[i].date,
                pivot=p,
                r1=2 * p - low,
                r2=p + (high - low),
                r3=high + 2 * (p - low),
                s1=2 * p - high,
                s2=p - (high - low),
                s3=low - 2 * (high - p),
                valid=True,
            ))
        return series

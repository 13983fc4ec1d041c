from __future__ import annotations

from collections.abc import Sequence

from tradekernel.core.types import Bar
from tradekernel.indicators.base import Indicator, IndicatorSeries, IndicatorType, SimpleValue


def sma_values(values: Sequence[float], period: int) -> list[float | None]:
    """Rolling mean; None until ``period`` values are available."""
    out: list[float | None] = []
    for i in range(len(values)):
        if i + 1 < period:
            out.append(None)
            continue
        window = values[i - period + 1 : i + 1]
        out.append(sum(window) / period)
    return out


def ema_values(values: Sequence[float], period: int) -> list[float | None]:
    """EMA seeded with the plain mean of the first ``period`` values."""
    out: list[float | None] = [None] * len(values)
    if len(values) < period:
        return out
    k = 2 / (period + 1)
    ema = sum(values[:period]) / period
    out[period - 1] = ema
    for i in range(period, len(values)):
        ema = (values[i] - ema) * k + ema
        out[i] = ema
    return out


def _series_from(
    indicator_type: IndicatorType,
    period: int,
    bars: Sequence[Bar],
    raw: list[float | None],
) -> IndicatorSeries:
    series = IndicatorSeries(type=indicator_type, period=period)
    for bar, value in zip(bars, raw):
        if value is None:
            series.add(SimpleValue(date=bar.date, value=0.0, valid=False))
        else:
            series.add(SimpleValue(date=bar.date, value=value, valid=True))
    return series


class SMA(Indicator):
    def __init__(self, period: int) -> None:
        self.name = "SMA"
        self.warmup_period = period
        self.period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        closes = [b.close for b in bars]
        return _series_from(IndicatorType.SMA, self.period, bars, sma_values(closes, self.period))


class EMA(Indicator):
    def __init__(self, period: int) -> None:
        self.name = "EMA"
        self.warmup_period = period
        self.period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        closes = [b.close for b in bars]
        return _series_from(IndicatorType.EMA, self.period, bars, ema_values(closes, self.period))


class WMA(Indicator):
    """Linearly weighted moving average, newest bar weighted ``period``."""

    def __init__(self, period: int) -> None:
        self.name = "WMA"
        self.warmup_period = period
        self.period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        closes = [b.close for b in bars]
        period = self.period
        divisor = period * (period + 1) / 2
        raw: list[float | None] = []
        for i in range(len(closes)):
            if i + 1 < period:
                raw.append(None)
                continue
            weighted = sum(closes[i - j] * (period - j) for j in range(period))
            raw.append(weighted / divisor)
        return _series_from(IndicatorType.WMA, period, bars, raw)

from __future__ import annotations

from collections.abc import Sequence

from tradekernel.core.types import Bar
from tradekernel.indicators.base import (
    Indicator,
    IndicatorSeries,
    IndicatorType,
    MACDValue,
    SimpleValue,
    StochasticValue,
)
from tradekernel.indicators.builtin.moving_average import ema_values, sma_values


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # A flat window has no direction at all.
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


class RSI(Indicator):
    """Wilder RSI. The first value is available at index ``period``."""

    def __init__(self, period: int = 14) -> None:
        self.name = "RSI"
        self.warmup_period = period + 1
        self.period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        period = self.period
        series = IndicatorSeries(type=IndicatorType.RSI, period=period)
        series.add(SimpleValue(date=bars[0].date, value=0.0, valid=False))

        avg_gain = 0.0
        avg_loss = 0.0
        for i in range(1, len(bars)):
            delta = bars[i].close - bars[i - 1].close
            gain = delta if delta > 0 else 0.0
            loss = -delta if delta < 0 else 0.0

            if i < period:
                avg_gain += gain
                avg_loss += loss
                series.add(SimpleValue(date=bars[i].date, value=0.0, valid=False))
                continue

            if i == period:
                avg_gain = (avg_gain + gain) / period
                avg_loss = (avg_loss + loss) / period
            else:
                avg_gain = (avg_gain * (period - 1) + gain) / period
                avg_loss = (avg_loss * (period - 1) + loss) / period

            rsi = _rsi_from_averages(avg_gain, avg_loss)
            series.add(SimpleValue(date=bars[i].date, value=rsi, valid=True))
        return series


class ROC(Indicator):
    """Percentage change of the close over ``period`` bars."""

    def __init__(self, period: int = 12) -> None:
        self.name = "ROC"
        self.warmup_period = period + 1
        self.period = period

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.period <= 0:
            return None
        series = IndicatorSeries(type=IndicatorType.ROC, period=self.period)
        for i, bar in enumerate(bars):
            if i < self.period or bars[i - self.period].close == 0:
                series.add(SimpleValue(date=bar.date, value=0.0, valid=False))
                continue
            base = bars[i - self.period].close
            series.add(SimpleValue(date=bar.date, value=(bar.close - base) / base * 100.0, valid=True))
        return series


class MACD(Indicator):
    """MACD line, signal and histogram.

    The line exists from index ``slow - 1``; the signal EMA is seeded with the
    mean of the first ``signal_period`` line values, so a value is valid from
    ``slow + signal_period - 2``.
    """

    def __init__(self, fast_period: int = 12, slow_period: int = 26, signal_period: int = 9) -> None:
        self.name = "MACD"
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period
        self.warmup_period = max(fast_period, slow_period) + signal_period - 1

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or min(self.fast_period, self.slow_period, self.signal_period) <= 0:
            return None
        closes = [b.close for b in bars]
        fast = ema_values(closes, self.fast_period)
        slow = ema_values(closes, self.slow_period)

        lines: list[float | None] = [
            f - s if f is not None and s is not None else None for f, s in zip(fast, slow)
        ]
        first = next((i for i, v in enumerate(lines) if v is not None), None)
        signals: list[float | None] = [None] * len(lines)
        if first is not None:
            tail = [v for v in lines[first:] if v is not None]
            for offset, sig in enumerate(ema_values(tail, self.signal_period)):
                signals[first + offset] = sig

        series = IndicatorSeries(
            type=IndicatorType.MACD,
            period=self.fast_period,
            param2=self.slow_period,
            param3=self.signal_period,
        )
        for bar, line, signal in zip(bars, lines, signals):
            if line is None or signal is None:
                series.add(MACDValue(
                    date=bar.date, line=line or 0.0, signal=0.0, histogram=0.0, valid=False,
                ))
            else:
                series.add(MACDValue(
                    date=bar.date, line=line, signal=signal, histogram=line - signal, valid=True,
                ))
        return series


class Stochastic(Indicator):
    """Stochastic oscillator: %K over ``k_period`` bars, %D = SMA(%K, d_period)."""

    def __init__(self, k_period: int = 14, d_period: int = 3) -> None:
        self.name = "STOCHASTIC"
        self.k_period = k_period
        self.d_period = d_period
        self.warmup_period = k_period + d_period - 1

    def calculate(self, bars: Sequence[Bar]) -> IndicatorSeries | None:
        if not bars or self.k_period <= 0 or self.d_period <= 0:
            return None
        k_values: list[float | None] = []
        for i in range(len(bars)):
            if i + 1 < self.k_period:
                k_values.append(None)
                continue
            window = bars[i - self.k_period + 1 : i + 1]
            lowest = min(b.low for b in window)
            highest = max(b.high for b in window)
            if highest == lowest:
                k_values.append(50.0)
            else:
                k_values.append(100.0 * (bars[i].close - lowest) / (highest - lowest))

        d_values: list[float | None] = [None] * len(bars)
        start = self.k_period - 1
        if start < len(bars):
            tail = [v for v in k_values[start:] if v is not None]
            for offset, d in enumerate(sma_values(tail, self.d_period)):
                d_values[start + offset] = d

        series = IndicatorSeries(
            type=IndicatorType.STOCHASTIC, period=self.k_period, param2=self.d_period,
        )
        for bar, k, d in zip(bars, k_values, d_values):
            if k is None or d is None:
                series.add(StochasticValue(date=bar.date, k=k or 0.0, d=0.0, valid=False))
            else:
                series.add(StochasticValue(date=bar.date, k=k, d=d, valid=True))
        return series

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from tradekernel.core.types import Bar
from tradekernel.indicators.base import (
    PERIODLESS_TYPES,
    Indicator,
    IndicatorSeries,
    IndicatorSpec,
    IndicatorType,
)
from tradekernel.indicators.builtin.momentum import MACD, ROC, RSI, Stochastic
from tradekernel.indicators.builtin.moving_average import EMA, SMA, WMA
from tradekernel.indicators.builtin.pivot import Pivot
from tradekernel.indicators.builtin.volatility import ATR, BollingerBands, StdDev
from tradekernel.indicators.builtin.volume import OBV, VWAP

if TYPE_CHECKING:
    from tradekernel.strategy.rules import IndicatorOperand

logger = logging.getLogger(__name__)

_INDICATOR_REGISTRY: dict[IndicatorType, Callable[[IndicatorSpec], Indicator]] = {
    IndicatorType.SMA: lambda s: SMA(s.period),
    IndicatorType.EMA: lambda s: EMA(s.period),
    IndicatorType.WMA: lambda s: WMA(s.period),
    IndicatorType.RSI: lambda s: RSI(s.period),
    IndicatorType.ROC: lambda s: ROC(s.period),
    IndicatorType.MACD: lambda s: MACD(s.period, s.param2, s.param3),
    IndicatorType.STOCHASTIC: lambda s: Stochastic(s.period, s.param2),
    IndicatorType.BOLLINGER: lambda s: BollingerBands(s.period, s.multiplier),
    IndicatorType.ATR: lambda s: ATR(s.period),
    IndicatorType.STDDEV: lambda s: StdDev(s.period),
    IndicatorType.OBV: lambda s: OBV(),
    IndicatorType.VWAP: lambda s: VWAP(s.period),
    IndicatorType.PIVOT: lambda s: Pivot(),
}


def _coerce_type(indicator_type: IndicatorType | str) -> IndicatorType | None:
    if isinstance(indicator_type, IndicatorType):
        return indicator_type
    try:
        return IndicatorType(str(indicator_type).upper())
    except ValueError:
        return None


def create_indicator(spec: IndicatorSpec) -> Indicator | None:
    """Build the calculator for ``spec``; None if the type is not implemented."""
    factory = _INDICATOR_REGISTRY.get(spec.type)
    if factory is None:
        return None
    return factory(spec)


def calculate(spec: IndicatorSpec, bars: Sequence[Bar] | None) -> IndicatorSeries | None:
    """Compute the series for ``spec``.

    Returns None for missing or empty bars, a non-positive period (except for
    period-less indicators) and unsupported types.
    """
    if not bars:
        return None
    if spec.type not in PERIODLESS_TYPES and spec.period <= 0:
        return None
    indicator = create_indicator(spec)
    if indicator is None:
        return None
    return indicator.calculate(bars)


def calculate_indicator(
    indicator_type: IndicatorType | str,
    bars: Sequence[Bar] | None,
    period: int = 0,
    param2: int = 0,
    param3: int = 0,
    multiplier: float = 2.0,
) -> IndicatorSeries | None:
    """Dispatch by type and parameters. Unknown types return None.

    For Bollinger bands ``multiplier`` is used when ``param2`` does not
    already carry it as multiplier x 100.
    """
    resolved = _coerce_type(indicator_type)
    if resolved is None:
        return None
    if resolved == IndicatorType.BOLLINGER and not param2:
        param2 = int(round(multiplier * 100))
    return calculate(IndicatorSpec(resolved, period, param2, param3), bars)


class IndicatorEngine:
    """Computes every registered indicator once over a full bar sequence."""

    def __init__(self) -> None:
        self._specs: dict[str, IndicatorSpec] = {}

    def register(self, spec: IndicatorSpec) -> None:
        if spec.type not in _INDICATOR_REGISTRY:
            raise ValueError(f"Unknown indicator: {spec.type}")
        if spec.type not in PERIODLESS_TYPES and spec.period <= 0:
            # Rules reading this key resolve to nothing and evaluate False
            logger.warning("Skipping indicator %s: period must be positive", spec.key)
            return
        self._specs.setdefault(spec.key, spec)

    def register_operand(self, operand: IndicatorOperand) -> None:
        """Register the series an indicator operand reads from."""
        self.register(operand.spec)

    @property
    def keys(self) -> list[str]:
        return list(self._specs)

    def compute(self, bars: Sequence[Bar]) -> dict[str, IndicatorSeries]:
        results: dict[str, IndicatorSeries] = {}
        for key, spec in self._specs.items():
            series = calculate(spec, bars)
            if series is None:
                logger.warning("Indicator %s produced no series for %d bars", key, len(bars))
                continue
            results[key] = series
        return results

    @property
    def max_warmup(self) -> int:
        if not self._specs:
            return 0
        warmups = []
        for spec in self._specs.values():
            indicator = create_indicator(spec)
            if indicator is not None:
                warmups.append(indicator.warmup_period)
        return max(warmups, default=0)

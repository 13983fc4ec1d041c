from tradekernel.indicators.builtin.momentum import MACD, ROC, RSI, Stochastic
from tradekernel.indicators.builtin.moving_average import EMA, SMA, WMA
from tradekernel.indicators.builtin.pivot import Pivot
from tradekernel.indicators.builtin.volatility import ATR, BollingerBands, StdDev
from tradekernel.indicators.builtin.volume import OBV, VWAP

__all__ = [
    "SMA", "EMA", "WMA", "RSI", "ROC", "MACD", "Stochastic",
    "ATR", "BollingerBands", "StdDev", "OBV", "VWAP", "Pivot",
]

"""Technical indicator library: streaming, sequence and vectorized forms."""

from tickerlens.indicators.base import Indicator
from tickerlens.indicators.moving_averages import SMA, EMA
from tickerlens.indicators.oscillators import RSI, MACD, KDJ
from tickerlens.indicators.series import KDJResult, MACDResult

__all__ = [
    "Indicator",
    "SMA",
    "EMA",
    "RSI",
    "MACD",
    "KDJ",
    "MACDResult",
    "KDJResult",
]

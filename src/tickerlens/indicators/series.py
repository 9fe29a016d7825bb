"""Sequence forms of the streaming indicators.

Each function maps an input sequence of length ``n`` to an output of
length ``n`` with ``None`` at warm-up positions. Short input never raises.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from tickerlens.indicators.moving_averages import EMA, SMA
from tickerlens.indicators.oscillators import KDJ, MACD, RSI

Series = list[float | None]


@dataclass(frozen=True)
class MACDResult:
    macd: Series
    signal: Series
    histogram: Series


@dataclass(frozen=True)
class KDJResult:
    k: list[float]
    d: list[float]
    j: list[float]


def sma(values: Sequence[float], period: int) -> Series:
    ind = SMA(period)
    return [ind.update(v) for v in values]


def ema(values: Sequence[float], period: int) -> Series:
    ind = EMA(period)
    return [ind.update(v) for v in values]


def rsi(values: Sequence[float], period: int = 14) -> Series:
    ind = RSI(period)
    return [ind.update(v) for v in values]


def macd(
    values: Sequence[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> MACDResult:
    ind = MACD(fast, slow, signal)
    line: Series = []
    sig: Series = []
    hist: Series = []
    for v in values:
        m = ind.update(v)
        line.append(m)
        sig.append(ind.signal_line if m is not None else None)
        hist.append(ind.histogram if m is not None else None)
    return MACDResult(macd=line, signal=sig, histogram=hist)


def kdj(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 9,
) -> KDJResult:
    if not len(highs) == len(lows) == len(closes):
        raise ValueError("highs, lows and closes must have the same length")
    ind = KDJ(period)
    k: list[float] = []
    d: list[float] = []
    j: list[float] = []
    for high, low, close in zip(highs, lows, closes):
        ind.update_hlc(high, low, close)
        k.append(ind.k)
        d.append(ind.d)
        j.append(ind.j)
    return KDJResult(k=k, d=d, j=j)

"""Vectorized (DataFrame) indicator functions.

Same seeding and warm-up rules as the streaming indicators; warm-up
positions are NaN.
"""

from __future__ import annotations

import numpy as np
import pandas as pd


def _seeded_smoothing(series: pd.Series, start: int, period: int, alpha: float) -> pd.Series:
    """Mean of ``series[start:start+period]`` as the seed, then exponential smoothing."""
    out = pd.Series(np.nan, index=series.index, dtype=float)
    if len(series) < start + period:
        return out
    seed = series.iloc[start:start + period].mean()
    tail = pd.concat(
        [pd.Series([seed]), series.iloc[start + period:].reset_index(drop=True)],
        ignore_index=True,
    )
    smoothed = tail.ewm(alpha=alpha, adjust=False).mean()
    out.iloc[start + period - 1:] = smoothed.to_numpy()
    return out


def sma(series: pd.Series, period: int) -> pd.Series:
    return series.rolling(window=period).mean()


def ema(series: pd.Series, period: int) -> pd.Series:
    return _seeded_smoothing(series.astype(float), 0, period, 2.0 / (period + 1))


def rsi(series: pd.Series, period: int = 14) -> pd.Series:
    delta = series.astype(float).diff()
    gain = delta.clip(lower=0.0)
    loss = (-delta).clip(lower=0.0)
    avg_gain = _seeded_smoothing(gain, 1, period, 1.0 / period)
    avg_loss = _seeded_smoothing(loss, 1, period, 1.0 / period)
    rs = avg_gain / avg_loss.replace(0.0, np.nan)
    result = 100.0 - 100.0 / (1.0 + rs)
    return result.where(avg_loss != 0.0, 100.0).where(avg_loss.notna())


def macd(
    series: pd.Series,
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> pd.DataFrame:
    macd_line = ema(series, fast) - ema(series, slow)
    valid = macd_line.dropna()
    signal_line = ema(valid, signal).reindex(series.index)
    histogram = macd_line - signal_line
    return pd.DataFrame({
        "macd": macd_line,
        "signal": signal_line,
        "histogram": histogram,
    })


def kdj(df: pd.DataFrame, period: int = 9) -> pd.DataFrame:
    lowest = df["low"].rolling(window=period).min()
    highest = df["high"].rolling(window=period).max()
    spread = highest - lowest
    rsv = ((df["close"] - lowest) / spread.replace(0.0, np.nan) * 100.0).where(spread != 0.0, 50.0)

    values = rsv.to_numpy(dtype=float)
    k = np.full(len(df), 50.0)
    d = np.full(len(df), 50.0)
    prev_k = prev_d = 50.0
    for i in range(period - 1, len(df)):
        prev_k = (2.0 / 3.0) * prev_k + (1.0 / 3.0) * values[i]
        prev_d = (2.0 / 3.0) * prev_d + (1.0 / 3.0) * prev_k
        k[i] = prev_k
        d[i] = prev_d
    return pd.DataFrame({"k": k, "d": d, "j": 3.0 * k - 2.0 * d}, index=df.index)

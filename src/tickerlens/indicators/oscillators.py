from __future__ import annotations

from collections import deque

from tickerlens.indicators.base import Indicator
from tickerlens.indicators.moving_averages import EMA


class RSI(Indicator):
    """Relative Strength Index (Wilder smoothing)."""

    def __init__(self, period: int = 14) -> None:
        if period < 1:
            raise ValueError("period must be >= 1")
        self.period = period
        self._count: int = 0
        self._prev: float | None = None
        self._avg_gain: float = 0.0
        self._avg_loss: float = 0.0
        self._gains: list[float] = []
        self._losses: list[float] = []
        self._value: float | None = None

    def update(self, value: float) -> float | None:
        if self._prev is None:
            self._prev = value
            return None

        change = value - self._prev
        self._prev = value
        gain = max(change, 0.0)
        loss = max(-change, 0.0)
        self._count += 1

        if self._count <= self.period:
            self._gains.append(gain)
            self._losses.append(loss)
            if self._count == self.period:
                self._avg_gain = sum(self._gains) / self.period
                self._avg_loss = sum(self._losses) / self.period
                self._value = self._compute()
                return self._value
            return None

        # Wilder smoothing
        self._avg_gain = (self._avg_gain * (self.period - 1) + gain) / self.period
        self._avg_loss = (self._avg_loss * (self.period - 1) + loss) / self.period
        self._value = self._compute()
        return self._value

    def _compute(self) -> float:
        if self._avg_loss == 0:
            return 100.0
        rs = self._avg_gain / self._avg_loss
        return 100.0 - 100.0 / (1.0 + rs)

    def reset(self) -> None:
        self._count = 0
        self._prev = None
        self._avg_gain = 0.0
        self._avg_loss = 0.0
        self._gains = []
        self._losses = []
        self._value = None

    @property
    def ready(self) -> bool:
        return self._count >= self.period

    @property
    def value(self) -> float | None:
        return self._value


class MACD(Indicator):
    """Moving Average Convergence Divergence.

    The signal EMA is fed only defined MACD values, so it runs over the
    contiguous valid sub-sequence and its first value lands
    ``signal - 1`` bars after the first MACD value.
    """

    def __init__(self, fast: int = 12, slow: int = 26, signal: int = 9) -> None:
        self.fast_period = fast
        self.slow_period = slow
        self.signal_period = signal
        self._fast_ema = EMA(fast)
        self._slow_ema = EMA(slow)
        self._signal_ema = EMA(signal)
        self._macd_line: float | None = None
        self._signal_line: float | None = None
        self._histogram: float | None = None

    def update(self, value: float) -> float | None:
        fast_val = self._fast_ema.update(value)
        slow_val = self._slow_ema.update(value)

        if fast_val is None or slow_val is None:
            return None

        self._macd_line = fast_val - slow_val
        sig = self._signal_ema.update(self._macd_line)

        if sig is not None:
            self._signal_line = sig
            self._histogram = self._macd_line - self._signal_line
        return self._macd_line

    def reset(self) -> None:
        self._fast_ema.reset()
        self._slow_ema.reset()
        self._signal_ema.reset()
        self._macd_line = None
        self._signal_line = None
        self._histogram = None

    @property
    def ready(self) -> bool:
        return self._macd_line is not None

    @property
    def value(self) -> float | None:
        return self._macd_line

    @property
    def signal_line(self) -> float | None:
        return self._signal_line

    @property
    def histogram(self) -> float | None:
        return self._histogram


class KDJ(Indicator):
    """Smoothed stochastic KDJ (9, 3, 3).

    K, D and J start at 50 and stay there until ``period`` bars have been
    seen, so the series ramps in instead of having a warm-up gap. J is
    unbounded.
    """

    SEED = 50.0

    def __init__(self, period: int = 9) -> None:
        if period < 1:
            raise ValueError("period must be >= 1")
        self.period = period
        self._highs: deque[float] = deque(maxlen=period)
        self._lows: deque[float] = deque(maxlen=period)
        self._k: float = self.SEED
        self._d: float = self.SEED
        self._j: float = self.SEED
        self._count: int = 0

    def update(self, value: float) -> float | None:
        """For streaming with close-only data, uses value as high/low/close."""
        return self.update_hlc(value, value, value)

    def update_hlc(self, high: float, low: float, close: float) -> float:
        self._highs.append(high)
        self._lows.append(low)
        self._count += 1

        if self._count < self.period:
            return self._k

        highest = max(self._highs)
        lowest = min(self._lows)
        if highest == lowest:
            rsv = 50.0
        else:
            rsv = (close - lowest) / (highest - lowest) * 100.0

        self._k = (2.0 / 3.0) * self._k + (1.0 / 3.0) * rsv
        self._d = (2.0 / 3.0) * self._d + (1.0 / 3.0) * self._k
        self._j = 3.0 * self._k - 2.0 * self._d
        return self._k

    def reset(self) -> None:
        self._highs.clear()
        self._lows.clear()
        self._k = self.SEED
        self._d = self.SEED
        self._j = self.SEED
        self._count = 0

    @property
    def ready(self) -> bool:
        return self._count >= self.period

    @property
    def value(self) -> float | None:
        return self._k

    @property
    def k(self) -> float:
        return self._k

    @property
    def d(self) -> float:
        return self._d

    @property
    def j(self) -> float:
        return self._j

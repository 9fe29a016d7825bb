"""Tests for streaming, sequence and vectorized indicators."""

from __future__ import annotations

import math

import numpy as np
import pandas as pd
import pytest

from tickerlens.indicators.moving_averages import SMA, EMA
from tickerlens.indicators.oscillators import RSI, MACD, KDJ
from tickerlens.indicators import series as ks
from tickerlens.indicators import vectorized as vec


def _defined(values):
    return [i for i, v in enumerate(values) if v is not None]


def _as_optional(s: pd.Series) -> list:
    return [None if pd.isna(v) else float(v) for v in s]


def _assert_same(actual: list, expected: list) -> None:
    assert _defined(actual) == _defined(expected)
    for a, e in zip(actual, expected):
        if e is not None:
            assert a == pytest.approx(e, rel=1e-9, abs=1e-9)


# --------------- SMA ---------------

class TestSMA:
    def test_not_ready_before_period(self):
        sma = SMA(3)
        assert sma.update(1.0) is None
        assert sma.update(2.0) is None
        assert not sma.ready

    def test_first_value(self):
        sma = SMA(3)
        sma.update(1.0)
        sma.update(2.0)
        result = sma.update(3.0)
        assert result == pytest.approx(2.0)
        assert sma.ready
        assert sma.value == pytest.approx(2.0)

    def test_reset(self):
        sma = SMA(3)
        for v in [1.0, 2.0, 3.0]:
            sma.update(v)
        sma.reset()
        assert not sma.ready
        assert sma.value is None

    def test_known_values(self):
        """SMA(5) on [10, 11, 12, 13, 14, 15] -> first = 12.0, second = 13.0."""
        results = ks.sma([10, 11, 12, 13, 14, 15], 5)
        assert results[:4] == [None, None, None, None]
        assert results[4] == pytest.approx(12.0)
        assert results[5] == pytest.approx(13.0)

    def test_short_input_all_undefined(self):
        assert ks.sma([1.0, 2.0], 5) == [None, None]
        assert ks.sma([], 5) == []

    def test_mean_and_running_sum_recurrence(self):
        rng = np.random.default_rng(7)
        values = list(100 + np.cumsum(rng.normal(size=50)))
        p = 7
        out = ks.sma(values, p)
        assert out[p - 1] == pytest.approx(sum(values[:p]) / p)
        for i in range(p, len(values)):
            assert out[i] == pytest.approx(out[i - 1] + (values[i] - values[i - p]) / p)

    def test_invalid_period(self):
        with pytest.raises(ValueError):
            SMA(0)


# --------------- EMA ---------------

class TestEMA:
    def test_first_value_is_sma(self):
        e = EMA(3)
        e.update(2.0)
        e.update(4.0)
        result = e.update(6.0)
        assert result == pytest.approx(4.0)  # SMA(2,4,6) = 4.0

    def test_subsequent_values(self):
        e = EMA(3)
        for v in [2.0, 4.0, 6.0]:
            e.update(v)
        # k = 2/(3+1) = 0.5; EMA = 8.0*0.5 + 4.0*0.5 = 6.0
        result = e.update(8.0)
        assert result == pytest.approx(6.0)

    def test_seed_matches_sma(self):
        values = [3.0, 7.0, 1.0, 9.0, 4.0, 6.0, 2.0]
        assert ks.ema(values, 4)[3] == pytest.approx(ks.sma(values, 4)[3])
        assert ks.ema(values, 4)[:3] == [None, None, None]

    def test_constant_series_converges(self):
        out = ks.ema([42.0] * 30, 10)
        assert all(v == pytest.approx(42.0) for v in out[9:])

    def test_reset(self):
        e = EMA(3)
        for v in [1.0, 2.0, 3.0]:
            e.update(v)
        e.reset()
        assert not e.ready
        assert e.value is None


# --------------- RSI ---------------

class TestRSI:
    def test_all_gains(self):
        r = RSI(period=5)
        for v in [100, 101, 102, 103, 104, 105]:
            r.update(v)
        assert r.ready
        assert r.value == pytest.approx(100.0)

    def test_all_losses(self):
        r = RSI(period=5)
        for v in [105, 104, 103, 102, 101, 100]:
            r.update(v)
        assert r.ready
        assert r.value == pytest.approx(0.0)

    def test_seeded_at_period_index(self):
        out = ks.rsi([float(v) for v in range(30)], 14)
        assert _defined(out)[0] == 14
        assert all(v is None for v in out[:14])

    def test_strictly_increasing_is_100(self):
        out = ks.rsi([float(v) for v in range(1, 40)], 14)
        assert all(v == pytest.approx(100.0) for v in out[14:])

    def test_range(self):
        rng = np.random.default_rng(3)
        values = list(100 + np.cumsum(rng.normal(size=200)))
        for v in ks.rsi(values, 14):
            if v is not None:
                assert 0.0 <= v <= 100.0

    def test_wilder_smoothing(self):
        # period 2: deltas +2, -1 -> avg gain 1.0, avg loss 0.5 -> RSI 66.67
        # next delta +1 -> gain (1*1+1)/2 = 1.0, loss (0.5*1+0)/2 = 0.25 -> RSI 80
        out = ks.rsi([10.0, 12.0, 11.0, 12.0], 2)
        assert out[2] == pytest.approx(100.0 - 100.0 / 3.0)
        assert out[3] == pytest.approx(80.0)

    def test_short_input(self):
        assert ks.rsi([1.0] * 14, 14) == [None] * 14


# --------------- MACD ---------------

class TestMACD:
    def test_needs_slow_period_data(self):
        m = MACD(fast=3, slow=5, signal=3)
        for v in range(4):
            m.update(float(v))
        assert not m.ready

    def test_first_defined_indices(self):
        values = [float(v) + math.sin(v) for v in range(60)]
        out = ks.macd(values, fast=12, slow=26, signal=9)
        assert _defined(out.macd)[0] == 25
        assert _defined(out.signal)[0] == 25 + 9 - 1
        assert _defined(out.histogram)[0] == 25 + 9 - 1

    def test_histogram_is_difference(self):
        values = [100.0 + 5 * math.sin(i / 4) for i in range(80)]
        out = ks.macd(values)
        for line, sig, hist in zip(out.macd, out.signal, out.histogram):
            if line is not None and sig is not None:
                assert hist == pytest.approx(line - sig)
            else:
                assert hist is None

    def test_signal_uses_valid_subsequence(self):
        values = [100.0 + 5 * math.sin(i / 4) for i in range(60)]
        out = ks.macd(values, fast=3, slow=5, signal=4)
        start = _defined(out.macd)[0]
        valid = out.macd[start:]
        expected = ks.ema(valid, 4)
        _assert_same(out.signal[start:], expected)
        assert out.signal[start + 3] == pytest.approx(sum(valid[:4]) / 4)

    def test_short_input(self):
        out = ks.macd([1.0] * 10)
        assert out.macd == [None] * 10
        assert out.signal == [None] * 10
        assert out.histogram == [None] * 10


# --------------- KDJ ---------------

class TestKDJ:
    def test_flat_series_stays_at_50(self):
        out = ks.kdj([10.0] * 20, [10.0] * 20, [10.0] * 20)
        # 2/3 * 50 + 1/3 * 50 is not exactly 50.0 in binary floating point
        assert out.k == pytest.approx([50.0] * 20)
        assert out.d == pytest.approx([50.0] * 20)
        assert out.j == pytest.approx([50.0] * 20)

    def test_seeded_before_period(self):
        out = ks.kdj([12.0, 14.0], [8.0, 9.0], [10.0, 13.0], period=9)
        assert out.k == [50.0, 50.0]

    def test_known_value(self):
        # H/L/C: (12,8,10), (14,9,13), (13,10,12); RSV = 100*(12-8)/(14-8)
        out = ks.kdj([12, 14, 13], [8, 9, 10], [10, 13, 12], period=3)
        rsv = 100.0 * 4 / 6
        k = 2 / 3 * 50 + rsv / 3
        d = 2 / 3 * 50 + k / 3
        assert out.k[2] == pytest.approx(k)
        assert out.d[2] == pytest.approx(d)
        assert out.j[2] == pytest.approx(3 * k - 2 * d)

    def test_j_identity_every_index(self):
        rng = np.random.default_rng(11)
        close = 100 + np.cumsum(rng.normal(size=60))
        high = close + rng.uniform(0, 1, 60)
        low = close - rng.uniform(0, 1, 60)
        out = ks.kdj(list(high), list(low), list(close))
        for k, d, j in zip(out.k, out.d, out.j):
            assert j == pytest.approx(3 * k - 2 * d)

    def test_j_can_exceed_100(self):
        highs = [10.0] * 9 + [20.0, 30.0, 40.0]
        lows = [9.0] * 12
        closes = [9.5] * 9 + [20.0, 30.0, 40.0]
        out = ks.kdj(highs, lows, closes)
        assert max(out.j) > 100.0

    def test_streaming_reset(self):
        s = KDJ(period=3)
        for i in range(5):
            s.update_hlc(10.0 + i, 8.0 + i, 9.0 + i)
        assert s.ready
        s.reset()
        assert not s.ready
        assert s.k == 50.0


# --------------- Scenario ---------------

class TestFlatThenGain:
    def test_sixty_point_scenario(self):
        closes = [10.0] * 59 + [11.0]
        assert ks.sma(closes, 60)[-1] == pytest.approx(10 + 1 / 60)
        last = ks.rsi(closes, 14)[-1]
        assert last is not None and math.isfinite(last)
        assert 50.0 < last <= 100.0


# --------------- Vectorized functions ---------------

@pytest.fixture
def sample_df():
    np.random.seed(42)
    n = 100
    close = 100 + np.cumsum(np.random.randn(n) * 0.5)
    high = close + np.abs(np.random.randn(n) * 0.3)
    low = close - np.abs(np.random.randn(n) * 0.3)
    open_ = close + np.random.randn(n) * 0.1
    volume = np.random.randint(1000, 10000, n).astype(float)
    return pd.DataFrame({
        "open": open_, "high": high, "low": low, "close": close, "volume": volume,
    })


class TestVectorized:
    def test_sma_matches_streaming(self, sample_df):
        result = vec.sma(sample_df["close"], 10)
        assert result.isna().sum() == 9  # period - 1 NaN
        _assert_same(_as_optional(result), ks.sma(list(sample_df["close"]), 10))

    def test_ema_matches_streaming(self, sample_df):
        result = vec.ema(sample_df["close"], 10)
        _assert_same(_as_optional(result), ks.ema(list(sample_df["close"]), 10))

    def test_rsi_matches_streaming(self, sample_df):
        result = vec.rsi(sample_df["close"], 14)
        valid = result.dropna()
        assert (valid >= 0).all() and (valid <= 100).all()
        _assert_same(_as_optional(result), ks.rsi(list(sample_df["close"]), 14))

    def test_macd_matches_streaming(self, sample_df):
        result = vec.macd(sample_df["close"])
        expected = ks.macd(list(sample_df["close"]))
        _assert_same(_as_optional(result["macd"]), expected.macd)
        _assert_same(_as_optional(result["signal"]), expected.signal)
        _assert_same(_as_optional(result["histogram"]), expected.histogram)

    def test_kdj_matches_streaming(self, sample_df):
        result = vec.kdj(sample_df, 9)
        expected = ks.kdj(
            list(sample_df["high"]), list(sample_df["low"]), list(sample_df["close"]), 9,
        )
        assert list(result["k"]) == pytest.approx(expected.k)
        assert list(result["d"]) == pytest.approx(expected.d)
        assert list(result["j"]) == pytest.approx(expected.j)

    def test_rsi_all_gains(self):
        result = vec.rsi(pd.Series([float(v) for v in range(30)]), 14)
        assert result.iloc[:14].isna().all()
        assert (result.iloc[14:] == 100.0).all()

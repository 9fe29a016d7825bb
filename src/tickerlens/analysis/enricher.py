"""Indicator Enricher.

Runs the indicator kernel over the raw and the adjusted price basis,
attaches per-bar derived fields, and merges date-keyed net flow and volume
overrides. Enrichment never mutates its input bars.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import overload

import pandas as pd

from tickerlens.data.bar import Bar
from tickerlens.data.records import NetFlow
from tickerlens.indicators import series as kernel

logger = logging.getLogger(__name__)

DEFAULT_MA_PERIODS = (5, 10, 20, 60)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


def direction(current: float | None, previous: float | None) -> Direction:
    if current is None or previous is None:
        return Direction.FLAT
    if current > previous:
        return Direction.UP
    if current < previous:
        return Direction.DOWN
    return Direction.FLAT


@dataclass(frozen=True)
class IndicatorSet:
    """Indicator values of one bar on one price basis.

    ``None`` marks warm-up positions and is distinct from zero.
    """

    ma: Mapping[int, float | None]
    ma_dir: Mapping[int, Direction]
    rsi: float | None
    macd: float | None
    macd_signal: float | None
    macd_hist: float | None
    k: float
    d: float
    j: float
    price_change: float
    price_change_pct: float

    @property
    def ma5(self) -> float | None:
        return self.ma.get(5)

    @property
    def ma10(self) -> float | None:
        return self.ma.get(10)

    @property
    def ma20(self) -> float | None:
        return self.ma.get(20)

    @property
    def ma60(self) -> float | None:
        return self.ma.get(60)


@dataclass(frozen=True)
class EnrichedBar:
    bar: Bar
    raw: IndicatorSet
    adjusted: IndicatorSet
    flow: NetFlow

    @property
    def label(self) -> str:
        return self.bar.label

    @property
    def foreign_net(self) -> float:
        return self.flow.foreign

    @property
    def trust_net(self) -> float:
        return self.flow.trust

    def basis(self, adjusted: bool) -> IndicatorSet:
        return self.adjusted if adjusted else self.raw


class EnrichedSeries(Sequence[EnrichedBar]):
    """Immutable, index-aligned sequence of enriched bars."""

    def __init__(self, items: Sequence[EnrichedBar]) -> None:
        self._items: tuple[EnrichedBar, ...] = tuple(items)

    @overload
    def __getitem__(self, index: int) -> EnrichedBar: ...

    @overload
    def __getitem__(self, index: slice) -> EnrichedSeries: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return EnrichedSeries(self._items[index])
        return self._items[index]

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[EnrichedBar]:
        return iter(self._items)

    def __repr__(self) -> str:
        return f"EnrichedSeries(len={len(self)})"

    @property
    def latest(self) -> EnrichedBar | None:
        return self._items[-1] if self._items else None

    @property
    def previous(self) -> EnrichedBar | None:
        return self._items[-2] if len(self._items) > 1 else None

    def tail(self, n: int) -> EnrichedSeries:
        return EnrichedSeries(self._items[-n:] if n > 0 else ())

    def to_frame(self) -> pd.DataFrame:
        """Both price bases side by side; adjusted columns carry an ``_adj`` suffix."""
        rows = []
        for item in self._items:
            b = item.bar
            o_adj, h_adj, l_adj, c_adj = b.adjusted_ohlc()
            row: dict[str, object] = {
                "timestamp": b.timestamp,
                "label": b.label,
                "open": b.open,
                "high": b.high,
                "low": b.low,
                "close": b.close,
                "volume": b.volume,
                "open_adj": o_adj,
                "high_adj": h_adj,
                "low_adj": l_adj,
                "close_adj": c_adj,
                "foreign_net": item.flow.foreign,
                "trust_net": item.flow.trust,
            }
            for suffix, ind in (("", item.raw), ("_adj", item.adjusted)):
                for period, value in ind.ma.items():
                    row[f"ma{period}{suffix}"] = value
                    row[f"ma{period}_dir{suffix}"] = ind.ma_dir[period].value
                row[f"rsi{suffix}"] = ind.rsi
                row[f"macd{suffix}"] = ind.macd
                row[f"macd_signal{suffix}"] = ind.macd_signal
                row[f"macd_hist{suffix}"] = ind.macd_hist
                row[f"k{suffix}"] = ind.k
                row[f"d{suffix}"] = ind.d
                row[f"j{suffix}"] = ind.j
                row[f"price_change{suffix}"] = ind.price_change
                row[f"price_change_pct{suffix}"] = ind.price_change_pct
            rows.append(row)

        df = pd.DataFrame(rows)
        if not df.empty:
            df.index = pd.to_datetime(df["timestamp"], unit="s", utc=True)
            df.index.name = "time"
        return df


def apply_volume_overrides(bars: Sequence[Bar], volumes: Mapping[str, int]) -> list[Bar]:
    """Replace each bar's volume with the override for its local date, if any."""
    out = []
    replaced = 0
    for bar in bars:
        vol = volumes.get(bar.local_date)
        if vol is None:
            out.append(bar)
            continue
        out.append(replace(bar, volume=max(int(vol), 0)))
        replaced += 1
    logger.debug("Volume override applied to %d of %d bars", replaced, len(out))
    return out


class IndicatorEnricher:
    def __init__(
        self,
        ma_periods: Sequence[int] = DEFAULT_MA_PERIODS,
        rsi_period: int = 14,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
        kdj_period: int = 9,
    ) -> None:
        self.ma_periods = tuple(ma_periods)
        self.rsi_period = rsi_period
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.macd_signal = macd_signal
        self.kdj_period = kdj_period

    def enrich(
        self,
        bars: Sequence[Bar],
        flows: Mapping[str, NetFlow] | None = None,
        volumes: Mapping[str, int] | None = None,
    ) -> EnrichedSeries:
        source = apply_volume_overrides(bars, volumes) if volumes else list(bars)

        raw = self._compute(
            [b.high for b in source],
            [b.low for b in source],
            [b.close for b in source],
        )
        adj = [b.adjusted_ohlc() for b in source]
        adjusted = self._compute(
            [q[1] for q in adj],
            [q[2] for q in adj],
            [q[3] for q in adj],
        )

        flows = flows or {}
        empty = NetFlow()
        return EnrichedSeries([
            EnrichedBar(
                bar=bar,
                raw=raw[i],
                adjusted=adjusted[i],
                flow=flows.get(bar.local_date, empty),
            )
            for i, bar in enumerate(source)
        ])

    def _compute(
        self,
        highs: list[float],
        lows: list[float],
        closes: list[float],
    ) -> list[IndicatorSet]:
        mas = {p: kernel.sma(closes, p) for p in self.ma_periods}
        rsi = kernel.rsi(closes, self.rsi_period)
        macd = kernel.macd(closes, self.macd_fast, self.macd_slow, self.macd_signal)
        kdj = kernel.kdj(highs, lows, closes, self.kdj_period)

        out = []
        for i, close in enumerate(closes):
            if i == 0:
                change, change_pct = 0.0, 0.0
                dirs = {p: Direction.FLAT for p in self.ma_periods}
            else:
                prev = closes[i - 1]
                change = close - prev
                change_pct = change / prev * 100.0 if prev != 0 else 0.0
                dirs = {p: direction(mas[p][i], mas[p][i - 1]) for p in self.ma_periods}

            out.append(IndicatorSet(
                ma={p: mas[p][i] for p in self.ma_periods},
                ma_dir=dirs,
                rsi=rsi[i],
                macd=macd.macd[i],
                macd_signal=macd.signal[i],
                macd_hist=macd.histogram[i],
                k=kdj.k[i],
                d=kdj.d[i],
                j=kdj.j[i],
                price_change=change,
                price_change_pct=change_pct,
            ))
        return out

"""Compact statistical snapshot of an enriched series.

This is everything the text-generation collaborator needs: the latest
bar, the bar before it, a trailing window, headline indicator values and
a few breakout checks. Prompt wording lives with that collaborator.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from enum import Enum

from tickerlens.analysis.enricher import EnrichedBar, EnrichedSeries
from tickerlens.errors import DataUnavailable

logger = logging.getLogger(__name__)

# Breakout thresholds.
PRICE_BREAKOUT_PCT = 2.0
VOLUME_BREAKOUT_RATIO = 1.3


class VolumeTrend(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    FLAT = "FLAT"


@dataclass(frozen=True)
class TechnicalIndicators:
    last_close: float
    last_volume: int
    ma5: float | None
    ma10: float | None
    ma20: float | None
    ma60: float | None
    rsi: float | None
    k: float
    d: float
    j: float
    macd: float | None
    macd_signal: float | None
    macd_hist: float | None
    volume_avg5: float
    volume_trend: VolumeTrend


@dataclass(frozen=True)
class BreakoutChecks:
    price_change_pct: float
    volume_ratio: float | None
    rising_candle: bool
    above_prev_high: bool
    above_ma5: bool

    @property
    def price_check(self) -> bool:
        return self.price_change_pct > PRICE_BREAKOUT_PCT and self.rising_candle

    @property
    def volume_check(self) -> bool:
        return self.volume_ratio is not None and self.volume_ratio > VOLUME_BREAKOUT_RATIO

    @property
    def breakout_check(self) -> bool:
        return self.above_ma5 and self.above_prev_high

    @property
    def golden_buy_point(self) -> bool:
        return self.price_check and self.volume_check and self.breakout_check


@dataclass(frozen=True)
class Position:
    has_holding: bool
    cost_price: float | None = None


@dataclass(frozen=True)
class MarketSnapshot:
    symbol: str
    latest: EnrichedBar
    previous: EnrichedBar
    window: EnrichedSeries
    indicators: TechnicalIndicators
    checks: BreakoutChecks
    foreign_net_5: float
    trust_net_5: float
    position: Position | None
    profit_pct: float | None
    warmed_up: bool

    def to_dict(self) -> dict[str, object]:
        """Plain-data view for serialization."""
        return {
            "symbol": self.symbol,
            "latest": _bar_dict(self.latest),
            "previous": _bar_dict(self.previous),
            "window": [_bar_dict(item) for item in self.window],
            "indicators": {
                **asdict(self.indicators),
                "volume_trend": self.indicators.volume_trend.value,
            },
            "checks": {
                **asdict(self.checks),
                "price_check": self.checks.price_check,
                "volume_check": self.checks.volume_check,
                "breakout_check": self.checks.breakout_check,
                "golden_buy_point": self.checks.golden_buy_point,
            },
            "foreign_net_5": self.foreign_net_5,
            "trust_net_5": self.trust_net_5,
            "position": asdict(self.position) if self.position else None,
            "profit_pct": self.profit_pct,
            "warmed_up": self.warmed_up,
        }


def _bar_dict(item: EnrichedBar) -> dict[str, object]:
    b = item.bar
    return {
        "label": b.label,
        "open": b.open,
        "high": b.high,
        "low": b.low,
        "close": b.close,
        "volume": b.volume,
        "foreign_net": item.flow.foreign,
        "trust_net": item.flow.trust,
    }


def _ohlc(item: EnrichedBar, adjusted: bool) -> tuple[float, float, float, float]:
    b = item.bar
    return b.adjusted_ohlc() if adjusted else (b.open, b.high, b.low, b.close)


def to_lots(volume: float, lot_size: int = 1000) -> int:
    """Shares to board lots (TWSE lot = 1000 shares)."""
    return round(volume / lot_size)


def volume_trend(latest_volume: float, average: float) -> VolumeTrend:
    if latest_volume > average:
        return VolumeTrend.UP
    if latest_volume < average:
        return VolumeTrend.DOWN
    return VolumeTrend.FLAT


def build_snapshot(
    series: EnrichedSeries,
    symbol: str,
    window: int = 10,
    position: Position | None = None,
    adjusted: bool = False,
) -> MarketSnapshot:
    """Summarize the tail of ``series``.

    Raises DataUnavailable with fewer than two bars. ``warmed_up`` is false
    when any moving average in the trailing window is still undefined.
    """
    latest, previous = series.latest, series.previous
    if latest is None or previous is None:
        raise DataUnavailable(f"Need at least two bars to summarize {symbol}")

    basis = latest.basis(adjusted)
    open_, _, _, close = _ohlc(latest, adjusted)
    _, prev_high, _, prev_close = _ohlc(previous, adjusted)
    last5 = series.tail(5)
    volume_avg5 = sum(item.bar.volume for item in last5) / len(last5)
    # Intraday bars repeat their date's flow; count each date once.
    daily_flows = {item.bar.local_date: item.flow for item in last5}

    indicators = TechnicalIndicators(
        last_close=close,
        last_volume=latest.bar.volume,
        ma5=basis.ma5,
        ma10=basis.ma10,
        ma20=basis.ma20,
        ma60=basis.ma60,
        rsi=basis.rsi,
        k=basis.k,
        d=basis.d,
        j=basis.j,
        macd=basis.macd,
        macd_signal=basis.macd_signal,
        macd_hist=basis.macd_hist,
        volume_avg5=volume_avg5,
        volume_trend=volume_trend(latest.bar.volume, volume_avg5),
    )

    checks = BreakoutChecks(
        price_change_pct=(close - prev_close) / prev_close * 100.0 if prev_close else 0.0,
        volume_ratio=latest.bar.volume / previous.bar.volume if previous.bar.volume else None,
        rising_candle=close > open_,
        above_prev_high=close > prev_high,
        above_ma5=basis.ma5 is not None and close > basis.ma5,
    )

    profit_pct = None
    if position is not None and position.has_holding and position.cost_price:
        profit_pct = (latest.bar.close - position.cost_price) / position.cost_price * 100.0

    trailing = series.tail(window)
    warmed_up = all(
        value is not None
        for item in trailing
        for value in item.basis(adjusted).ma.values()
    )
    if not warmed_up:
        logger.info("%s: moving averages not fully defined over the last %d bars", symbol, window)

    return MarketSnapshot(
        symbol=symbol,
        latest=latest,
        previous=previous,
        window=trailing,
        indicators=indicators,
        checks=checks,
        foreign_net_5=sum(flow.foreign for flow in daily_flows.values()),
        trust_net_5=sum(flow.trust for flow in daily_flows.values()),
        position=position,
        profit_pct=profit_pct,
        warmed_up=warmed_up,
    )

"""Chart-facing view of an enriched series.

Picks the raw or adjusted basis per the display settings. Both bases are
already computed, so switching never recomputes indicators.
"""

from __future__ import annotations

from dataclasses import dataclass

from tickerlens.analysis.enricher import Direction, EnrichedSeries

DEFAULT_BARS_TO_SHOW = 100


@dataclass
class IndicatorSettings:
    show_ma5: bool = True
    show_ma10: bool = True
    show_ma20: bool = True
    show_ma60: bool = True
    show_rsi: bool = True
    show_k: bool = True
    show_d: bool = True
    show_j: bool = True
    use_adjusted: bool = True


@dataclass(frozen=True)
class ChartPoint:
    label: str
    open: float
    high: float
    low: float
    close: float
    volume: int
    price_change: float
    price_change_pct: float
    ma: dict[int, float | None]
    ma_dir: dict[int, Direction]
    rsi: float | None
    macd: float | None
    macd_signal: float | None
    macd_hist: float | None
    k: float | None
    d: float | None
    j: float | None
    foreign_net: float
    trust_net: float


def chart_points(
    series: EnrichedSeries,
    settings: IndicatorSettings,
    bars_to_show: int | None = None,
) -> list[ChartPoint]:
    """The last ``bars_to_show`` bars (default 100) on the selected basis.

    Hidden moving averages and oscillators come back as None.
    """
    count = min(DEFAULT_BARS_TO_SHOW if bars_to_show is None else bars_to_show, len(series))
    visible = series.tail(count)
    shown_ma = {
        5: settings.show_ma5,
        10: settings.show_ma10,
        20: settings.show_ma20,
        60: settings.show_ma60,
    }

    points = []
    for item in visible:
        bar = item.bar
        ind = item.basis(settings.use_adjusted)
        o, h, l, c = bar.adjusted_ohlc() if settings.use_adjusted else (
            bar.open, bar.high, bar.low, bar.close
        )
        points.append(ChartPoint(
            label=bar.label,
            open=o,
            high=h,
            low=l,
            close=c,
            volume=bar.volume,
            price_change=ind.price_change,
            price_change_pct=ind.price_change_pct,
            ma={p: v if shown_ma.get(p, True) else None for p, v in ind.ma.items()},
            ma_dir=dict(ind.ma_dir),
            rsi=ind.rsi if settings.show_rsi else None,
            macd=ind.macd,
            macd_signal=ind.macd_signal,
            macd_hist=ind.macd_hist,
            k=ind.k if settings.show_k else None,
            d=ind.d if settings.show_d else None,
            j=ind.j if settings.show_j else None,
            foreign_net=item.flow.foreign,
            trust_net=item.flow.trust,
        ))
    return points


def has_flow_data(series: EnrichedSeries) -> bool:
    """True when any bar carries non-zero institutional flow."""
    return any(item.flow.foreign != 0 or item.flow.trust != 0 for item in series)

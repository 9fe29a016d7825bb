from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TypeVar

import pandas as pd

from tickerlens.analysis.enricher import EnrichedSeries, IndicatorEnricher, apply_volume_overrides
from tickerlens.core.config import DashboardConfig
from tickerlens.data.base import DataFeed, candidate_symbols, fetch_first_available, is_taiwan_symbol
from tickerlens.data.finmind import FinMindFeed
from tickerlens.data.normalizer import is_intraday, normalize
from tickerlens.data.records import NetFlow, close_map, reduce_flows, volume_map
from tickerlens.data.resample import PERIODS, PeriodResampler, bucket_flows
from tickerlens.data.session import session_for
from tickerlens.errors import AuxiliaryDataMissing, DataUnavailable, ResamplingDegraded

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERVALS = ("15m", "60m", "1d", "1wk", "1mo")

_RANGE_OFFSETS = {
    "1mo": pd.DateOffset(months=1),
    "3mo": pd.DateOffset(months=3),
    "6mo": pd.DateOffset(months=6),
    "1y": pd.DateOffset(years=1),
    "2y": pd.DateOffset(years=2),
    "5y": pd.DateOffset(years=5),
}


@dataclass(frozen=True)
class StockInfo:
    symbol: str
    name: str
    currency: str
    exchange_timezone: str


@dataclass(frozen=True)
class DashboardResult:
    info: StockInfo
    series: EnrichedSeries
    interval: str


@dataclass
class AuxiliaryData:
    flows: dict[str, NetFlow] = field(default_factory=dict)
    volumes: dict[str, int] = field(default_factory=dict)
    closes: dict[str, float] = field(default_factory=dict)
    name: str | None = None


def fetch_interval(interval: str) -> str:
    """Weekly and monthly bars are built locally from daily bars."""
    return "1d" if interval in PERIODS else interval


def filter_by_range(
    series: EnrichedSeries,
    display_range: str,
    now: datetime | None = None,
) -> EnrichedSeries:
    """Keep bars inside the trailing display range; indicators keep their full-history values."""
    if not display_range:
        return series
    offset = _RANGE_OFFSETS.get(display_range)
    if offset is None:
        raise ValueError(f"Unknown display range {display_range!r}")
    cutoff = (pd.Timestamp(now or datetime.now(timezone.utc)) - offset).timestamp()
    return EnrichedSeries([item for item in series if item.bar.timestamp >= cutoff])


class DashboardPipeline:
    """Fetch, normalize, resample and enrich one ticker per call.

    Every call builds its own lookup maps; nothing is shared between calls.
    """

    def __init__(
        self,
        price_feed: DataFeed,
        aux_feed: FinMindFeed | None = None,
        config: DashboardConfig | None = None,
    ) -> None:
        self.price_feed = price_feed
        self.aux_feed = aux_feed
        self.config = config or DashboardConfig.defaults()

        ind = self.config.indicators
        self.enricher = IndicatorEnricher(
            ma_periods=ind.ma_periods,
            rsi_period=ind.rsi_period,
            macd_fast=ind.macd_fast,
            macd_slow=ind.macd_slow,
            macd_signal=ind.macd_signal,
            kdj_period=ind.kdj_period,
        )
        self.resampler = PeriodResampler(
            fragment_epsilon=self.config.resample.fragment_epsilon,
            keep=self.config.resample.keep,
        )

    def run(self, query: str, interval: str | None = None) -> DashboardResult:
        interval = interval or self.config.feed.interval
        if interval not in INTERVALS:
            raise ValueError(f"Unsupported interval {interval!r}, expected one of {INTERVALS}")

        candidates = candidate_symbols(query)
        if not candidates:
            raise DataUnavailable("Empty symbol")

        payload = fetch_first_available(
            self.price_feed,
            candidates,
            interval=fetch_interval(interval),
            history=self.config.feed.history,
        )
        bars = normalize(payload, local_labels=self.config.feed.local_labels)
        logger.info("Loaded %d bars for %s (%s)", len(bars), payload.symbol, interval)

        aux = AuxiliaryData()
        if self.aux_feed is not None and self.config.finmind.enabled and is_taiwan_symbol(payload.symbol):
            aux = self._fetch_auxiliary(self.aux_feed, payload.symbol, bars[0].local_date)

        flows: dict[str, NetFlow] = aux.flows
        volumes: dict[str, int] | None = None
        if interval in PERIODS:
            bars = apply_volume_overrides(bars, aux.volumes) if aux.volumes else bars
            bars = self.resampler.resample(bars, interval)
            try:
                flows = bucket_flows(aux.flows, interval)
            except ResamplingDegraded as e:
                logger.warning("Could not bucket flow data for %s: %s", payload.symbol, e)
                flows = {}
        elif is_intraday(interval):
            bars = self.resampler.resample(
                bars,
                interval,
                session=session_for(payload.exchange_timezone),
                daily_closes=aux.closes,
            )
        else:
            volumes = aux.volumes

        series = self.enricher.enrich(bars, flows=flows, volumes=volumes)
        series = filter_by_range(series, self.config.feed.display_range)

        info = StockInfo(
            symbol=payload.symbol,
            name=aux.name or payload.name or payload.symbol,
            currency=payload.currency,
            exchange_timezone=payload.exchange_timezone,
        )
        return DashboardResult(info=info, series=series, interval=interval)

    def _fetch_auxiliary(self, feed: FinMindFeed, symbol: str, start_date: str) -> AuxiliaryData:
        """Fetch flow, daily and name data concurrently; each may fail on its own."""
        with ThreadPoolExecutor(max_workers=3) as pool:
            flows_f = pool.submit(feed.institutional_flows, symbol, start_date)
            daily_f = pool.submit(feed.daily_records, symbol, start_date)
            name_f = pool.submit(feed.stock_name, symbol)

            flow_records = _or_default(flows_f.result, [], "institutional flow", symbol)
            daily_records = _or_default(daily_f.result, [], "daily price/volume", symbol)
            name = _or_default(name_f.result, None, "stock name", symbol)

        return AuxiliaryData(
            flows=reduce_flows(flow_records),
            volumes=volume_map(daily_records),
            closes=close_map(daily_records),
            name=name,
        )


def _or_default(fetch: Callable[[], T], default: T, what: str, symbol: str) -> T:
    try:
        return fetch()
    except AuxiliaryDataMissing as e:
        logger.warning("No %s data for %s: %s", what, symbol, e)
        return default

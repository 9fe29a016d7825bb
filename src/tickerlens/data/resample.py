"""Period Resampler.

Aggregates daily bars into weekly/monthly buckets and re-labels intraday
bars by bucket close for markets with a registered trading session.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from tickerlens.data.bar import Bar
from tickerlens.data.normalizer import INTRADAY_LABEL, is_intraday
from tickerlens.data.records import NetFlow
from tickerlens.data.session import TradingSession
from tickerlens.errors import ResamplingDegraded

logger = logging.getLogger(__name__)

PERIODS = ("1wk", "1mo")

_INTRADAY_STEP_MINUTES = {
    "15m": 15,
    "60m": 60,
    "1h": 60,
}


def bucket_key(local_date: str, period: str) -> str:
    """Bucket start in the exchange calendar: Monday for weeks, the 1st for months."""
    try:
        day = date.fromisoformat(local_date)
    except ValueError as e:
        raise ResamplingDegraded(f"Bad local date {local_date!r}") from e

    if period == "1wk":
        return (day - timedelta(days=day.weekday())).isoformat()
    if period == "1mo":
        return day.replace(day=1).isoformat()
    raise ResamplingDegraded(f"Unsupported aggregation period {period!r}")


def is_new_fragment(bucket_open: float, bar_open: float, epsilon: float = 1e-4) -> bool:
    """Heuristic: a bar whose open differs from the bucket's open is a separate
    trading fragment. Equal opens are taken as a re-sent update of the same
    fragment, whose volume replaces rather than adds to the bucket's.
    """
    return abs(bar_open - bucket_open) > epsilon


def bucket_flows(flows: Mapping[str, NetFlow], period: str) -> dict[str, NetFlow]:
    """Re-key date-keyed net flows onto bucket keys, summing within a bucket."""
    out: dict[str, NetFlow] = {}
    for day, flow in flows.items():
        key = bucket_key(day, period)
        prev = out.get(key, NetFlow())
        out[key] = NetFlow(foreign=prev.foreign + flow.foreign, trust=prev.trust + flow.trust)
    return out


class PeriodResampler:
    """Resampling with a configurable fragment epsilon and dedupe policy.

    ``keep`` selects which raw bar survives when two intraday bars map to
    the same target bucket: ``"first"`` (default) or ``"last"``. Duplicates
    are discarded, never merged.
    """

    def __init__(self, fragment_epsilon: float = 1e-4, keep: str = "first") -> None:
        if keep not in ("first", "last"):
            raise ValueError(f"keep must be 'first' or 'last', got {keep!r}")
        self.fragment_epsilon = fragment_epsilon
        self.keep = keep

    # ------------------------------------------------------------ weekly/monthly

    def aggregate(self, bars: Sequence[Bar], period: str) -> list[Bar]:
        buckets: dict[str, Bar] = {}
        prev_ts: int | None = None

        for bar in bars:
            if prev_ts is not None and bar.timestamp <= prev_ts:
                raise ResamplingDegraded("Bars are not in ascending timestamp order")
            prev_ts = bar.timestamp

            key = bucket_key(bar.local_date, period)
            current = buckets.get(key)
            if current is None:
                buckets[key] = replace(bar, label=key, local_date=key)
                continue

            if is_new_fragment(current.open, bar.open, self.fragment_epsilon):
                volume = current.volume + bar.volume
            else:
                volume = bar.volume

            high = max(current.high, bar.high)
            low = min(current.low, bar.low)
            ratio = bar.adj_ratio
            buckets[key] = replace(
                current,
                high=high,
                low=low,
                close=bar.close,
                volume=volume,
                open_adj=current.open * ratio,
                high_adj=high * ratio,
                low_adj=low * ratio,
                close_adj=bar.close * ratio,
            )

        return list(buckets.values())

    # ------------------------------------------------------------ intraday

    def rebucket_intraday(
        self,
        bars: Sequence[Bar],
        interval: str,
        session: TradingSession,
    ) -> list[Bar]:
        """Label each bar by its bucket close within the trading session.

        Bars starting before the session open or after its close are dropped.
        A bucket close past the session close is clamped to the session close.
        """
        step = _INTRADAY_STEP_MINUTES.get(interval)
        if step is None:
            raise ResamplingDegraded(f"Unsupported intraday interval {interval!r}")

        out: dict[str, Bar] = {}
        dropped = 0
        for bar in bars:
            start = bar.local_hour * 60 + bar.local_minute
            if start < session.open_minutes or start > session.close_minutes:
                dropped += 1
                continue

            target = min(start + step, session.close_minutes)
            local = datetime.fromtimestamp(bar.timestamp, ZoneInfo(bar.timezone)).replace(
                hour=target // 60, minute=target % 60, second=0, microsecond=0,
            )
            label = local.strftime(INTRADAY_LABEL)
            if label in out and self.keep == "first":
                continue
            out[label] = replace(
                bar,
                timestamp=int(local.timestamp()),
                label=label,
                local_hour=local.hour,
                local_minute=local.minute,
            )

        if dropped:
            logger.debug("Dropped %d bars outside the trading session", dropped)
        return sorted(out.values(), key=lambda b: b.timestamp)

    def apply_daily_closes(
        self,
        bars: Sequence[Bar],
        closes: Mapping[str, float],
    ) -> list[Bar]:
        """Overwrite the final intraday bucket's close of each date.

        High/low widen to include the corrected close; the adjusted quadruple
        keeps the bar's adjustment ratio.
        """
        out = list(bars)
        last_index: dict[str, int] = {}
        for i, bar in enumerate(out):
            last_index[bar.local_date] = i

        corrected = 0
        for day, i in last_index.items():
            close = closes.get(day)
            if close is None or close <= 0:
                continue
            bar = out[i]
            ratio = bar.adj_ratio
            high = max(bar.high, close)
            low = min(bar.low, close)
            out[i] = replace(
                bar,
                close=close,
                high=high,
                low=low,
                open_adj=bar.open * ratio,
                high_adj=high * ratio,
                low_adj=low * ratio,
                close_adj=close * ratio,
            )
            corrected += 1

        logger.debug("Corrected final-bucket close on %d dates", corrected)
        return out

    # ------------------------------------------------------------ dispatcher

    def resample(
        self,
        bars: Sequence[Bar],
        interval: str,
        session: TradingSession | None = None,
        daily_closes: Mapping[str, float] | None = None,
    ) -> list[Bar]:
        """Resample for display at ``interval``.

        Failures are logged and the source bars are returned unchanged.
        """
        source = list(bars)
        try:
            if interval in PERIODS:
                return self.aggregate(source, interval)
            if not is_intraday(interval):
                return source

            out = source
            if session is not None:
                out = self.rebucket_intraday(out, interval, session)
            if daily_closes:
                out = self.apply_daily_closes(out, daily_closes)
            if not out:
                raise ResamplingDegraded("No bars left after re-bucketing")
            return out
        except (ResamplingDegraded, ValueError, KeyError) as e:
            logger.warning("Resampling to %s degraded, using source bars: %s", interval, e)
            return source

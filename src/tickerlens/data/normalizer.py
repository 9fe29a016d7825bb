"""Bar Normalizer: upstream payload -> ordered, deduplicated Bar sequence."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tickerlens.data.bar import Bar
from tickerlens.data.base import RawPayload
from tickerlens.errors import DataUnavailable

logger = logging.getLogger(__name__)

INTRADAY_LABEL = "%m-%d %H:%M"
DAILY_LABEL = "%Y-%m-%d"


def is_intraday(interval: str) -> bool:
    return interval.endswith(("m", "h")) and not interval.endswith("mo")


def format_label(local: datetime, interval: str) -> str:
    return local.strftime(INTRADAY_LABEL if is_intraday(interval) else DAILY_LABEL)


def make_bar(
    timestamp: int,
    tz: ZoneInfo,
    interval: str,
    open_: float,
    high: float,
    low: float,
    close: float,
    volume: int,
    adj_close: float | None = None,
    local_labels: bool = True,
) -> Bar:
    """Create a bar, deriving the adjusted quadruple from ``adj_close / close``."""
    local = datetime.fromtimestamp(timestamp, tz)
    label_time = local if local_labels else datetime.fromtimestamp(timestamp, timezone.utc)

    ratio = 1.0
    if adj_close is not None and close != 0:
        ratio = adj_close / close

    return Bar(
        timestamp=timestamp,
        label=format_label(label_time, interval),
        open=open_,
        high=high,
        low=low,
        close=close,
        volume=volume,
        open_adj=open_ * ratio,
        high_adj=high * ratio,
        low_adj=low * ratio,
        close_adj=close * ratio,
        timezone=tz.key,
        local_date=local.strftime(DAILY_LABEL),
        local_hour=local.hour,
        local_minute=local.minute,
    )


def _missing(value: float | None) -> bool:
    return value is None or (isinstance(value, float) and math.isnan(value))


def normalize(payload: RawPayload, local_labels: bool = True) -> list[Bar]:
    """Convert a raw payload into an ascending Bar sequence.

    Incomplete rows (any of open/high/low/close missing) are dropped. The
    first bar wins when timestamps repeat.

    Raises DataUnavailable when the payload reports an error, is empty,
    has mismatched arrays, or contains no complete bar.
    """
    if payload.error:
        raise DataUnavailable(f"{payload.symbol}: {payload.error}")
    n = len(payload.timestamps)
    if n == 0:
        raise DataUnavailable(f"No data found for {payload.symbol}")

    columns = [payload.open, payload.high, payload.low, payload.close, payload.volume]
    if payload.adjusted_close is not None:
        columns.append(payload.adjusted_close)
    if any(len(col) != n for col in columns):
        raise DataUnavailable(f"Malformed payload for {payload.symbol}: array lengths differ")

    try:
        tz = ZoneInfo(payload.exchange_timezone or "UTC")
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise DataUnavailable(
            f"Unknown exchange timezone {payload.exchange_timezone!r} for {payload.symbol}"
        ) from e
    bars: dict[int, Bar] = {}
    dropped = 0
    for i, ts in enumerate(payload.timestamps):
        o, h, l, c = payload.open[i], payload.high[i], payload.low[i], payload.close[i]
        if any(_missing(v) for v in (o, h, l, c)):
            dropped += 1
            continue
        ts = int(ts)
        if ts in bars:
            continue
        adj = payload.adjusted_close[i] if payload.adjusted_close is not None else None
        vol = payload.volume[i]
        if _missing(adj):
            adj = None
        bars[ts] = make_bar(
            ts, tz, payload.interval,
            float(o), float(h), float(l), float(c),
            volume=0 if _missing(vol) else max(int(vol), 0),
            adj_close=adj,
            local_labels=local_labels,
        )

    if dropped:
        logger.debug("%s: dropped %d incomplete bars", payload.symbol, dropped)
    if not bars:
        raise DataUnavailable(f"No complete bars for {payload.symbol}")

    return [bars[ts] for ts in sorted(bars)]

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import pandas as pd

from tickerlens.errors import DataUnavailable

logger = logging.getLogger(__name__)

TAIWAN_SUFFIXES = (".TW", ".TWO")


@dataclass
class RawPayload:
    """Upstream price/volume payload as parallel arrays.

    Entries may be ``None`` where the upstream feed has no value.
    """

    symbol: str
    exchange_timezone: str
    interval: str
    timestamps: list[int]
    open: list[float | None]
    high: list[float | None]
    low: list[float | None]
    close: list[float | None]
    volume: list[float | None]
    adjusted_close: list[float | None] | None = None
    currency: str = ""
    name: str = ""
    error: str | None = None


class DataFeed(ABC):
    @abstractmethod
    def fetch(self, symbol: str, interval: str = "1d", history: str = "5y") -> RawPayload:
        """Return the raw payload for one exact symbol.

        Raises DataUnavailable when the symbol has no data.
        """
        ...


def _clean(value: object) -> float | None:
    if value is None:
        return None
    f = float(value)  # type: ignore[arg-type]
    return None if math.isnan(f) else f


def payload_from_frame(
    df: pd.DataFrame,
    symbol: str,
    exchange_timezone: str,
    interval: str,
    currency: str = "",
    name: str = "",
) -> RawPayload:
    """Build a RawPayload from a DataFrame indexed by datetime.

    Expects columns open, high, low, close, volume and optionally adj_close.
    A naive index is taken to be in ``exchange_timezone``.
    """
    if df.empty:
        raise DataUnavailable(f"No data found for {symbol}")

    index = pd.DatetimeIndex(df.index)
    if index.tz is None:
        index = index.tz_localize(exchange_timezone)
    timestamps = [int(ts.timestamp()) for ts in index]

    adjusted = None
    if "adj_close" in df.columns:
        adjusted = [_clean(v) for v in df["adj_close"]]

    return RawPayload(
        symbol=symbol,
        exchange_timezone=exchange_timezone,
        interval=interval,
        timestamps=timestamps,
        open=[_clean(v) for v in df["open"]],
        high=[_clean(v) for v in df["high"]],
        low=[_clean(v) for v in df["low"]],
        close=[_clean(v) for v in df["close"]],
        volume=[_clean(v) for v in df["volume"]],
        adjusted_close=adjusted,
        currency=currency,
        name=name,
    )


def is_taiwan_symbol(symbol: str) -> bool:
    return symbol.upper().endswith(TAIWAN_SUFFIXES)


def strip_taiwan_suffix(symbol: str) -> str:
    upper = symbol.strip().upper()
    for suffix in sorted(TAIWAN_SUFFIXES, key=len, reverse=True):
        if upper.endswith(suffix):
            return upper[: -len(suffix)]
    return upper


def candidate_symbols(query: str) -> list[str]:
    """Ordered exchange-qualified candidates for a user query.

    Tickers containing digits are Taiwan listings (``.TW`` then ``.TWO``).
    Alphabetic tickers are tried as-is first, then with Taiwan suffixes.
    """
    clean = query.strip().upper()
    if not clean:
        return []
    if is_taiwan_symbol(clean):
        base = strip_taiwan_suffix(clean)
        return [clean] + [f"{base}{s}" for s in TAIWAN_SUFFIXES if f"{base}{s}" != clean]
    if re.search(r"[0-9]", clean):
        return [f"{clean}{s}" for s in TAIWAN_SUFFIXES]
    return [clean] + [f"{clean}{s}" for s in TAIWAN_SUFFIXES]


def fetch_first_available(
    feed: DataFeed,
    candidates: Sequence[str],
    interval: str = "1d",
    history: str = "5y",
) -> RawPayload:
    """Try candidates in order; the first one that yields data wins.

    Raises a single DataUnavailable when every candidate fails.
    """
    failures: list[str] = []
    for symbol in candidates:
        try:
            payload = feed.fetch(symbol, interval=interval, history=history)
        except DataUnavailable as e:
            logger.info("No data for %s: %s", symbol, e)
            failures.append(f"{symbol}: {e}")
            continue
        if payload.error:
            logger.info("Feed error for %s: %s", symbol, payload.error)
            failures.append(f"{symbol}: {payload.error}")
            continue
        return payload

    tried = ", ".join(candidates) if candidates else "<none>"
    raise DataUnavailable(f"No data found for any of [{tried}]" + (
        f" ({'; '.join(failures)})" if failures else ""
    ))

from __future__ import annotations

import logging

import pandas as pd
import yfinance as yf

from tickerlens.data.base import DataFeed, RawPayload, payload_from_frame
from tickerlens.errors import DataUnavailable

logger = logging.getLogger(__name__)

# Yahoo caps how far back intraday bars go.
_MAX_INTRADAY_HISTORY = {
    "15m": "60d",
    "60m": "730d",
}


class YahooFinanceDataFeed(DataFeed):
    def fetch(self, symbol: str, interval: str = "1d", history: str = "5y") -> RawPayload:
        period = _MAX_INTRADAY_HISTORY.get(interval, history)
        logger.info("Fetching %s from Yahoo (interval=%s, period=%s)", symbol, interval, period)

        ticker = yf.Ticker(symbol)
        try:
            df = ticker.history(period=period, interval=interval, auto_adjust=False)
        except Exception as e:
            raise DataUnavailable(f"Fetch error for {symbol}: {e}") from e

        if df is None or df.empty:
            raise DataUnavailable(f"No data found for {symbol}")

        meta = ticker.history_metadata or {}
        df = df.rename(columns={
            "Open": "open",
            "High": "high",
            "Low": "low",
            "Close": "close",
            "Adj Close": "adj_close",
            "Volume": "volume",
        })
        columns = ["open", "high", "low", "close", "volume"]
        if "adj_close" in df.columns:
            columns.append("adj_close")
        df = df[columns]

        timezone = str(meta.get("exchangeTimezoneName") or _index_timezone(df) or "UTC")
        return payload_from_frame(
            df,
            symbol=str(meta.get("symbol") or symbol),
            exchange_timezone=timezone,
            interval=interval,
            currency=str(meta.get("currency") or ""),
            name=str(meta.get("longName") or meta.get("shortName") or ""),
        )


def _index_timezone(df: pd.DataFrame) -> str | None:
    tz = getattr(df.index, "tz", None)
    return str(tz) if tz is not None else None

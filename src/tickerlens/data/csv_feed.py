from __future__ import annotations

from pathlib import Path

import pandas as pd

from tickerlens.data.base import DataFeed, RawPayload, payload_from_frame


class CsvDataFeed(DataFeed):
    """Loads OHLCV data from a CSV file.

    Expects columns: open, high, low, close, volume (case-insensitive), and
    optionally ``adj close``/``adj_close``. The first column is used as the
    datetime index; naive timestamps are read in ``exchange_timezone``.
    """

    def __init__(
        self,
        file_path: str | Path,
        exchange_timezone: str = "UTC",
        currency: str = "",
    ) -> None:
        self.file_path = Path(file_path)
        self.exchange_timezone = exchange_timezone
        self.currency = currency

    def fetch(self, symbol: str, interval: str = "1d", history: str = "5y") -> RawPayload:
        df = pd.read_csv(self.file_path, parse_dates=True, index_col=0)
        df.columns = [c.lower().strip().replace(" ", "_") for c in df.columns]
        required = {"open", "high", "low", "close", "volume"}
        if not required.issubset(set(df.columns)):
            raise ValueError(
                f"CSV missing required columns. Found: {list(df.columns)}, "
                f"need: {sorted(required)}"
            )
        df.index = pd.to_datetime(df.index)
        df = df.sort_index()
        return payload_from_frame(
            df,
            symbol=symbol,
            exchange_timezone=self.exchange_timezone,
            interval=interval,
            currency=self.currency,
        )

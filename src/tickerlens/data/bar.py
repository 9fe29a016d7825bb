from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Bar:
    """One OHLCV sample for a fixed time bucket.

    ``timestamp`` is epoch seconds and is the ordering key. The adjusted
    quadruple is optional; ``None`` means "no adjustment, use raw".
    ``local_date``/``local_hour``/``local_minute`` are in the exchange
    timezone and drive intraday re-bucketing and date-keyed merges.
    """

    timestamp: int
    label: str
    open: float
    high: float
    low: float
    close: float
    volume: int
    open_adj: float | None = None
    high_adj: float | None = None
    low_adj: float | None = None
    close_adj: float | None = None
    timezone: str = "UTC"
    local_date: str = ""
    local_hour: int = 0
    local_minute: int = 0

    @property
    def adj_ratio(self) -> float:
        if self.close_adj is None or self.close == 0:
            return 1.0
        return self.close_adj / self.close

    def adjusted_ohlc(self) -> tuple[float, float, float, float]:
        """Adjusted (open, high, low, close), falling back to raw per field."""
        return (
            self.open if self.open_adj is None else self.open_adj,
            self.high if self.high_adj is None else self.high_adj,
            self.low if self.low_adj is None else self.low_adj,
            self.close if self.close_adj is None else self.close_adj,
        )

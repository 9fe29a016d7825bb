from datetime import datetime
from zoneinfo import ZoneInfo

import pandas as pd
import pytest

from tickerlens.data.base import RawPayload
from tickerlens.data.normalizer import make_bar

TAIPEI = ZoneInfo("Asia/Taipei")


def local_ts(day: str, hour: int = 9, minute: int = 0, tz: ZoneInfo = TAIPEI) -> int:
    d = datetime.fromisoformat(day)
    return int(datetime(d.year, d.month, d.day, hour, minute, tzinfo=tz).timestamp())


@pytest.fixture
def make_daily_bar():
    """Factory for a Taipei daily bar opening at 09:00 local."""
    def _make(day, open_, high, low, close, volume=1000, adj_close=None):
        return make_bar(local_ts(day), TAIPEI, "1d", open_, high, low, close, volume,
                        adj_close=adj_close)
    return _make


@pytest.fixture
def make_intraday_bar():
    """Factory for a Taipei intraday bar starting at ``hour:minute`` local."""
    def _make(day, hour, minute, close, interval="60m", volume=100):
        return make_bar(local_ts(day, hour, minute), TAIPEI, interval,
                        close, close + 1.0, close - 1.0, close, volume)
    return _make


@pytest.fixture
def sample_bars(make_daily_bar):
    """80 business-day bars, trending up then down, with a 0.9 adjustment ratio."""
    dates = pd.bdate_range("2024-01-01", periods=80)
    bars = []
    price = 100.0
    for i, dt in enumerate(dates):
        # Simulate trending then reversing price
        if i < 40:
            price += 0.5
        else:
            price -= 0.5
        bars.append(make_daily_bar(
            dt.strftime("%Y-%m-%d"),
            price - 0.2, price + 0.5, price - 0.5, price,
            volume=1_000_000 + i * 1000,
            adj_close=price * 0.9,
        ))
    return bars


@pytest.fixture
def daily_payload():
    days = ["2024-01-02", "2024-01-03", "2024-01-04", "2024-01-05"]
    return RawPayload(
        symbol="2330.TW",
        exchange_timezone="Asia/Taipei",
        interval="1d",
        timestamps=[local_ts(d) for d in days],
        open=[100.0, 102.0, None, 104.0],
        high=[105.0, 106.0, 107.0, 108.0],
        low=[99.0, 101.0, 102.0, 103.0],
        close=[104.0, 103.0, 105.0, 107.0],
        volume=[1000.0, 2000.0, 3000.0, None],
        adjusted_close=[52.0, 51.5, 52.5, 53.5],
        currency="TWD",
        name="TSMC",
    )

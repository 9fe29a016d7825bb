from unittest.mock import patch

import pandas as pd
import pytest

from tickerlens.data.yahoo import YahooFinanceDataFeed
from tickerlens.errors import DataUnavailable


def _history():
    index = pd.DatetimeIndex(
        ["2024-01-02 09:00", "2024-01-03 09:00"], tz="Asia/Taipei", name="Date",
    )
    return pd.DataFrame({
        "Open": [590.0, 584.0],
        "High": [593.0, 585.0],
        "Low": [589.0, 576.0],
        "Close": [593.0, 578.0],
        "Adj Close": [575.0, 560.5],
        "Volume": [26_059_058, 37_106_763],
        "Dividends": [0.0, 0.0],
        "Stock Splits": [0.0, 0.0],
    }, index=index)


class TestYahooFinanceDataFeed:
    @patch("tickerlens.data.yahoo.yf.Ticker")
    def test_fetch(self, mock_ticker):
        ticker = mock_ticker.return_value
        ticker.history.return_value = _history()
        ticker.history_metadata = {
            "symbol": "2330.TW",
            "currency": "TWD",
            "exchangeTimezoneName": "Asia/Taipei",
            "longName": "Taiwan Semiconductor Manufacturing Company Limited",
        }

        payload = YahooFinanceDataFeed().fetch("2330.TW", interval="1d", history="1y")

        ticker.history.assert_called_once_with(period="1y", interval="1d", auto_adjust=False)
        assert payload.symbol == "2330.TW"
        assert payload.exchange_timezone == "Asia/Taipei"
        assert payload.currency == "TWD"
        assert payload.name.startswith("Taiwan Semiconductor")
        assert payload.close == [593.0, 578.0]
        assert payload.adjusted_close == [575.0, 560.5]
        assert payload.timestamps[0] == int(pd.Timestamp("2024-01-02 09:00", tz="Asia/Taipei").timestamp())

    @patch("tickerlens.data.yahoo.yf.Ticker")
    def test_intraday_history_is_capped(self, mock_ticker):
        ticker = mock_ticker.return_value
        ticker.history.return_value = _history()
        ticker.history_metadata = {}

        payload = YahooFinanceDataFeed().fetch("2330.TW", interval="15m", history="5y")

        ticker.history.assert_called_once_with(period="60d", interval="15m", auto_adjust=False)
        # Falls back to the index timezone without metadata
        assert payload.exchange_timezone == "Asia/Taipei"

    @patch("tickerlens.data.yahoo.yf.Ticker")
    def test_empty_frame(self, mock_ticker):
        mock_ticker.return_value.history.return_value = pd.DataFrame()
        with pytest.raises(DataUnavailable):
            YahooFinanceDataFeed().fetch("9999.TW")

    @patch("tickerlens.data.yahoo.yf.Ticker")
    def test_fetch_error(self, mock_ticker):
        mock_ticker.return_value.history.side_effect = RuntimeError("rate limited")
        with pytest.raises(DataUnavailable, match="rate limited"):
            YahooFinanceDataFeed().fetch("2330.TW")

"""FinMind auxiliary feed for Taiwan listings.

Provides institutional buy/sell records and exchange-reported daily
volume/close, which are more reliable than the primary feed for TWSE/TPEx.
"""

from __future__ import annotations

import logging
from typing import Any

import requests

from tickerlens.data.base import strip_taiwan_suffix
from tickerlens.data.records import DailyRecord, FlowRecord, ParticipantClass
from tickerlens.errors import AuxiliaryDataMissing

logger = logging.getLogger(__name__)

FINMIND_BASE_URL = "https://api.finmindtrade.com/api/v4/data"


class FinMindFeed:
    def __init__(
        self,
        base_url: str = FINMIND_BASE_URL,
        token: str | None = None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _query(self, dataset: str, **params: str) -> list[dict[str, Any]]:
        query = {"dataset": dataset, **params}
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        try:
            resp = self.session.get(
                self.base_url, params=query, headers=headers, timeout=self.timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise AuxiliaryDataMissing(f"FinMind {dataset} request failed: {e}") from e

        if not isinstance(body, dict):
            raise AuxiliaryDataMissing(f"FinMind {dataset} returned a {type(body).__name__} body")
        if body.get("msg") != "success" or not isinstance(body.get("data"), list):
            raise AuxiliaryDataMissing(
                f"FinMind {dataset} returned {body.get('msg')!r}"
            )
        return body["data"]

    def institutional_flows(self, symbol: str, start_date: str) -> list[FlowRecord]:
        rows = self._query(
            "TaiwanStockInstitutionalInvestorsBuySell",
            data_id=strip_taiwan_suffix(symbol),
            start_date=start_date,
        )
        known = {p.value: p for p in ParticipantClass}
        records = []
        try:
            for row in rows:
                participant = known.get(row.get("name", ""))
                if participant is None:
                    continue
                records.append(FlowRecord(
                    date=str(row["date"]),
                    participant=participant,
                    buy=float(row.get("buy") or 0),
                    sell=float(row.get("sell") or 0),
                ))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise AuxiliaryDataMissing(f"Malformed FinMind flow row for {symbol}: {e}") from e
        logger.debug("FinMind: %d flow records for %s", len(records), symbol)
        return records

    def daily_records(self, symbol: str, start_date: str) -> list[DailyRecord]:
        rows = self._query(
            "TaiwanStockPrice",
            data_id=strip_taiwan_suffix(symbol),
            start_date=start_date,
        )
        try:
            records = [
                DailyRecord(
                    date=str(row["date"]),
                    volume=int(row.get("Trading_Volume") or 0),
                    close=float(row.get("close") or 0),
                )
                for row in rows
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise AuxiliaryDataMissing(f"Malformed FinMind price row for {symbol}: {e}") from e
        logger.debug("FinMind: %d daily records for %s", len(records), symbol)
        return records

    def stock_name(self, symbol: str) -> str | None:
        rows = self._query("TaiwanStockInfo", data_id=strip_taiwan_suffix(symbol))
        if not rows:
            return None
        try:
            name = rows[0].get("stock_name")
        except AttributeError as e:
            raise AuxiliaryDataMissing(f"Malformed FinMind info row for {symbol}: {e}") from e
        return str(name) if name else None

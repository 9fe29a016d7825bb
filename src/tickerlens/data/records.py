from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ParticipantClass(str, Enum):
    FOREIGN_INVESTOR = "Foreign_Investor"
    INVESTMENT_TRUST = "Investment_Trust"


@dataclass(frozen=True, slots=True)
class FlowRecord:
    """Buy/sell volume of one participant class on one calendar date."""

    date: str
    participant: ParticipantClass
    buy: float
    sell: float

    @property
    def net(self) -> float:
        return self.buy - self.sell


@dataclass(frozen=True, slots=True)
class NetFlow:
    foreign: float = 0.0
    trust: float = 0.0


@dataclass(frozen=True, slots=True)
class DailyRecord:
    """Exchange-reported daily volume and close, keyed by local date."""

    date: str
    volume: int
    close: float


def reduce_flows(records: Iterable[FlowRecord]) -> dict[str, NetFlow]:
    """Sum net buy/sell per date and participant class."""
    totals: dict[str, dict[ParticipantClass, float]] = {}
    for rec in records:
        day = totals.setdefault(rec.date, {})
        day[rec.participant] = day.get(rec.participant, 0.0) + rec.net

    return {
        date: NetFlow(
            foreign=day.get(ParticipantClass.FOREIGN_INVESTOR, 0.0),
            trust=day.get(ParticipantClass.INVESTMENT_TRUST, 0.0),
        )
        for date, day in totals.items()
    }


def volume_map(records: Iterable[DailyRecord]) -> dict[str, int]:
    return {rec.date: rec.volume for rec in records}


def close_map(records: Iterable[DailyRecord]) -> dict[str, float]:
    return {rec.date: rec.close for rec in records if rec.close > 0}

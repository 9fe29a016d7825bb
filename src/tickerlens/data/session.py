"""Regular trading sessions for markets whose intraday buckets are re-labelled."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True, slots=True)
class TradingSession:
    open: time
    close: time

    @property
    def open_minutes(self) -> int:
        return self.open.hour * 60 + self.open.minute

    @property
    def close_minutes(self) -> int:
        return self.close.hour * 60 + self.close.minute


# TWSE / TPEx: continuous trading 09:00-13:30, final bucket closes at 13:30.
TAIPEI = TradingSession(open=time(9, 0), close=time(13, 30))

SESSIONS: dict[str, TradingSession] = {
    "Asia/Taipei": TAIPEI,
}


def session_for(timezone: str) -> TradingSession | None:
    """Registered session for an exchange timezone, or None to pass through."""
    return SESSIONS.get(timezone)

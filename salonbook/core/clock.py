# salonbook/core/clock.py
from __future__ import annotations

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in the salon's timezone, returned naive like every stored appointment time."""

    def __init__(self, tz: str | ZoneInfo):
        self.tz = ZoneInfo(tz) if isinstance(tz, str) else tz

    def now(self) -> datetime:
        return datetime.now(self.tz).replace(tzinfo=None)

# salonbook/core/business.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from zoneinfo import ZoneInfo

from salonbook.core.config import Settings

SUNDAY = 7  # ISO weekday


@dataclass(frozen=True)
class BusinessHours:
    opens: time = time(9, 0)
    closes: time = time(18, 0)
    closed_weekdays: frozenset[int] = frozenset({SUNDAY})

    def is_open_on(self, day: datetime) -> bool:
        return day.isoweekday() not in self.closed_weekdays

    def is_within(self, start: datetime, end: datetime) -> bool:
        """[start, end) must sit inside one open day's opening hours."""
        if not self.is_open_on(start):
            return False
        if end.date() != start.date():
            return False
        return start.time() >= self.opens and end.time() <= self.closes


@dataclass(frozen=True)
class SchedulingConfig:
    """Everything the availability engine needs to know about the salon's calendar."""

    hours: BusinessHours = field(default_factory=BusinessHours)
    tz: ZoneInfo = field(default_factory=lambda: ZoneInfo("Europe/Paris"))
    same_day_alternatives: int = 3
    next_day_first_hour: int = 10
    next_day_alternatives: int = 4

    @classmethod
    def from_settings(cls, settings: Settings) -> "SchedulingConfig":
        return cls(
            hours=BusinessHours(
                opens=settings.OPENING_TIME,
                closes=settings.CLOSING_TIME,
                closed_weekdays=frozenset(settings.CLOSED_WEEKDAYS),
            ),
            tz=ZoneInfo(settings.SALON_TIMEZONE),
            same_day_alternatives=settings.SAME_DAY_ALTERNATIVES,
            next_day_first_hour=settings.NEXT_DAY_FIRST_HOUR,
            next_day_alternatives=settings.NEXT_DAY_ALTERNATIVES,
        )

    def to_local(self, dt: datetime) -> datetime:
        """Aware datetimes are converted to salon time; naive ones already are salon time."""
        if dt.tzinfo is None:
            return dt
        return dt.astimezone(self.tz).replace(tzinfo=None)

    def candidate_starts(self, requested: datetime) -> list[datetime]:
        """Alternative start times in the order they are offered, before any availability filtering."""
        candidates = [requested + timedelta(hours=i) for i in range(1, self.same_day_alternatives + 1)]

        next_day = (requested + timedelta(days=1)).replace(
            hour=self.next_day_first_hour, minute=0, second=0, microsecond=0
        )
        if self.hours.is_open_on(next_day):
            candidates.extend(next_day + timedelta(hours=i) for i in range(self.next_day_alternatives))
        return candidates

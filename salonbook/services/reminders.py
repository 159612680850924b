# salonbook/services/reminders.py
from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.clock import Clock
from salonbook.core.errors import ErrorSeverity, log_error
from salonbook.core.logging import get_logger
from salonbook.crud.appointment import find_by_status_and_time_range
from salonbook.db.models.appointment import AppointmentStatus
from salonbook.services.appointments import notification_payload
from salonbook.services.events import APPOINTMENT_REMINDER, EventBus

logger = get_logger(__name__)


class ReminderJobs:
    """Reminder job bodies. Each run publishes one reminder event per confirmed appointment in its window."""

    def __init__(
        self,
        db: AsyncSession,
        bus: EventBus,
        clock: Clock,
        *,
        lookahead_start: timedelta = timedelta(hours=2),
        lookahead_end: timedelta = timedelta(hours=3),
    ):
        self.db = db
        self.bus = bus
        self.clock = clock
        self.lookahead_start = lookahead_start
        self.lookahead_end = lookahead_end

    async def _remind(self, kind: str, start: datetime, end: datetime) -> int:
        appointments = await find_by_status_and_time_range(
            self.db, AppointmentStatus.CONFIRMED, start, end
        )
        logger.info("reminders_start", kind=kind, window_start=start.isoformat(),
                    window_end=end.isoformat(), candidates=len(appointments))

        sent = 0
        for appt in appointments:
            try:
                data = notification_payload(appt)
                data["kind"] = kind
                if self.bus.publish(APPOINTMENT_REMINDER, data) is not None:
                    sent += 1
            except Exception as e:
                log_error(e, {"component": "reminders", "method": kind,
                              "appointment_id": appt.id}, ErrorSeverity.MEDIUM)

        logger.info("reminders_done", kind=kind, sent=sent)
        return sent

    async def send_daily_reminders(self) -> int:
        """Confirmed appointments starting any time tomorrow."""
        tomorrow = (self.clock.now() + timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return await self._remind("daily", tomorrow, tomorrow + timedelta(days=1))

    async def send_hourly_reminders(self) -> int:
        """Confirmed appointments starting two to three hours from now."""
        now = self.clock.now()
        return await self._remind("hourly", now + self.lookahead_start, now + self.lookahead_end)

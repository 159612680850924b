# salonbook/services/appointments.py
"""
Appointment lifecycle. Every write goes through the availability engine
and the store's guarded statements; notifications leave through the event bus.
"""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.business import SchedulingConfig
from salonbook.core.clock import Clock, SystemClock
from salonbook.core.config import settings
from salonbook.core.errors import (
    ErrorSeverity,
    InvalidRequestError,
    NotFoundError,
    SlotConflictError,
    SlotUnavailableError,
    log_error,
)
from salonbook.core.logging import get_logger
from salonbook.crud import appointment as store
from salonbook.crud.service import get_service
from salonbook.crud.user import get_user
from salonbook.db.models.appointment import Appointment, AppointmentStatus, TERMINAL_STATUSES
from salonbook.services.availability import MSG_BOOKED, AvailabilityEngine
from salonbook.services.events import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CONFIRMED,
    EventBus,
    event_bus,
)

logger = get_logger(__name__)


def notification_payload(appt: Appointment) -> dict[str, Any]:
    """Plain data handed to notification gateways."""
    return {
        "appointment_id": appt.id,
        "user_id": appt.user_id,
        "user_email": appt.user.email,
        "user_name": appt.user.full_name,
        "user_mobile": appt.user.mobile,
        "service_name": appt.service.name,
        "starts_at": appt.starts_at.isoformat(),
        "ends_at": appt.ends_at.isoformat(),
        "status": appt.status,
    }


class AppointmentService:
    def __init__(
        self,
        db: AsyncSession,
        *,
        config: Optional[SchedulingConfig] = None,
        bus: Optional[EventBus] = None,
        clock: Optional[Clock] = None,
    ):
        self.db = db
        self.config = config or SchedulingConfig.from_settings(settings)
        self.bus = bus or event_bus
        self.clock = clock or SystemClock(self.config.tz)
        self.engine = AvailabilityEngine(db, self.config)

    # ---------- helpers ----------

    def _publish(self, event_type: str, appt: Appointment) -> None:
        # Delivery problems never undo a committed booking
        try:
            self.bus.publish(event_type, notification_payload(appt))
        except Exception as e:
            log_error(e, {"component": "event_bus", "method": event_type,
                          "appointment_id": appt.id}, ErrorSeverity.MEDIUM)

    async def _require(self, appointment_id: int) -> Appointment:
        appt = await store.get_appointment(self.db, appointment_id)
        if appt is None:
            raise NotFoundError("Appointment", appointment_id)
        return appt

    @staticmethod
    def _check_transition(appt: Appointment, status: AppointmentStatus) -> None:
        current = AppointmentStatus(appt.status)
        if current in TERMINAL_STATUSES and status != current:
            raise InvalidRequestError(
                f"cannot change status of a {current.value} appointment to {status.value}"
            )

    async def _unavailable(self, starts_at: datetime, duration: timedelta,
                           exclude_id: Optional[int] = None) -> SlotUnavailableError:
        alternatives = await self.engine.suggest_alternatives(starts_at, duration, exclude_id)
        return SlotUnavailableError(MSG_BOOKED, alternatives)

    # ---------- writes ----------

    async def create_appointment(
        self,
        user_id: int,
        service_id: int,
        starts_at: datetime,
        notes: Optional[str] = None,
    ) -> Appointment:
        starts_at = self.config.to_local(starts_at)

        verdict = await self.engine.check_availability(service_id, starts_at)
        if not verdict.available:
            raise SlotUnavailableError.from_verdict(verdict)

        user = await get_user(self.db, user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        service = await get_service(self.db, service_id)
        duration = timedelta(minutes=service.duration_minutes)

        try:
            appt = await store.insert_if_free(
                self.db,
                user_id=user.id,
                service_id=service.id,
                starts_at=starts_at,
                ends_at=starts_at + duration,
                status=AppointmentStatus.CONFIRMED,
                notes=notes,
                now=self.clock.now(),
            )
        except SlotConflictError:
            logger.warning("booking_race_lost", service_id=service_id, starts_at=starts_at.isoformat())
            raise await self._unavailable(starts_at, duration)

        logger.info("appointment_created", appointment_id=appt.id, user_id=user.id,
                    service_id=service.id, starts_at=appt.starts_at.isoformat())
        self._publish(APPOINTMENT_CONFIRMED, appt)
        return appt

    async def update_appointment_status(self, appointment_id: int, status: AppointmentStatus) -> Appointment:
        appt = await self._require(appointment_id)
        self._check_transition(appt, status)

        previous = appt.status
        appt.status = status.value
        appt.updated_at = self.clock.now()
        await self.db.commit()

        logger.info("appointment_status_changed", appointment_id=appt.id,
                    previous=previous, status=status.value)
        if status == AppointmentStatus.CANCELLED and previous != AppointmentStatus.CANCELLED.value:
            self._publish(APPOINTMENT_CANCELLED, appt)
        return appt

    async def cancel_appointment(self, appointment_id: int) -> Appointment:
        return await self.update_appointment_status(appointment_id, AppointmentStatus.CANCELLED)

    async def update_appointment(
        self,
        appointment_id: int,
        *,
        service_id: Optional[int] = None,
        starts_at: Optional[datetime] = None,
        ends_at: Optional[datetime] = None,
        notes: Optional[str] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> Appointment:
        appt = await self._require(appointment_id)
        if status is not None:
            self._check_transition(appt, status)

        if service_id is not None or starts_at is not None or ends_at is not None:
            if appt.is_terminal:
                raise InvalidRequestError(f"cannot reschedule a {appt.status} appointment")

            target_service_id = service_id if service_id is not None else appt.service_id
            target_start = self.config.to_local(starts_at) if starts_at is not None else appt.starts_at

            service = await get_service(self.db, target_service_id)
            if service is None:
                raise NotFoundError("Service", target_service_id)
            duration = timedelta(minutes=service.duration_minutes)
            target_end = target_start + duration
            if ends_at is not None and self.config.to_local(ends_at) != target_end:
                raise InvalidRequestError("ends_at must equal the start time plus the service duration")

            verdict = await self.engine.check_availability(
                target_service_id, target_start, exclude_appointment_id=appt.id
            )
            if not verdict.available:
                raise SlotUnavailableError.from_verdict(verdict)

            try:
                await store.reschedule_if_free(
                    self.db,
                    appt.id,
                    service_id=target_service_id,
                    starts_at=target_start,
                    ends_at=target_end,
                    now=self.clock.now(),
                )
            except SlotConflictError:
                raise await self._unavailable(target_start, duration, appt.id)

            # The guarded UPDATE bypassed the identity map
            appt = await self._require(appointment_id)

        previous = appt.status
        if notes is not None:
            appt.notes = notes
        if status is not None:
            appt.status = status.value
        appt.updated_at = self.clock.now()
        await self.db.commit()

        appt = await self._require(appointment_id)
        logger.info("appointment_updated", appointment_id=appt.id, status=appt.status,
                    starts_at=appt.starts_at.isoformat())
        if status == AppointmentStatus.CANCELLED and previous != AppointmentStatus.CANCELLED.value:
            self._publish(APPOINTMENT_CANCELLED, appt)
        return appt

    # ---------- reads ----------

    async def get_appointment(self, appointment_id: int) -> Appointment:
        return await self._require(appointment_id)

    async def get_user_appointments(self, user_id: int, upcoming_only: bool = False) -> Sequence[Appointment]:
        if await get_user(self.db, user_id) is None:
            raise NotFoundError("User", user_id)
        after = self.clock.now() if upcoming_only else None
        return await store.find_by_user(self.db, user_id, after=after)

    def _local_range(self, start: datetime, end: datetime) -> tuple[datetime, datetime]:
        start, end = self.config.to_local(start), self.config.to_local(end)
        if end <= start:
            raise InvalidRequestError("end must be after start")
        return start, end

    async def get_appointments_between(self, start: datetime, end: datetime) -> Sequence[Appointment]:
        start, end = self._local_range(start, end)
        return await store.find_by_time_range(self.db, start, end)

    async def get_stats(self, start: datetime, end: datetime) -> dict[str, Any]:
        """
        Appointment statistics for start times in [start, end).

        `total`, `by_day`, `by_service` and `by_time_slot` count appointments that
        still hold their slot. The status counts cover every appointment in the
        range, and `completion_rate` is the percentage of those that were completed.
        """
        start, end = self._local_range(start, end)
        by_day = await store.count_by_day(self.db, start, end)
        by_service = await store.count_by_service(self.db, start, end)
        by_hour = await store.count_by_hour(self.db, start, end)
        by_status = await store.count_by_status(self.db, start, end)

        booked = sum(by_status.values())
        completed = by_status.get(AppointmentStatus.COMPLETED.value, 0)
        return {
            "start": start,
            "end": end,
            "total": sum(n for _, n in by_day),
            "completed": completed,
            "cancelled": by_status.get(AppointmentStatus.CANCELLED.value, 0),
            "no_show": by_status.get(AppointmentStatus.NO_SHOW.value, 0),
            "completion_rate": round(100.0 * completed / booked, 1) if booked else 0.0,
            "by_day": dict(by_day),
            "by_service": dict(by_service),
            "by_time_slot": {f"{h:02d}:00": n for h, n in by_hour},
        }

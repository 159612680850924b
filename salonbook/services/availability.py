# salonbook/services/availability.py
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.business import SchedulingConfig
from salonbook.core.errors import NotFoundError
from salonbook.core.logging import get_logger
from salonbook.crud.appointment import find_overlapping
from salonbook.crud.service import get_service

logger = get_logger(__name__)

MSG_SERVICE_INACTIVE = "service no longer available"
MSG_OUTSIDE_HOURS = "requested slot outside business hours"
MSG_BOOKED = "slot already booked"
MSG_AVAILABLE = "slot available"


class AvailabilityVerdict(BaseModel):
    available: bool = Field(..., description="Whether the requested slot can be booked")
    message: str = Field(..., description="Reason for the verdict")
    alternative_slots: list[datetime] = Field(default_factory=list)


class AvailabilityEngine:
    """Decides whether a slot fits the salon's hours and calendar, and offers nearby alternatives."""

    def __init__(self, db: AsyncSession, config: SchedulingConfig):
        self.db = db
        self.config = config

    async def is_free(
        self,
        starts_at: datetime,
        ends_at: datetime,
        exclude_id: Optional[int] = None,
    ) -> bool:
        if not self.config.hours.is_within(starts_at, ends_at):
            return False
        clashes = await find_overlapping(self.db, starts_at, ends_at, exclude_id=exclude_id)
        return not clashes

    async def suggest_alternatives(
        self,
        starts_at: datetime,
        duration: timedelta,
        exclude_id: Optional[int] = None,
    ) -> list[datetime]:
        """Same-day hourly steps first, then next-day morning slots; only free ones survive."""
        slots = []
        for candidate in self.config.candidate_starts(starts_at):
            if await self.is_free(candidate, candidate + duration, exclude_id):
                slots.append(candidate)
        return slots

    async def check_availability(
        self,
        service_id: int,
        starts_at: datetime,
        exclude_appointment_id: Optional[int] = None,
    ) -> AvailabilityVerdict:
        starts_at = self.config.to_local(starts_at)

        service = await get_service(self.db, service_id)
        if service is None:
            raise NotFoundError("Service", service_id)
        if not service.active:
            return AvailabilityVerdict(available=False, message=MSG_SERVICE_INACTIVE)

        duration = timedelta(minutes=service.duration_minutes)
        ends_at = starts_at + duration

        if not self.config.hours.is_within(starts_at, ends_at):
            message = MSG_OUTSIDE_HOURS
        elif await find_overlapping(self.db, starts_at, ends_at, exclude_id=exclude_appointment_id):
            message = MSG_BOOKED
        else:
            return AvailabilityVerdict(available=True, message=MSG_AVAILABLE)

        alternatives = await self.suggest_alternatives(starts_at, duration, exclude_appointment_id)
        logger.info(
            "slot_unavailable",
            service_id=service_id,
            starts_at=starts_at.isoformat(),
            reason=message,
            alternatives=len(alternatives),
        )
        return AvailabilityVerdict(available=False, message=message, alternative_slots=alternatives)

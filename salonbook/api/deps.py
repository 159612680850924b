# salonbook/api/deps.py
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.business import SchedulingConfig
from salonbook.core.clock import Clock, SystemClock
from salonbook.core.config import settings
from salonbook.db.session import get_session
from salonbook.services.appointments import AppointmentService
from salonbook.services.availability import AvailabilityEngine
from salonbook.services.catalog import CatalogService
from salonbook.services.events import EventBus, get_event_bus

_config = SchedulingConfig.from_settings(settings)


def get_scheduling_config() -> SchedulingConfig:
    return _config


def get_clock(config: SchedulingConfig = Depends(get_scheduling_config)) -> Clock:
    return SystemClock(config.tz)


def get_appointment_service(
    db: AsyncSession = Depends(get_session),
    config: SchedulingConfig = Depends(get_scheduling_config),
    bus: EventBus = Depends(get_event_bus),
    clock: Clock = Depends(get_clock),
) -> AppointmentService:
    return AppointmentService(db, config=config, bus=bus, clock=clock)


def get_availability_engine(
    db: AsyncSession = Depends(get_session),
    config: SchedulingConfig = Depends(get_scheduling_config),
) -> AvailabilityEngine:
    return AvailabilityEngine(db, config)


def get_catalog_service(db: AsyncSession = Depends(get_session)) -> CatalogService:
    return CatalogService(db)

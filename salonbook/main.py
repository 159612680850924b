# salonbook/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it everywhere
from dotenv import load_dotenv
load_dotenv()

import asyncio
import time
from datetime import timedelta

import sqlalchemy as sa
from fastapi import Depends, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from salonbook.core.config import settings
from salonbook.core.logging import setup_logging, LoggingMiddleware, get_logger
from salonbook.core.errors import (
    ErrorSeverity,
    SalonError,
    SlotUnavailableError,
    error_aggregator,
    log_error,
)

setup_logging(debug=settings.is_development, max_log_length=settings.MAX_LOG_LENGTH, level=settings.LOG_LEVEL)
logger = get_logger(__name__)

from salonbook.api.deps import get_scheduling_config
from salonbook.core.clock import SystemClock
from salonbook.db.base import init_db
from salonbook.db.session import AsyncSessionLocal, get_session
from salonbook.services.events import event_bus
from salonbook.services.notifications import NotificationDispatcher, gateway_from_settings
from salonbook.services.reminders import ReminderJobs
from salonbook.services.scheduler import JobScheduler, daily_at, every, hourly

# Routers
from salonbook.api.routes.appointments import router as appointments_router
from salonbook.api.routes.availability import router as availability_router
from salonbook.api.routes.services import router as services_router
from salonbook.api.routes.users import router as users_router

app = FastAPI(title="SalonBook", description="Salon appointment booking with availability checks")

app.middleware("http")(
    LoggingMiddleware(log_requests=settings.LOG_REQUESTS, log_responses=settings.LOG_RESPONSES)
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------- Error mapping --------
@app.exception_handler(SlotUnavailableError)
async def slot_unavailable_handler(request: Request, exc: SlotUnavailableError):
    body = {"available": False, "message": exc.message, "alternative_slots": exc.alternative_slots}
    return JSONResponse(jsonable_encoder(body), status_code=exc.status_code)


@app.exception_handler(SalonError)
async def salon_error_handler(request: Request, exc: SalonError):
    if exc.status_code >= 500:
        log_error(exc, {"endpoint": request.url.path, "method": request.method}, ErrorSeverity.HIGH)
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log_error(exc, {"endpoint": request.url.path, "method": request.method}, ErrorSeverity.HIGH)
    return JSONResponse({"detail": "Internal server error"}, status_code=500)


# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}


@app.get("/readyz", include_in_schema=False)
async def readyz(db: AsyncSession = Depends(get_session)):
    await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Internal metrics endpoint for monitoring."""
    return {
        "status": "healthy",
        "errors": error_aggregator.get_error_summary(),
        "pending_events": event_bus.pending(),
        "timestamp": time.time(),
    }


# -------- Include routers --------
app.include_router(availability_router)
app.include_router(appointments_router)
app.include_router(users_router)
app.include_router(services_router)


# -------- Background tasks --------
def build_scheduler() -> JobScheduler:
    config = get_scheduling_config()
    clock = SystemClock(config.tz)
    window = dict(
        lookahead_start=timedelta(minutes=settings.REMINDER_LOOKAHEAD_START_MINUTES),
        lookahead_end=timedelta(minutes=settings.REMINDER_LOOKAHEAD_END_MINUTES),
    )

    async def daily_reminders():
        async with AsyncSessionLocal() as db:
            return await ReminderJobs(db, event_bus, clock, **window).send_daily_reminders()

    async def hourly_reminders():
        async with AsyncSessionLocal() as db:
            return await ReminderJobs(db, event_bus, clock, **window).send_hourly_reminders()

    async def cleanup_errors():
        error_aggregator.cleanup_old_patterns()

    scheduler = JobScheduler(clock)
    if settings.REMINDERS_ENABLED:
        scheduler.add("daily_reminders", daily_at(settings.REMINDER_DAILY_HOUR), daily_reminders)
        scheduler.add("hourly_reminders", hourly(), hourly_reminders)
    scheduler.add("error_cleanup", every(timedelta(hours=1)), cleanup_errors)
    return scheduler


_stop_event = asyncio.Event()
_tasks: list[asyncio.Task] = []


@app.on_event("startup")
async def startup_event():
    logger.info("application_startup", env=settings.APP_ENV)
    if settings.is_development:
        await init_db()
    _stop_event.clear()
    dispatcher = NotificationDispatcher(event_bus, gateway_from_settings(settings))
    _tasks.append(asyncio.create_task(dispatcher.run(_stop_event)))
    _tasks.append(asyncio.create_task(build_scheduler().run(_stop_event)))


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("application_shutdown")
    _stop_event.set()
    for task in _tasks:
        try:
            await asyncio.wait_for(task, timeout=5.0)
        except asyncio.TimeoutError:
            task.cancel()
    _tasks.clear()

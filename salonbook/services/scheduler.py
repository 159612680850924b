# salonbook/services/scheduler.py
"""
Minimal periodic job runner living inside the API process.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable

from salonbook.core.clock import Clock
from salonbook.core.errors import ErrorSeverity, log_error
from salonbook.core.logging import get_logger

logger = get_logger(__name__)

Schedule = Callable[[datetime], datetime]
Job = Callable[[], Awaitable[object]]


def daily_at(hour: int, minute: int = 0) -> Schedule:
    """Next occurrence of hour:minute strictly after now."""
    def next_run(now: datetime) -> datetime:
        candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(days=1)
        return candidate
    return next_run


def hourly(minute: int = 0) -> Schedule:
    """Next occurrence of the given minute past the hour, strictly after now."""
    def next_run(now: datetime) -> datetime:
        candidate = now.replace(minute=minute, second=0, microsecond=0)
        if candidate <= now:
            candidate += timedelta(hours=1)
        return candidate
    return next_run


def every(interval: timedelta) -> Schedule:
    def next_run(now: datetime) -> datetime:
        return now + interval
    return next_run


@dataclass
class ScheduledJob:
    name: str
    schedule: Schedule
    job: Job


class JobScheduler:
    def __init__(self, clock: Clock):
        self.clock = clock
        self.jobs: list[ScheduledJob] = []

    def add(self, name: str, schedule: Schedule, job: Job) -> None:
        self.jobs.append(ScheduledJob(name, schedule, job))

    async def run_once(self, scheduled: ScheduledJob) -> None:
        try:
            result = await scheduled.job()
            logger.info("job_finished", job=scheduled.name, result=result)
        except Exception as e:
            log_error(e, {"component": "scheduler", "method": scheduled.name}, ErrorSeverity.HIGH)

    async def _loop(self, scheduled: ScheduledJob, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            now = self.clock.now()
            delay = (scheduled.schedule(now) - now).total_seconds()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=max(delay, 0.0))
            except asyncio.TimeoutError:
                await self.run_once(scheduled)

    async def run(self, stop_event: asyncio.Event) -> None:
        logger.info("scheduler_started", jobs=[j.name for j in self.jobs])
        await asyncio.gather(*(self._loop(j, stop_event) for j in self.jobs))
        logger.info("scheduler_stopped")

"""
Schedule arithmetic and the job runner.
"""

import asyncio
import pytest
from datetime import datetime, timedelta

from salonbook.services.scheduler import JobScheduler, daily_at, every, hourly


class _Clock:
    def __init__(self, now):
        self.current = now

    def now(self):
        return self.current


@pytest.mark.unit
class TestSchedules:

    def test_daily_later_today(self):
        assert daily_at(10)(datetime(2024, 1, 15, 8, 0)) == datetime(2024, 1, 15, 10, 0)

    def test_daily_rolls_to_tomorrow(self):
        assert daily_at(10)(datetime(2024, 1, 15, 10, 0)) == datetime(2024, 1, 16, 10, 0)

    def test_hourly_next_top_of_hour(self):
        assert hourly()(datetime(2024, 1, 15, 8, 20)) == datetime(2024, 1, 15, 9, 0)
        assert hourly()(datetime(2024, 1, 15, 23, 0)) == datetime(2024, 1, 16, 0, 0)

    def test_every(self):
        assert every(timedelta(minutes=5))(datetime(2024, 1, 15, 8, 0)) == datetime(2024, 1, 15, 8, 5)


class TestJobScheduler:

    @pytest.mark.asyncio
    async def test_runs_due_job_and_stops(self):
        scheduler = JobScheduler(_Clock(datetime(2024, 1, 15, 8, 0)))
        ran = asyncio.Event()

        async def job():
            ran.set()
            return 0

        scheduler.add("tick", every(timedelta(milliseconds=5)), job)
        stop = asyncio.Event()
        task = asyncio.create_task(scheduler.run(stop))

        await asyncio.wait_for(ran.wait(), timeout=2.0)
        stop.set()
        await asyncio.wait_for(task, timeout=2.0)

    @pytest.mark.asyncio
    async def test_failing_job_is_contained(self):
        scheduler = JobScheduler(_Clock(datetime(2024, 1, 15, 8, 0)))

        async def job():
            raise RuntimeError("boom")

        scheduler.add("broken", hourly(), job)
        await scheduler.run_once(scheduler.jobs[0])

    @pytest.mark.asyncio
    async def test_stop_before_due(self):
        scheduler = JobScheduler(_Clock(datetime(2024, 1, 15, 8, 0)))
        called = []

        async def job():
            called.append(1)

        scheduler.add("daily", daily_at(10), job)
        stop = asyncio.Event()
        task = asyncio.create_task(scheduler.run(stop))
        await asyncio.sleep(0.01)
        stop.set()
        await asyncio.wait_for(task, timeout=2.0)

        assert called == []

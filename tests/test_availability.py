"""
Availability engine: verdicts, overlap semantics and alternative slots.
"""

import pytest
from datetime import datetime, timedelta

from salonbook.core.errors import NotFoundError
from salonbook.db.models.appointment import AppointmentStatus

D = datetime(2024, 1, 15)  # Monday


def at(hour, minute=0, day=D):
    return day.replace(hour=hour, minute=minute)


@pytest.mark.essential
class TestCheckAvailability:

    @pytest.mark.asyncio
    async def test_free_slot(self, engine_svc, make_service):
        service = await make_service()
        verdict = await engine_svc.check_availability(service.id, at(10))
        assert verdict.available is True
        assert verdict.message == "slot available"
        assert verdict.alternative_slots == []

    @pytest.mark.asyncio
    async def test_unknown_service(self, engine_svc):
        with pytest.raises(NotFoundError) as exc:
            await engine_svc.check_availability(999, at(10))
        assert "Service" in str(exc.value)
        assert "999" in str(exc.value)

    @pytest.mark.asyncio
    async def test_inactive_service_has_no_alternatives(self, engine_svc, make_service):
        service = await make_service(active=False)
        verdict = await engine_svc.check_availability(service.id, at(10))
        assert verdict.available is False
        assert verdict.message == "service no longer available"
        assert verdict.alternative_slots == []

    @pytest.mark.asyncio
    async def test_outside_business_hours(self, engine_svc, make_service):
        service = await make_service(duration_minutes=30)
        verdict = await engine_svc.check_availability(service.id, at(8, 59))
        assert verdict.available is False
        assert verdict.message == "requested slot outside business hours"
        assert verdict.alternative_slots[0] == at(9, 59)

    @pytest.mark.asyncio
    async def test_last_slot_of_the_day(self, engine_svc, make_service):
        service = await make_service(duration_minutes=30)
        assert (await engine_svc.check_availability(service.id, at(17, 30))).available
        assert not (await engine_svc.check_availability(service.id, at(17, 31))).available

    @pytest.mark.asyncio
    async def test_sunday_refused(self, engine_svc, make_service):
        service = await make_service()
        verdict = await engine_svc.check_availability(service.id, datetime(2024, 1, 14, 10, 0))
        assert verdict.message == "requested slot outside business hours"

    @pytest.mark.asyncio
    async def test_booked_slot_offers_alternatives(self, engine_svc, make_service, make_user, book):
        service = await make_service(duration_minutes=60)
        user = await make_user()
        await book(user, service, at(10))

        verdict = await engine_svc.check_availability(service.id, at(10, 30))

        assert verdict.available is False
        assert verdict.message == "slot already booked"
        assert verdict.alternative_slots[0] == at(11, 30)
        assert verdict.alternative_slots == [
            at(11, 30), at(12, 30), at(13, 30),
            at(10, day=D + timedelta(days=1)), at(11, day=D + timedelta(days=1)),
            at(12, day=D + timedelta(days=1)), at(13, day=D + timedelta(days=1)),
        ]

    @pytest.mark.asyncio
    async def test_back_to_back_is_free(self, engine_svc, make_service, make_user, book):
        service = await make_service(duration_minutes=60)
        user = await make_user()
        await book(user, service, at(10))

        assert (await engine_svc.check_availability(service.id, at(11))).available
        assert (await engine_svc.check_availability(service.id, at(9))).available

    @pytest.mark.asyncio
    async def test_containing_interval_conflicts(self, engine_svc, make_service, make_user, book):
        short = await make_service(name="Fringe", duration_minutes=15)
        long = await make_service(name="Colour", duration_minutes=180)
        user = await make_user()
        await book(user, short, at(11))

        verdict = await engine_svc.check_availability(long.id, at(10))
        assert verdict.message == "slot already booked"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW])
    async def test_released_statuses_do_not_block(self, engine_svc, make_service, make_user, book, status):
        service = await make_service()
        user = await make_user()
        await book(user, service, at(10), status=status)

        assert (await engine_svc.check_availability(service.id, at(10))).available

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [AppointmentStatus.SCHEDULED, AppointmentStatus.COMPLETED])
    async def test_other_statuses_block(self, engine_svc, make_service, make_user, book, status):
        service = await make_service()
        user = await make_user()
        await book(user, service, at(10), status=status)

        assert not (await engine_svc.check_availability(service.id, at(10))).available

    @pytest.mark.asyncio
    async def test_own_slot_available_when_excluded(self, engine_svc, make_service, make_user, book):
        service = await make_service()
        user = await make_user()
        appt = await book(user, service, at(10))

        verdict = await engine_svc.check_availability(service.id, at(10, 30), exclude_appointment_id=appt.id)
        assert verdict.available is True

    @pytest.mark.asyncio
    async def test_alternatives_skip_taken_and_late_slots(self, engine_svc, make_service, make_user, book):
        service = await make_service(duration_minutes=60)
        user = await make_user()
        await book(user, service, at(15))
        await book(user, service, at(17))

        verdict = await engine_svc.check_availability(service.id, at(15, 30))

        # 16:30 clashes with 17:00, 17:30 and 18:30 run past closing
        assert verdict.alternative_slots[0] == at(10, day=D + timedelta(days=1))
        assert len(verdict.alternative_slots) == 4

    @pytest.mark.asyncio
    async def test_empty_alternatives_is_normal(self, engine_svc, make_service):
        service = await make_service(duration_minutes=60)
        saturday = datetime(2024, 1, 13, 17, 30)

        verdict = await engine_svc.check_availability(service.id, saturday)

        assert verdict.available is False
        assert verdict.alternative_slots == []

    @pytest.mark.asyncio
    async def test_deterministic(self, engine_svc, make_service, make_user, book):
        service = await make_service()
        user = await make_user()
        await book(user, service, at(12))

        first = await engine_svc.check_availability(service.id, at(12))
        second = await engine_svc.check_availability(service.id, at(12))
        assert first == second

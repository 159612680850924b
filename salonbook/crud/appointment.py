# salonbook/crud/appointment.py

from __future__ import annotations
from datetime import datetime
from typing import Optional, Sequence

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from salonbook.core.errors import SlotConflictError
from salonbook.db.models.appointment import Appointment, AppointmentStatus, INACTIVE_STATUSES
from salonbook.db.models.service import Service

ID_LITERAL_TYPE = sa.BigInteger()


def overlap_exists(starts_at: datetime, ends_at: datetime, *, exclude_id: Optional[int] = None):
    """EXISTS clause matching any live appointment sharing an instant with [starts_at, ends_at)."""
    other = aliased(Appointment)
    q = sa.select(other.id).where(
        other.starts_at < ends_at,
        other.ends_at > starts_at,
        other.status.not_in(INACTIVE_STATUSES),
    )
    if exclude_id is not None:
        q = q.where(other.id != exclude_id)
    return q.exists()


async def get_appointment(db: AsyncSession, appointment_id: int) -> Optional[Appointment]:
    return await db.get(Appointment, appointment_id, populate_existing=True)


async def find_overlapping(
    db: AsyncSession,
    starts_at: datetime,
    ends_at: datetime,
    *,
    exclude_id: Optional[int] = None,
) -> Sequence[Appointment]:
    """Live (not cancelled / no-show) appointments overlapping [starts_at, ends_at)."""
    q = sa.select(Appointment).where(
        Appointment.starts_at < ends_at,
        Appointment.ends_at > starts_at,
        Appointment.status.not_in(INACTIVE_STATUSES),
    )
    if exclude_id is not None:
        q = q.where(Appointment.id != exclude_id)
    res = await db.execute(q.order_by(Appointment.starts_at.asc()))
    return res.scalars().all()


async def find_by_time_range(
    db: AsyncSession,
    start: datetime,
    end: datetime,
) -> Sequence[Appointment]:
    """Appointments starting in [start, end), any status."""
    q = (
        sa.select(Appointment)
        .where(Appointment.starts_at >= start, Appointment.starts_at < end)
        .order_by(Appointment.starts_at.asc())
    )
    res = await db.execute(q)
    return res.scalars().all()


async def find_by_status_and_time_range(
    db: AsyncSession,
    status: AppointmentStatus,
    start: datetime,
    end: datetime,
) -> Sequence[Appointment]:
    q = (
        sa.select(Appointment)
        .where(
            Appointment.status == status.value,
            Appointment.starts_at >= start,
            Appointment.starts_at < end,
        )
        .order_by(Appointment.starts_at.asc())
    )
    res = await db.execute(q)
    return res.scalars().all()


async def find_by_user(
    db: AsyncSession,
    user_id: int,
    *,
    after: Optional[datetime] = None,
) -> Sequence[Appointment]:
    q = sa.select(Appointment).where(Appointment.user_id == user_id)
    if after is not None:
        q = q.where(Appointment.starts_at > after)
    res = await db.execute(q.order_by(Appointment.starts_at.asc()))
    return res.scalars().all()


async def insert_if_free(
    db: AsyncSession,
    *,
    user_id: int,
    service_id: int,
    starts_at: datetime,
    ends_at: datetime,
    status: AppointmentStatus,
    notes: Optional[str],
    now: datetime,
) -> Appointment:
    """
    Insert an appointment in one statement that only writes a row when no live
    appointment overlaps. Raises SlotConflictError when another booking holds the
    interval, whether caught by the NOT EXISTS guard or by the exclusion constraint.
    """
    values = sa.select(
        sa.literal(user_id, ID_LITERAL_TYPE),
        sa.literal(service_id, ID_LITERAL_TYPE),
        sa.literal(starts_at, sa.DateTime()),
        sa.literal(ends_at, sa.DateTime()),
        sa.literal(status.value, sa.String(32)),
        sa.literal(notes, sa.Text()),
        sa.literal(now, sa.DateTime()),
        sa.literal(now, sa.DateTime()),
    ).where(~overlap_exists(starts_at, ends_at))

    stmt = (
        sa.insert(Appointment)
        .from_select(
            ["user_id", "service_id", "starts_at", "ends_at", "status", "notes", "created_at", "updated_at"],
            values,
        )
        .returning(Appointment.id)
    )

    try:
        res = await db.execute(stmt)
        new_id = res.scalar_one_or_none()
        if new_id is None:
            await db.rollback()
            raise SlotConflictError("slot already booked")
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise SlotConflictError("slot already booked")

    return await get_appointment(db, new_id)


async def reschedule_if_free(
    db: AsyncSession,
    appointment_id: int,
    *,
    service_id: int,
    starts_at: datetime,
    ends_at: datetime,
    now: datetime,
) -> None:
    """Move an appointment to a new interval unless another live appointment overlaps it.

    Does not commit; the caller applies its remaining field changes in the same transaction.
    """
    stmt = (
        sa.update(Appointment)
        .where(
            Appointment.id == appointment_id,
            ~overlap_exists(starts_at, ends_at, exclude_id=appointment_id),
        )
        .values(service_id=service_id, starts_at=starts_at, ends_at=ends_at, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    try:
        res = await db.execute(stmt)
    except IntegrityError:
        await db.rollback()
        raise SlotConflictError("slot already booked")
    if res.rowcount == 0:
        await db.rollback()
        raise SlotConflictError("slot already booked")


async def count_by_day(db: AsyncSession, start: datetime, end: datetime) -> list[tuple[str, int]]:
    """Live appointments per calendar day for start times in [start, end)."""
    day = sa.func.date(Appointment.starts_at)
    q = (
        sa.select(day.label("day"), sa.func.count(Appointment.id).label("total"))
        .where(
            Appointment.starts_at >= start,
            Appointment.starts_at < end,
            Appointment.status.not_in(INACTIVE_STATUSES),
        )
        .group_by(day)
        .order_by(day)
    )
    res = await db.execute(q)
    return [(str(row.day), row.total) for row in res]


async def count_by_service(db: AsyncSession, start: datetime, end: datetime) -> list[tuple[str, int]]:
    """Live appointments per service name for start times in [start, end), busiest first."""
    total = sa.func.count(Appointment.id)
    q = (
        sa.select(Service.name, total.label("total"))
        .select_from(Appointment)
        .join(Service, Service.id == Appointment.service_id)
        .where(
            Appointment.starts_at >= start,
            Appointment.starts_at < end,
            Appointment.status.not_in(INACTIVE_STATUSES),
        )
        .group_by(Service.name)
        .order_by(total.desc(), Service.name)
    )
    res = await db.execute(q)
    return [(row.name, row.total) for row in res]



async def count_by_status(db: AsyncSession, start: datetime, end: datetime) -> dict[str, int]:
    """Appointments of every status for start times in [start, end)."""
    total = sa.func.count(Appointment.id)
    q = (
        sa.select(Appointment.status, total.label("total"))
        .where(Appointment.starts_at >= start, Appointment.starts_at < end)
        .group_by(Appointment.status)
    )
    res = await db.execute(q)
    return {row.status: row.total for row in res}


async def count_by_hour(db: AsyncSession, start: datetime, end: datetime) -> list[tuple[int, int]]:
    """Live appointments per starting hour of the day for start times in [start, end)."""
    hour = sa.extract("hour", Appointment.starts_at)
    q = (
        sa.select(hour.label("hour"), sa.func.count(Appointment.id).label("total"))
        .where(
            Appointment.starts_at >= start,
            Appointment.starts_at < end,
            Appointment.status.not_in(INACTIVE_STATUSES),
        )
        .group_by(hour)
        .order_by(hour)
    )
    res = await db.execute(q)
    return [(int(row.hour), row.total) for row in res]

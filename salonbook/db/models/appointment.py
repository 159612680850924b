# salonbook/db/models/appointment.py

from __future__ import annotations
from datetime import datetime
from enum import Enum

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from salonbook.db.session import Base, ID_TYPE
from salonbook.db.models.user import User
from salonbook.db.models.service import Service


class AppointmentStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


# Statuses that no longer hold their slot
INACTIVE_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)
TERMINAL_STATUSES = frozenset({
    AppointmentStatus.CANCELLED,
    AppointmentStatus.COMPLETED,
    AppointmentStatus.NO_SHOW,
})


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        sa.CheckConstraint("ends_at > starts_at", name="ck_appointments_ends_after_start"),
        sa.Index("ix_appointments_user_id", "user_id"),
        sa.Index("ix_appointments_starts_at", "starts_at"),
        sa.Index("ix_appointments_status_starts_at", "status", "starts_at"),
    )

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ID_TYPE, sa.ForeignKey("users.id"), nullable=False)
    service_id: Mapped[int] = mapped_column(ID_TYPE, sa.ForeignKey("services.id"), nullable=False)

    # Salon-local wall-clock time; ends_at is a snapshot of start + service duration
    starts_at: Mapped[datetime] = mapped_column(sa.DateTime(), nullable=False)
    ends_at: Mapped[datetime] = mapped_column(sa.DateTime(), nullable=False)
    status: Mapped[str] = mapped_column(
        sa.String(32), nullable=False, server_default=AppointmentStatus.CONFIRMED.value
    )
    notes: Mapped[str | None] = mapped_column(sa.Text)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(sa.DateTime(), nullable=False)

    # Eager so notification payloads can be built without lazy IO
    user: Mapped[User] = relationship(lazy="selectin")
    service: Mapped[Service] = relationship(lazy="selectin")

    @property
    def is_terminal(self) -> bool:
        return AppointmentStatus(self.status) in TERMINAL_STATUSES


# Two live appointments may never share an instant. PostgreSQL enforces it for
# racing writers that both passed the application-level check.
EXCLUDE_OVERLAP_DDL = (
    "ALTER TABLE appointments ADD CONSTRAINT ex_appointments_no_overlap "
    "EXCLUDE USING gist (tsrange(starts_at, ends_at, '[)') WITH &&) "
    "WHERE (status NOT IN ('CANCELLED', 'NO_SHOW'))"
)

sa.event.listen(
    Appointment.__table__,
    "after_create",
    sa.DDL(EXCLUDE_OVERLAP_DDL).execute_if(dialect="postgresql"),
)

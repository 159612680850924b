# salonbook/schemas/appointment.py
from __future__ import annotations

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from salonbook.db.models.appointment import AppointmentStatus


class AppointmentCreate(BaseModel):
    user_id: int
    service_id: int
    starts_at: datetime = Field(..., description="ISO8601; naive values are salon-local time")
    notes: Optional[str] = Field(None, max_length=2000)


class AppointmentUpdate(BaseModel):
    service_id: Optional[int] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    notes: Optional[str] = Field(None, max_length=2000)
    status: Optional[AppointmentStatus] = None


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus


class AppointmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    service_id: int
    starts_at: datetime
    ends_at: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AppointmentStats(BaseModel):
    start: datetime
    end: datetime
    total: int
    completed: int
    cancelled: int
    no_show: int
    completion_rate: float
    by_day: dict[str, int]
    by_service: dict[str, int]
    by_time_slot: dict[str, int]

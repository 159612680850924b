# salonbook/api/routes/appointments.py

from __future__ import annotations
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query

from salonbook.api.auth import require_api_key
from salonbook.api.deps import get_appointment_service
from salonbook.schemas.appointment import (
    AppointmentCreate,
    AppointmentOut,
    AppointmentStats,
    AppointmentStatusUpdate,
    AppointmentUpdate,
)
from salonbook.services.appointments import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"], dependencies=[Depends(require_api_key)])


@router.post("", response_model=AppointmentOut, status_code=201)
async def book_appointment(
    payload: AppointmentCreate,
    svc: AppointmentService = Depends(get_appointment_service),
):
    return await svc.create_appointment(
        payload.user_id, payload.service_id, payload.starts_at, payload.notes
    )


@router.get("", response_model=List[AppointmentOut])
async def list_appointments(
    start: datetime = Query(..., description="Range start (ISO8601, inclusive)"),
    end: datetime = Query(..., description="Range end (ISO8601, exclusive)"),
    svc: AppointmentService = Depends(get_appointment_service),
):
    return await svc.get_appointments_between(start, end)


@router.get("/stats", response_model=AppointmentStats)
async def appointment_stats(
    start: datetime = Query(...),
    end: datetime = Query(...),
    svc: AppointmentService = Depends(get_appointment_service),
):
    return await svc.get_stats(start, end)


@router.get("/{appointment_id}", response_model=AppointmentOut)
async def get_appointment(appointment_id: int, svc: AppointmentService = Depends(get_appointment_service)):
    return await svc.get_appointment(appointment_id)


@router.patch("/{appointment_id}", response_model=AppointmentOut)
async def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    svc: AppointmentService = Depends(get_appointment_service),
):
    return await svc.update_appointment(
        appointment_id,
        service_id=payload.service_id,
        starts_at=payload.starts_at,
        ends_at=payload.ends_at,
        notes=payload.notes,
        status=payload.status,
    )


@router.post("/{appointment_id}/status", response_model=AppointmentOut)
async def change_status(
    appointment_id: int,
    payload: AppointmentStatusUpdate,
    svc: AppointmentService = Depends(get_appointment_service),
):
    return await svc.update_appointment_status(appointment_id, payload.status)


@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)
async def cancel_appointment(appointment_id: int, svc: AppointmentService = Depends(get_appointment_service)):
    return await svc.cancel_appointment(appointment_id)

# salonbook/api/routes/users.py
from typing import List

from fastapi import APIRouter, Depends, Query

from salonbook.api.auth import require_api_key
from salonbook.api.deps import get_appointment_service, get_catalog_service
from salonbook.schemas.appointment import AppointmentOut
from salonbook.schemas.user import UserCreate, UserOut
from salonbook.services.appointments import AppointmentService
from salonbook.services.catalog import CatalogService

router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_api_key)])


@router.post("", response_model=UserOut, status_code=201)
async def create_user(payload: UserCreate, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.create_user(payload)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: int, catalog: CatalogService = Depends(get_catalog_service)):
    return await catalog.get_user(user_id)


@router.get("/{user_id}/appointments", response_model=List[AppointmentOut])
async def user_appointments(
    user_id: int,
    upcoming: bool = Query(False, description="Only appointments starting after now"),
    svc: AppointmentService = Depends(get_appointment_service),
):
    return await svc.get_user_appointments(user_id, upcoming_only=upcoming)

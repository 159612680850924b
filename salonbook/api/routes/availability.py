# salonbook/api/routes/availability.py
from fastapi import APIRouter, Depends

from salonbook.api.auth import require_api_key
from salonbook.api.deps import get_availability_engine
from salonbook.schemas.availability import AvailabilityRequest
from salonbook.services.availability import AvailabilityEngine, AvailabilityVerdict

router = APIRouter(prefix="/availability", tags=["availability"], dependencies=[Depends(require_api_key)])


@router.post("", response_model=AvailabilityVerdict)
async def check_availability(
    payload: AvailabilityRequest,
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    return await engine.check_availability(
        payload.service_id, payload.starts_at, payload.exclude_appointment_id
    )

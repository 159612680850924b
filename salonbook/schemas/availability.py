# salonbook/schemas/availability.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class AvailabilityRequest(BaseModel):
    """Ask whether a service can be booked at a given start time."""
    service_id: int
    starts_at: datetime = Field(..., description="ISO8601; naive values are salon-local time")
    exclude_appointment_id: Optional[int] = Field(
        None, description="Ignore this appointment when checking for clashes (rescheduling)"
    )

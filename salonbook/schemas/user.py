# salonbook/schemas/user.py
from datetime import datetime as _Datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr = Field(..., max_length=255)
    mobile: Optional[str] = Field(None, min_length=7, max_length=20)

    @field_validator("full_name")
    @classmethod
    def _clean_name(cls, v: str) -> str:
        # trim + collapse internal extra spaces
        v = " ".join(v.strip().split())
        if not v:
            raise ValueError("full_name cannot be empty")
        return v

    @field_validator("email")
    @classmethod
    def _lower_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("mobile")
    @classmethod
    def _normalize_mobile(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        # keep leading '+', remove spaces/dashes; enforce digits length 7-15
        v = v.strip().replace(" ", "").replace("-", "")
        if v.startswith("+"):
            d = v[1:]
            if not d.isdigit() or not (7 <= len(d) <= 15):
                raise ValueError("mobile must be + followed by 7-15 digits")
            return "+" + d
        if not v.isdigit() or not (7 <= len(v) <= 15):
            raise ValueError("mobile must be 7-15 digits")
        return v


class UserCreate(UserBase):
    """Incoming payload for creating a user."""
    pass


class UserOut(UserBase):
    """Response model for reading a user."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: _Datetime

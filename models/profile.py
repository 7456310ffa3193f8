# models/profile.py

from typing import Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field


# Columns a resident may change on their own profile
PROFILE_EDITABLE_FIELDS = ("email", "full_name", "mobile", "address", "birth_date")


class ProfileBase(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    mobile: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None


class ProfileUpdate(BaseModel):
    """Resident self-edit. Omitted fields are left untouched."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, min_length=1)
    mobile: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None


class ProfileRead(ProfileBase):
    id: str
    role: str = "resident"
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

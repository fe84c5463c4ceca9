from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime


class FacilityCreate(BaseModel):
    name: str
    contact_email: EmailStr
    phone: Optional[str] = None
    address: Optional[str] = None
    subscription_tier: str = "basic"
    program_package_id: Optional[str] = None
    is_public: Optional[bool] = False


class FacilityUpdate(BaseModel):
    name: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    subscription_tier: Optional[str] = None
    program_package_id: Optional[str] = None
    is_public: Optional[bool] = None


class FacilityResponse(BaseModel):
    id: str
    name: str
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    subscription_tier: Optional[str] = None
    program_package_id: Optional[str] = None
    is_public: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FacilityWithCounts(FacilityResponse):
    instructors_count: int = 0
    students_count: int = 0
    sessions_count: int = 0

from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime

from swimtrackr.core.roles import Role


class CurrentProfile(BaseModel):
    """Authorization scope of the caller, resolved once per request."""
    user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role
    facility_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: Role
    facility_id: Optional[str] = None
    subscription_tier: Optional[str] = None
    subscription_status: Optional[str] = None
    invitation_status: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, value):
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("Full name cannot be empty")
        return value


class ProfileRoleUpdate(BaseModel):
    role: Optional[Role] = None
    facility_id: Optional[str] = None


class ProfileWithFacilities(ProfileResponse):
    assigned_facility_ids: List[str] = []

from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import date, datetime


def age_on(date_of_birth: Optional[date], today: date) -> Optional[int]:
    """Whole years between date_of_birth and today"""
    if date_of_birth is None:
        return None
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


class StudentCreate(BaseModel):
    first_name: str
    last_name: str
    date_of_birth: date
    facility_id: Optional[str] = None
    parent_id: Optional[str] = None
    current_level_id: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name cannot be empty")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def not_in_future(cls, value: date) -> date:
        if value > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return value


class StudentUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    current_level_id: Optional[str] = None
    facility_id: Optional[str] = None


class StudentResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[date] = None
    facility_id: Optional[str] = None
    parent_id: Optional[str] = None
    current_level_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    age: Optional[int] = None

    class Config:
        from_attributes = True

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

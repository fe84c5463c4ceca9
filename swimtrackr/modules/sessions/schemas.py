from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime

from swimtrackr.modules.sessions.status import SessionStatus, INITIAL_STATUSES, normalize_status
from swimtrackr.modules.students.schemas import StudentResponse


class SessionCreate(BaseModel):
    name: str
    facility_id: Optional[str] = None
    instructor_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_students: int = Field(default=10, gt=0)
    status: SessionStatus = SessionStatus.SCHEDULED
    is_public: bool = False
    level: Optional[str] = None
    program_package_id: Optional[str] = None

    @field_validator("status")
    @classmethod
    def initial_status(cls, value: SessionStatus) -> SessionStatus:
        if value not in INITIAL_STATUSES:
            raise ValueError("New sessions must be draft or scheduled")
        return value

    @model_validator(mode="after")
    def check_times(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionUpdate(BaseModel):
    name: Optional[str] = None
    instructor_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    max_students: Optional[int] = Field(default=None, gt=0)
    is_public: Optional[bool] = None
    level: Optional[str] = None


class SessionStatusChange(BaseModel):
    status: SessionStatus


class SessionResponse(BaseModel):
    id: str
    name: str
    facility_id: Optional[str] = None
    instructor_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    status: SessionStatus = SessionStatus.DRAFT
    is_public: Optional[bool] = None
    level: Optional[str] = None
    max_students: int = 10
    program_package_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    students_count: int = 0

    class Config:
        from_attributes = True

    @field_validator("status", mode="before")
    @classmethod
    def legacy_status(cls, value):
        return normalize_status(value)


class SessionDetail(SessionResponse):
    students: List[StudentResponse] = []


class EnrollmentRequest(BaseModel):
    student_id: str


class EnrollmentResponse(BaseModel):
    session_id: str
    student_id: str
    created_at: Optional[datetime] = None

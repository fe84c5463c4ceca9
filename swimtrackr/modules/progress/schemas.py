from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class ProgressStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def status_from_proficiency(proficiency: int) -> ProgressStatus:
    """Map a 1-5 star rating onto the stored status"""
    if proficiency <= 1:
        return ProgressStatus.NOT_STARTED
    if proficiency >= 5:
        return ProgressStatus.COMPLETED
    return ProgressStatus.IN_PROGRESS


class ProgressRecord(BaseModel):
    task_id: str
    status: Optional[ProgressStatus] = None
    proficiency: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = None

    @model_validator(mode="after")
    def resolve_status(self):
        if self.status is None:
            if self.proficiency is None:
                raise ValueError("Either status or proficiency is required")
            self.status = status_from_proficiency(self.proficiency)
        return self


class ProgressResponse(BaseModel):
    id: str
    student_id: str
    task_id: str
    status: ProgressStatus = ProgressStatus.NOT_STARTED
    notes: Optional[str] = None
    evaluated_by: Optional[str] = None
    evaluated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProgressSummary(BaseModel):
    student_id: str
    completed: int = 0
    in_progress: int = 0
    not_started: int = 0
    completion_rate: int = 0

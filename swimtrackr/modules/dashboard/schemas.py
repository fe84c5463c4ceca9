from pydantic import BaseModel
from typing import List, Optional
from enum import Enum

from swimtrackr.modules.sessions.schemas import SessionResponse
from swimtrackr.modules.students.schemas import StudentResponse


class TimeRange(str, Enum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"

    @property
    def days(self) -> int:
        return {"week": 7, "month": 30, "quarter": 90, "year": 365}[self.value]


class DashboardOverview(BaseModel):
    """Facility-wide figures shown to admins and managers"""
    total_facilities: int = 0
    total_instructors: int = 0
    students_per_instructor: float = 0.0


class DashboardSummary(BaseModel):
    role: str
    total_students: int = 0
    total_sessions: int = 0
    upcoming_sessions: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    completion_rate: int = 0
    next_sessions: List[SessionResponse] = []
    recent_students: List[StudentResponse] = []
    overview: Optional[DashboardOverview] = None


class LevelCompletion(BaseModel):
    level_id: str
    name: str
    completed: int = 0
    total: int = 0
    rate: int = 0


class WeekdaySessions(BaseModel):
    day: str
    sessions: int = 0


class DashboardAnalytics(BaseModel):
    time_range: TimeRange
    total_students: int = 0
    total_sessions: int = 0
    total_instructors: int = 0
    completed_tasks: int = 0
    average_attendance: int = 0
    student_growth: float = 0.0
    completion_by_level: List[LevelCompletion] = []
    sessions_by_weekday: List[WeekdaySessions] = []

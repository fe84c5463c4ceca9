"""
Dashboard Aggregator

Every statistic is computed over the caller's visibility-filtered rows, so a
figure can never include data outside the caller's scope. Independent figures
run concurrently through gather_statistics; one failing query only zeroes its
own figure.
"""

from supabase import Client
from swimtrackr.core.aggregation import (
    attendance_rate, completion_rate, count_of, gather_statistics, growth_rate, percentage, safe_ratio
)
from swimtrackr.core.roles import Role
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.dashboard.schemas import (
    DashboardAnalytics, DashboardOverview, DashboardSummary, LevelCompletion, TimeRange, WeekdaySessions
)
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.progress.schemas import ProgressStatus
from swimtrackr.modules.sessions.schemas import SessionResponse
from swimtrackr.modules.sessions.service import SessionService
from swimtrackr.modules.students.service import to_response
from typing import Any, Callable, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
PENDING_STATUSES = [ProgressStatus.IN_PROGRESS.value, ProgressStatus.NOT_STARTED.value]
OVERVIEW_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def sessions_by_weekday(rows: List[Dict[str, Any]]) -> List[WeekdaySessions]:
    buckets = [0] * 7
    for row in rows:
        start = parse_timestamp(row.get("start_time"))
        if start is not None:
            buckets[start.weekday()] += 1
    return [WeekdaySessions(day=day, sessions=n) for day, n in zip(WEEKDAYS, buckets)]


def completion_by_level(
    levels: List[Dict[str, Any]],
    tasks: List[Dict[str, Any]],
    progress: List[Dict[str, Any]]
) -> List[LevelCompletion]:
    """Completed over recorded progress entries, per level, in curriculum order"""
    task_level = {t["id"]: t.get("level_id") for t in tasks}
    completed: Dict[str, int] = {}
    total: Dict[str, int] = {}
    for entry in progress:
        level_id = task_level.get(entry.get("task_id"))
        if level_id is None:
            continue
        total[level_id] = total.get(level_id, 0) + 1
        if entry.get("status") == ProgressStatus.COMPLETED.value:
            completed[level_id] = completed.get(level_id, 0) + 1

    ordered = sorted(levels, key=lambda l: (l.get("order_index") is None, l.get("order_index") or 0))
    return [
        LevelCompletion(
            level_id=level["id"],
            name=level.get("name") or "",
            completed=completed.get(level["id"], 0),
            total=total.get(level["id"], 0),
            rate=percentage(completed.get(level["id"], 0), total.get(level["id"], 0)),
        )
        for level in ordered
    ]


class DashboardService:
    def __init__(self, supabase: Client, resolver: ScopeResolver):
        self.supabase = supabase
        self.resolver = resolver

    def _count(self, entity: Entity, profile: CurrentProfile, refine: Optional[Callable] = None) -> int:
        query = self.resolver.filtered_query(entity, profile, "id", count="exact")
        if query is None:
            return 0
        if refine is not None:
            query = refine(query)
        return count_of(query.execute())

    def _rows(self, entity: Entity, profile: CurrentProfile, columns: str, refine: Optional[Callable] = None) -> List[Dict[str, Any]]:
        query = self.resolver.filtered_query(entity, profile, columns)
        if query is None:
            return []
        if refine is not None:
            query = refine(query)
        return query.execute().data or []

    def _next_sessions(self, profile: CurrentProfile, now: str) -> List[SessionResponse]:
        rows = self._rows(
            Entity.SESSIONS, profile, "*",
            lambda q: q.gte("start_time", now).order("start_time").limit(5),
        )
        counts = SessionService(self.supabase, self.resolver).roster_counts([r["id"] for r in rows])
        return [SessionResponse(**row, students_count=counts.get(row["id"], 0)) for row in rows]

    def _recent_students(self, profile: CurrentProfile):
        rows = self._rows(
            Entity.STUDENTS, profile, "*",
            lambda q: q.order("created_at", desc=True).limit(5),
        )
        return [to_response(row) for row in rows]

    def _instructor_count(self, profile: CurrentProfile) -> int:
        return self._count(Entity.PROFILES, profile, lambda q: q.eq("role", Role.INSTRUCTOR.value))

    async def summary(self, profile: CurrentProfile) -> DashboardSummary:
        now = datetime.now(timezone.utc).isoformat()
        jobs = {
            "total_students": (lambda: self._count(Entity.STUDENTS, profile), 0),
            "total_sessions": (lambda: self._count(Entity.SESSIONS, profile), 0),
            "upcoming_sessions": (
                lambda: self._count(Entity.SESSIONS, profile, lambda q: q.gte("start_time", now)), 0
            ),
            "completed_tasks": (
                lambda: self._count(Entity.PROGRESS, profile, lambda q: q.eq("status", ProgressStatus.COMPLETED.value)), 0
            ),
            "pending_tasks": (
                lambda: self._count(Entity.PROGRESS, profile, lambda q: q.in_("status", PENDING_STATUSES)), 0
            ),
            "next_sessions": (lambda: self._next_sessions(profile, now), []),
            "recent_students": (lambda: self._recent_students(profile), []),
        }
        if profile.role in OVERVIEW_ROLES:
            jobs["total_facilities"] = (lambda: self._count(Entity.FACILITIES, profile), 0)
            jobs["total_instructors"] = (lambda: self._instructor_count(profile), 0)

        stats = await gather_statistics(jobs)
        completed = stats["completed_tasks"]
        summary = DashboardSummary(
            role=profile.role.value,
            total_students=stats["total_students"],
            total_sessions=stats["total_sessions"],
            upcoming_sessions=stats["upcoming_sessions"],
            completed_tasks=completed,
            pending_tasks=stats["pending_tasks"],
            completion_rate=completion_rate(completed, completed + stats["pending_tasks"]),
            next_sessions=stats["next_sessions"],
            recent_students=stats["recent_students"],
        )
        if profile.role in OVERVIEW_ROLES:
            summary.overview = DashboardOverview(
                total_facilities=stats["total_facilities"],
                total_instructors=stats["total_instructors"],
                students_per_instructor=safe_ratio(stats["total_students"], stats["total_instructors"]),
            )
        return summary

    def _attendance(self, profile: CurrentProfile, since: str) -> int:
        sessions = self._rows(
            Entity.SESSIONS, profile, "id, max_students",
            lambda q: q.gte("start_time", since),
        )
        capacity = sum(s.get("max_students") or 0 for s in sessions)
        counts = SessionService(self.supabase, self.resolver).roster_counts([s["id"] for s in sessions])
        return attendance_rate(sum(counts.values()), capacity)

    def _growth(self, profile: CurrentProfile, previous_start: str, start: str) -> float:
        current = self._count(Entity.STUDENTS, profile, lambda q: q.gte("created_at", start))
        previous = self._count(
            Entity.STUDENTS, profile, lambda q: q.gte("created_at", previous_start).lt("created_at", start)
        )
        return growth_rate(current, previous)

    def _completion_by_level(self, profile: CurrentProfile) -> List[LevelCompletion]:
        levels = self._rows(Entity.LEVELS, profile, "id, name, order_index")
        if not levels:
            return []
        tasks = self._rows(Entity.TASKS, profile, "id, level_id")
        progress = self._rows(Entity.PROGRESS, profile, "task_id, status")
        return completion_by_level(levels, tasks, progress)

    async def analytics(self, profile: CurrentProfile, time_range: TimeRange) -> DashboardAnalytics:
        now = datetime.now(timezone.utc)
        window = timedelta(days=time_range.days)
        start = (now - window).isoformat()
        previous_start = (now - 2 * window).isoformat()

        stats = await gather_statistics({
            "total_students": (lambda: self._count(Entity.STUDENTS, profile), 0),
            "total_sessions": (lambda: self._count(Entity.SESSIONS, profile), 0),
            "total_instructors": (lambda: self._instructor_count(profile), 0),
            "completed_tasks": (
                lambda: self._count(Entity.PROGRESS, profile, lambda q: q.eq("status", ProgressStatus.COMPLETED.value)), 0
            ),
            "average_attendance": (lambda: self._attendance(profile, start), 0),
            "student_growth": (lambda: self._growth(profile, previous_start, start), 0.0),
            "completion_by_level": (lambda: self._completion_by_level(profile), []),
            "sessions_by_weekday": (
                lambda: sessions_by_weekday(
                    self._rows(Entity.SESSIONS, profile, "start_time", lambda q: q.gte("start_time", start))
                ),
                sessions_by_weekday([]),
            ),
        })
        return DashboardAnalytics(time_range=time_range, **stats)

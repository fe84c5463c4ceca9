"""
Visibility Filter

Maps (entity, caller profile) to the predicate every query for that entity must
carry. Rules that can be decided from the profile alone live in
`base_predicate`; rules that need a lookup (facility package, children,
enrollments) are resolved by `ScopeResolver`, which memoizes lookups for the
lifetime of one request.

| Role               | students          | sessions                         | facilities      | levels/tasks                 |
|--------------------|-------------------|----------------------------------|-----------------|------------------------------|
| admin              | all               | all                              | all             | all                          |
| manager            | facility = own    | facility = own                   | own + assigned  | own program package          |
| instructor         | facility = own    | facility = own, instructor = self| own + assigned  | own program package          |
| parent(s)          | parent = self     | with an enrolled child           | none            | packages of enrolled sessions|
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging
import threading

from fastapi import Depends, HTTPException
from supabase import Client

from swimtrackr.core.errors import AuthorizationDenied, UpstreamQueryFailure
from swimtrackr.core.roles import Role, STAFF_ROLES, PARENT_ROLES
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.modules.profiles.schemas import CurrentProfile

logger = logging.getLogger(__name__)


class Entity(str, Enum):
    """Scoped entities; the value is the backing table name."""
    STUDENTS = "students"
    SESSIONS = "sessions"
    FACILITIES = "facilities"
    LEVELS = "levels"
    TASKS = "tasks"
    PROGRESS = "student_progress"
    PROFILES = "profiles"


@dataclass(frozen=True)
class Predicate:
    """Conjunction of `column IN values` clauses. `empty` means no row may match."""
    clauses: Tuple[Tuple[str, Tuple[Any, ...]], ...] = ()
    empty: bool = False

    @classmethod
    def where(cls, column: str, *values: Any) -> "Predicate":
        unique = tuple(dict.fromkeys(v for v in values if v is not None))
        if not unique:
            return NONE
        return cls(clauses=((column, unique),))

    def and_(self, other: "Predicate") -> "Predicate":
        if self.empty or other.empty:
            return NONE
        return Predicate(clauses=self.clauses + other.clauses)

    @property
    def is_all(self) -> bool:
        return not self.empty and not self.clauses

    def apply(self, query):
        """Add the clauses to a Supabase query builder. Never call with an empty predicate."""
        if self.empty:
            raise ValueError("Cannot apply an empty predicate; skip the query instead")
        for column, values in self.clauses:
            if len(values) == 1:
                query = query.eq(column, values[0])
            else:
                query = query.in_(column, list(values))
        return query

    def matches(self, row: Dict[str, Any]) -> bool:
        if self.empty:
            return False
        return all(row.get(column) in values for column, values in self.clauses)


ALL = Predicate()
NONE = Predicate(empty=True)


def base_predicate(entity: Entity, profile: CurrentProfile) -> Optional[Predicate]:
    """Predicate decidable from the profile alone, or None when a lookup is required."""
    role = profile.role
    if role == Role.ADMIN:
        return ALL

    if role in STAFF_ROLES:
        if entity == Entity.FACILITIES:
            return None
        if not profile.facility_id:
            if entity == Entity.PROFILES:
                return Predicate.where("id", profile.user_id)
            return NONE
        own_facility = Predicate.where("facility_id", profile.facility_id)
        if entity in (Entity.STUDENTS, Entity.PROFILES):
            return own_facility
        if entity == Entity.SESSIONS:
            if role == Role.INSTRUCTOR:
                return own_facility.and_(Predicate.where("instructor_id", profile.user_id))
            return own_facility
        return None

    if role in PARENT_ROLES:
        if entity == Entity.STUDENTS:
            return Predicate.where("parent_id", profile.user_id)
        if entity == Entity.PROFILES:
            return Predicate.where("id", profile.user_id)
        if entity == Entity.FACILITIES:
            return NONE
        return None

    return NONE


class ScopeResolver:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self._cache: Dict[str, List[Any]] = {}
        # Statistics run lookups from worker threads; each key is fetched once
        self._lock = threading.RLock()

    def _lookup(self, key: str, fetch: Callable[[], List[Any]]) -> List[Any]:
        with self._lock:
            if key not in self._cache:
                try:
                    self._cache[key] = fetch()
                except HTTPException:
                    raise
                except Exception as e:
                    logger.error(f"Scope lookup '{key}' failed: {e}")
                    raise UpstreamQueryFailure()
            return self._cache[key]

    def _column_values(self, table: str, column: str, filter_column: str, values: List[Any]) -> List[Any]:
        if not values:
            return []
        query = self.supabase.table(table).select(column)
        if len(values) == 1:
            query = query.eq(filter_column, values[0])
        else:
            query = query.in_(filter_column, values)
        result = query.execute()
        return list(dict.fromkeys(r[column] for r in (result.data or []) if r.get(column) is not None))

    # Staff lookups

    def facility_ids_for(self, profile: CurrentProfile) -> List[str]:
        def fetch():
            assigned = self._column_values("user_facilities", "facility_id", "profile_id", [profile.user_id])
            own = [profile.facility_id] if profile.facility_id else []
            return list(dict.fromkeys(own + assigned))
        return self._lookup(f"facilities:{profile.user_id}", fetch)

    def facility_package_ids(self, facility_id: Optional[str]) -> List[str]:
        if not facility_id:
            return []
        return self._lookup(
            f"package:{facility_id}",
            lambda: self._column_values("facilities", "program_package_id", "id", [facility_id]),
        )

    def level_ids_for_packages(self, package_ids: List[str]) -> List[str]:
        return self._lookup(
            "levels:" + ",".join(sorted(package_ids)),
            lambda: self._column_values("levels", "id", "program_package_id", package_ids),
        )

    def facility_student_ids(self, facility_id: str) -> List[str]:
        return self._lookup(
            f"facility_students:{facility_id}",
            lambda: self._column_values("students", "id", "facility_id", [facility_id]),
        )

    # Parent lookups

    def child_ids(self, profile: CurrentProfile) -> List[str]:
        return self._lookup(
            f"children:{profile.user_id}",
            lambda: self._column_values("students", "id", "parent_id", [profile.user_id]),
        )

    def enrolled_session_ids(self, student_ids: List[str]) -> List[str]:
        return self._lookup(
            "enrolled:" + ",".join(sorted(student_ids)),
            lambda: self._column_values("session_students", "session_id", "student_id", student_ids),
        )

    def session_package_ids(self, session_ids: List[str]) -> List[str]:
        return self._lookup(
            "session_packages:" + ",".join(sorted(session_ids)),
            lambda: self._column_values("sessions", "program_package_id", "id", session_ids),
        )

    def program_package_ids_for(self, profile: CurrentProfile) -> Optional[List[str]]:
        """Curriculum packages the caller may read; None means every package."""
        if profile.role == Role.ADMIN:
            return None
        if profile.role in STAFF_ROLES:
            return self.facility_package_ids(profile.facility_id)
        if profile.role not in PARENT_ROLES:
            return []
        children = self.child_ids(profile)
        if not children:
            return []
        session_ids = self.enrolled_session_ids(children)
        if not session_ids:
            return []
        return self.session_package_ids(session_ids)

    def predicate_for(self, entity: Entity, profile: CurrentProfile) -> Predicate:
        base = base_predicate(entity, profile)
        if base is not None:
            return base
        if entity in (Entity.LEVELS, Entity.TASKS):
            return self._curriculum_predicate(entity, profile)
        if profile.role in STAFF_ROLES:
            return self._staff_predicate(entity, profile)
        return self._parent_predicate(entity, profile)

    def _curriculum_predicate(self, entity: Entity, profile: CurrentProfile) -> Predicate:
        package_ids = self.program_package_ids_for(profile)
        if not package_ids:
            return NONE
        if entity == Entity.LEVELS:
            return Predicate.where("program_package_id", *package_ids)
        return Predicate.where("level_id", *self.level_ids_for_packages(package_ids))

    def _staff_predicate(self, entity: Entity, profile: CurrentProfile) -> Predicate:
        if entity == Entity.FACILITIES:
            return Predicate.where("id", *self.facility_ids_for(profile))
        if entity == Entity.PROGRESS:
            return Predicate.where("student_id", *self.facility_student_ids(profile.facility_id))
        return NONE

    def _parent_predicate(self, entity: Entity, profile: CurrentProfile) -> Predicate:
        children = self.child_ids(profile)
        if not children:
            return NONE
        if entity == Entity.PROGRESS:
            return Predicate.where("student_id", *children)
        if entity == Entity.SESSIONS:
            return Predicate.where("id", *self.enrolled_session_ids(children))
        return NONE

    def filtered_query(self, entity: Entity, profile: CurrentProfile, columns: str = "*", count: Optional[str] = None):
        """Scoped select on the entity's table, or None when nothing can be visible."""
        predicate = self.predicate_for(entity, profile)
        if predicate.empty:
            return None
        if count:
            query = self.supabase.table(entity.value).select(columns, count=count)
        else:
            query = self.supabase.table(entity.value).select(columns)
        return predicate.apply(query)

    def is_visible(self, entity: Entity, profile: CurrentProfile, row: Dict[str, Any]) -> bool:
        return self.predicate_for(entity, profile).matches(row)

    def ensure_visible(self, entity: Entity, profile: CurrentProfile, row: Dict[str, Any]) -> Dict[str, Any]:
        if not self.is_visible(entity, profile, row):
            raise AuthorizationDenied(f"You do not have permission to view this {_singular(entity)}.")
        return row


def _singular(entity: Entity) -> str:
    return {
        Entity.STUDENTS: "student",
        Entity.SESSIONS: "session",
        Entity.FACILITIES: "facility",
        Entity.LEVELS: "level",
        Entity.TASKS: "task",
        Entity.PROGRESS: "progress record",
        Entity.PROFILES: "profile",
    }[entity]


def get_scope_resolver(supabase: Client = Depends(get_supabase)) -> ScopeResolver:
    return ScopeResolver(supabase)

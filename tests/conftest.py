"""
Pytest Configuration and Fixtures

An in-memory stand-in for the Supabase query builder plus profile and client
fixtures. Every executed query is recorded on `FakeSupabase.executed` so tests
can assert which lookups were (or were not) issued.
"""

import copy
import time
import uuid
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from swimtrackr.core.dependencies import get_current_profile
from swimtrackr.core.rate_limit import limiter
from swimtrackr.core.roles import Role
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.main import app
from swimtrackr.modules.profiles.schemas import CurrentProfile

FACILITY_A = "facility-a"
FACILITY_B = "facility-b"
PACKAGE_A = "package-a"
PACKAGE_B = "package-b"


def _sort_key(value):
    return (value is None, value if value is not None else "")


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.columns = "*"
        self.count = None
        self.payload = None
        self.filters = []
        self.ordering = []
        self.row_limit = None
        self.row_range = None
        self.single_mode = None

    # Operations

    def select(self, columns="*", count=None):
        self.operation, self.columns, self.count = "select", columns, count
        return self

    def insert(self, data):
        self.operation, self.payload = "insert", data
        return self

    def update(self, data):
        self.operation, self.payload = "update", data
        return self

    def upsert(self, data):
        self.operation, self.payload = "upsert", data
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # Filters

    def _filter(self, name, column, value, test):
        self.filters.append((name, column, value, test))
        return self

    def eq(self, column, value):
        return self._filter("eq", column, value, lambda v: v == value)

    def neq(self, column, value):
        return self._filter("neq", column, value, lambda v: v != value)

    def in_(self, column, values):
        values = list(values)
        return self._filter("in", column, values, lambda v: v in values)

    def is_(self, column, value):
        expected = None if value in (None, "null") else value
        return self._filter("is", column, value, lambda v: v is expected)

    def gte(self, column, value):
        return self._filter("gte", column, value, lambda v: v is not None and v >= value)

    def gt(self, column, value):
        return self._filter("gt", column, value, lambda v: v is not None and v > value)

    def lte(self, column, value):
        return self._filter("lte", column, value, lambda v: v is not None and v <= value)

    def lt(self, column, value):
        return self._filter("lt", column, value, lambda v: v is not None and v < value)

    # Modifiers

    def order(self, column, desc=False):
        self.ordering.append((column, desc))
        return self

    def limit(self, n):
        self.row_limit = n
        return self

    def range(self, start, end):
        self.row_range = (start, end)
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def _matches(self, row):
        return all(test(row.get(column)) for _, column, _, test in self.filters)

    def execute(self):
        if self.db.latency:
            time.sleep(self.db.latency)
        self.db.executed.append(self)
        if self.table_name in self.db.failing_tables:
            raise RuntimeError(f"upstream failure on {self.table_name}")
        if self.db.fail_when is not None and self.db.fail_when(self):
            raise RuntimeError(f"upstream failure on {self.table_name}")
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = dict(item)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                created.append(copy.deepcopy(row))
            return SimpleNamespace(data=created, count=None)

        if self.operation == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            written = []
            for item in items:
                existing = next((r for r in rows if item.get("id") and r.get("id") == item["id"]), None)
                if existing is not None:
                    existing.update(item)
                    written.append(copy.deepcopy(existing))
                else:
                    row = dict(item)
                    row.setdefault("id", str(uuid.uuid4()))
                    rows.append(row)
                    written.append(copy.deepcopy(row))
            return SimpleNamespace(data=written, count=None)

        matched = [r for r in rows if self._matches(r)]

        if self.operation == "update":
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        if self.operation == "delete":
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return SimpleNamespace(data=copy.deepcopy(matched), count=None)

        for column, desc in reversed(self.ordering):
            matched = sorted(matched, key=lambda r: _sort_key(r.get(column)), reverse=desc)
        total = len(matched)
        if self.row_range is not None:
            matched = matched[self.row_range[0]:self.row_range[1] + 1]
        if self.row_limit is not None:
            matched = matched[:self.row_limit]
        data = copy.deepcopy(matched)

        if self.single_mode == "maybe":
            return SimpleNamespace(data=data[0], count=None) if data else None
        if self.single_mode == "single":
            if not data:
                raise RuntimeError("No rows returned")
            return SimpleNamespace(data=data[0], count=None)
        return SimpleNamespace(data=data, count=total if self.count else None)


class FakeSupabase:
    def __init__(self, tables=None):
        self.tables = copy.deepcopy(tables or {})
        self.executed = []
        self.failing_tables = set()
        self.fail_when = None
        self.latency = 0.0
        self.auth = MagicMock()

    def table(self, name):
        return FakeQuery(self, name)

    def queries_on(self, table):
        return [q for q in self.executed if q.table_name == table]


def make_profile(role: Role, user_id: str = None, facility_id: str = None) -> CurrentProfile:
    return CurrentProfile(
        user_id=user_id or f"{role.value}-1",
        email=f"{role.value}@example.com",
        full_name=role.value.title(),
        role=role,
        facility_id=facility_id,
    )


@pytest.fixture
def admin():
    return make_profile(Role.ADMIN)


@pytest.fixture
def manager():
    return make_profile(Role.MANAGER, "manager-1", FACILITY_A)


@pytest.fixture
def instructor():
    return make_profile(Role.INSTRUCTOR, "instructor-1", FACILITY_A)


@pytest.fixture
def parent():
    return make_profile(Role.PARENT, "parent-1")


def school_tables():
    """Two facilities with their own package, staff, students and sessions"""
    return {
        "facilities": [
            {"id": FACILITY_A, "name": "Northside Pool", "address": "1 North Rd", "program_package_id": PACKAGE_A},
            {"id": FACILITY_B, "name": "Southside Pool", "address": "9 South St", "program_package_id": PACKAGE_B},
        ],
        "user_facilities": [],
        "program_packages": [
            {"id": PACKAGE_A, "name": "Package A"},
            {"id": PACKAGE_B, "name": "Package B"},
        ],
        "profiles": [
            {"id": "admin-1", "email": "admin@example.com", "role": "admin", "facility_id": None},
            {"id": "manager-1", "email": "manager@example.com", "role": "manager", "facility_id": FACILITY_A},
            {"id": "instructor-1", "email": "i1@example.com", "role": "instructor", "facility_id": FACILITY_A},
            {"id": "instructor-2", "email": "i2@example.com", "role": "instructor", "facility_id": FACILITY_A},
            {"id": "instructor-3", "email": "i3@example.com", "role": "instructor", "facility_id": FACILITY_B},
            {"id": "parent-1", "email": "parent@example.com", "role": "parent", "facility_id": None},
        ],
        "levels": [
            {"id": "level-a1", "name": "Beginner", "order_index": 1, "program_package_id": PACKAGE_A},
            {"id": "level-a2", "name": "Intermediate", "order_index": 2, "program_package_id": PACKAGE_A},
            {"id": "level-b1", "name": "Starter", "order_index": 1, "program_package_id": PACKAGE_B},
        ],
        "tasks": [
            {"id": "task-a1", "name": "Float", "order_index": 1, "level_id": "level-a1"},
            {"id": "task-a2", "name": "Kick", "order_index": 2, "level_id": "level-a1"},
            {"id": "task-a3", "name": "Crawl", "order_index": 1, "level_id": "level-a2"},
            {"id": "task-b1", "name": "Splash", "order_index": 1, "level_id": "level-b1"},
        ],
        "students": [
            {"id": "student-1", "first_name": "Ada", "last_name": "Lane", "date_of_birth": "2016-05-01",
             "facility_id": FACILITY_A, "parent_id": "parent-1", "created_at": "2026-01-10T09:00:00+00:00"},
            {"id": "student-2", "first_name": "Ben", "last_name": "Moss", "date_of_birth": "2015-03-12",
             "facility_id": FACILITY_A, "parent_id": "parent-2", "created_at": "2026-02-10T09:00:00+00:00"},
            {"id": "student-3", "first_name": "Cleo", "last_name": "Reed", "date_of_birth": "2017-07-20",
             "facility_id": FACILITY_B, "parent_id": "parent-3", "created_at": "2026-03-10T09:00:00+00:00"},
        ],
        "sessions": [
            {"id": "session-1", "name": "Mon Beginners", "facility_id": FACILITY_A, "instructor_id": "instructor-1",
             "start_time": "2030-01-07T09:00:00+00:00", "end_time": "2030-01-07T10:00:00+00:00",
             "status": "scheduled", "max_students": 2, "program_package_id": PACKAGE_A},
            {"id": "session-2", "name": "Tue Intermediate", "facility_id": FACILITY_A, "instructor_id": "instructor-2",
             "start_time": "2030-01-08T09:00:00+00:00", "end_time": "2030-01-08T10:00:00+00:00",
             "status": "draft", "max_students": 6, "program_package_id": PACKAGE_A},
            {"id": "session-3", "name": "South Starters", "facility_id": FACILITY_B, "instructor_id": "instructor-3",
             "start_time": "2030-01-09T09:00:00+00:00", "end_time": "2030-01-09T10:00:00+00:00",
             "status": "scheduled", "max_students": 6, "program_package_id": PACKAGE_B},
        ],
        "session_students": [
            {"id": "enrollment-1", "session_id": "session-1", "student_id": "student-1"},
            {"id": "enrollment-2", "session_id": "session-1", "student_id": "student-2"},
            {"id": "enrollment-3", "session_id": "session-3", "student_id": "student-3"},
        ],
        "student_progress": [
            {"id": "progress-1", "student_id": "student-1", "task_id": "task-a1", "status": "completed"},
            {"id": "progress-2", "student_id": "student-1", "task_id": "task-a2", "status": "in_progress"},
            {"id": "progress-3", "student_id": "student-2", "task_id": "task-a1", "status": "not_started"},
            {"id": "progress-4", "student_id": "student-3", "task_id": "task-b1", "status": "completed"},
        ],
    }


@pytest.fixture
def fake_supabase():
    return FakeSupabase(school_tables())


@pytest.fixture
def as_profile(fake_supabase):
    """Point the app at the fake store and authenticate every request as the given profile"""
    def _use(profile: CurrentProfile):
        app.dependency_overrides[get_supabase] = lambda: fake_supabase
        app.dependency_overrides[get_current_profile] = lambda: profile
        return fake_supabase
    yield _use
    app.dependency_overrides.clear()


@pytest.fixture
async def client():
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

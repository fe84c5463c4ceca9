"""
Tests for the Visibility Filter: the per-role predicate table and the
lookups the resolver issues to build it.
"""

import pytest

from swimtrackr.core.errors import AuthorizationDenied, UpstreamQueryFailure
from swimtrackr.core.roles import Role
from swimtrackr.core.visibility import ALL, NONE, Entity, Predicate, ScopeResolver, base_predicate

from conftest import FACILITY_A, FACILITY_B, PACKAGE_A, FakeSupabase, make_profile, school_tables


class TestPredicate:
    def test_where_drops_none_and_duplicates(self):
        predicate = Predicate.where("id", "a", None, "a", "b")
        assert predicate.clauses == (("id", ("a", "b")),)

    def test_where_without_values_is_empty(self):
        assert Predicate.where("id") is NONE
        assert Predicate.where("id", None) is NONE

    def test_and_with_empty_is_empty(self):
        assert Predicate.where("id", "a").and_(NONE).empty

    def test_matches(self):
        predicate = Predicate.where("facility_id", FACILITY_A).and_(Predicate.where("instructor_id", "i1"))
        assert predicate.matches({"facility_id": FACILITY_A, "instructor_id": "i1"})
        assert not predicate.matches({"facility_id": FACILITY_A, "instructor_id": "i2"})
        assert ALL.matches({"anything": 1})
        assert not NONE.matches({"anything": 1})

    def test_apply_uses_eq_for_one_value_and_in_for_many(self):
        db = FakeSupabase()
        query = Predicate.where("id", "a").and_(Predicate.where("facility_id", "f1", "f2")).apply(
            db.table("students").select("*")
        )
        assert [(name, column) for name, column, _, _ in query.filters] == [("eq", "id"), ("in", "facility_id")]

    def test_apply_refuses_empty_predicate(self):
        with pytest.raises(ValueError):
            NONE.apply(FakeSupabase().table("students").select("*"))


class TestBasePredicate:
    def test_admin_sees_everything(self, admin):
        for entity in Entity:
            assert base_predicate(entity, admin) is ALL

    def test_manager_students_and_sessions_scoped_to_facility(self, manager):
        expected = Predicate.where("facility_id", FACILITY_A)
        assert base_predicate(Entity.STUDENTS, manager) == expected
        assert base_predicate(Entity.SESSIONS, manager) == expected

    def test_instructor_sessions_restricted_to_self(self, instructor):
        predicate = base_predicate(Entity.SESSIONS, instructor)
        assert predicate.clauses == (("facility_id", (FACILITY_A,)), ("instructor_id", ("instructor-1",)))

    def test_staff_without_facility_sees_nothing(self):
        manager = make_profile(Role.MANAGER, "manager-9")
        assert base_predicate(Entity.STUDENTS, manager) is NONE
        assert base_predicate(Entity.SESSIONS, manager) is NONE
        assert base_predicate(Entity.PROFILES, manager) == Predicate.where("id", "manager-9")

    def test_parent_students_by_parent_id(self, parent):
        assert base_predicate(Entity.STUDENTS, parent) == Predicate.where("parent_id", "parent-1")
        assert base_predicate(Entity.FACILITIES, parent) is NONE

    def test_lookups_deferred_to_resolver(self, manager, parent):
        assert base_predicate(Entity.FACILITIES, manager) is None
        assert base_predicate(Entity.LEVELS, manager) is None
        assert base_predicate(Entity.SESSIONS, parent) is None
        assert base_predicate(Entity.PROGRESS, parent) is None


class TestScopeResolver:
    def test_manager_facilities_include_assignments(self, manager):
        tables = school_tables()
        tables["user_facilities"] = [{"profile_id": "manager-1", "facility_id": FACILITY_B}]
        resolver = ScopeResolver(FakeSupabase(tables))
        predicate = resolver.predicate_for(Entity.FACILITIES, manager)
        assert predicate == Predicate.where("id", FACILITY_A, FACILITY_B)

    def test_staff_levels_limited_to_facility_package(self, instructor):
        resolver = ScopeResolver(FakeSupabase(school_tables()))
        assert resolver.predicate_for(Entity.LEVELS, instructor) == Predicate.where("program_package_id", PACKAGE_A)
        tasks = resolver.predicate_for(Entity.TASKS, instructor)
        assert tasks == Predicate.where("level_id", "level-a1", "level-a2")

    def test_staff_progress_limited_to_facility_students(self, manager):
        resolver = ScopeResolver(FakeSupabase(school_tables()))
        predicate = resolver.predicate_for(Entity.PROGRESS, manager)
        assert predicate == Predicate.where("student_id", "student-1", "student-2")

    def test_parent_sessions_and_curriculum_follow_enrollments(self, parent):
        resolver = ScopeResolver(FakeSupabase(school_tables()))
        assert resolver.predicate_for(Entity.SESSIONS, parent) == Predicate.where("id", "session-1")
        assert resolver.predicate_for(Entity.PROGRESS, parent) == Predicate.where("student_id", "student-1")
        assert resolver.predicate_for(Entity.LEVELS, parent) == Predicate.where("program_package_id", PACKAGE_A)

    def test_parent_without_children_short_circuits(self):
        db = FakeSupabase(school_tables())
        resolver = ScopeResolver(db)
        lonely = make_profile(Role.PARENT, "parent-without-children")

        assert resolver.filtered_query(Entity.SESSIONS, lonely) is None
        assert resolver.filtered_query(Entity.PROGRESS, lonely) is None
        assert resolver.filtered_query(Entity.LEVELS, lonely) is None

        # Only the memoized children lookup ever reached the store
        assert len(db.executed) == 1
        assert db.executed[0].table_name == "students"

    def test_lookups_are_memoized(self, parent):
        db = FakeSupabase(school_tables())
        resolver = ScopeResolver(db)
        resolver.predicate_for(Entity.SESSIONS, parent)
        issued = len(db.executed)
        resolver.predicate_for(Entity.SESSIONS, parent)
        resolver.predicate_for(Entity.PROGRESS, parent)
        assert len(db.executed) == issued

    def test_filtered_query_returns_only_scoped_rows(self, manager, instructor, admin):
        db = FakeSupabase(school_tables())
        resolver = ScopeResolver(db)
        all_ids = {r["id"] for r in resolver.filtered_query(Entity.SESSIONS, admin).execute().data}
        manager_ids = {r["id"] for r in resolver.filtered_query(Entity.SESSIONS, manager).execute().data}
        instructor_ids = {r["id"] for r in resolver.filtered_query(Entity.SESSIONS, instructor).execute().data}
        assert all_ids == {"session-1", "session-2", "session-3"}
        assert manager_ids == {"session-1", "session-2"}
        assert instructor_ids == {"session-1"}

    def test_ensure_visible_raises_authorization_denied(self, manager):
        resolver = ScopeResolver(FakeSupabase(school_tables()))
        with pytest.raises(AuthorizationDenied) as exc_info:
            resolver.ensure_visible(Entity.STUDENTS, manager, {"id": "student-3", "facility_id": FACILITY_B})
        assert exc_info.value.status_code == 403
        assert exc_info.value.redirect == "/dashboard"

    def test_lookup_failure_becomes_upstream_query_failure(self, parent):
        db = FakeSupabase(school_tables())
        db.failing_tables.add("students")
        with pytest.raises(UpstreamQueryFailure):
            ScopeResolver(db).predicate_for(Entity.SESSIONS, parent)

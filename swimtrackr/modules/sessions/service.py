from supabase import Client
from swimtrackr.core.errors import AuthorizationDenied, UpstreamQueryFailure, ValidationFailure
from swimtrackr.core.roles import Role
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.sessions.schemas import (
    SessionCreate, SessionUpdate, SessionResponse, SessionDetail, EnrollmentResponse
)
from swimtrackr.modules.sessions.status import SessionStatus, CLOSED_STATUSES, can_transition, normalize_status
from swimtrackr.modules.students.service import StudentService, to_response
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SessionService:
    def __init__(self, supabase: Client, resolver: ScopeResolver):
        self.supabase = supabase
        self.resolver = resolver

    def roster_counts(self, session_ids: List[str]) -> Dict[str, int]:
        """Enrolled students per session, one query for the whole page"""
        if not session_ids:
            return {}
        result = self.supabase.table("session_students")\
            .select("session_id")\
            .in_("session_id", session_ids)\
            .execute()
        counts: Dict[str, int] = {}
        for row in result.data or []:
            counts[row["session_id"]] = counts.get(row["session_id"], 0) + 1
        return counts

    def list_sessions(
        self,
        profile: CurrentProfile,
        status: Optional[SessionStatus] = None,
        level: Optional[str] = None,
        limit: Optional[int] = None
    ) -> List[SessionResponse]:
        """Sessions visible to the caller with roster counts, earliest first"""
        query = self.resolver.filtered_query(Entity.SESSIONS, profile)
        if query is None:
            return []
        try:
            if status is not None:
                query = query.eq("status", status.value)
            if level:
                query = query.eq("level", level)
            query = query.order("start_time")
            if limit:
                query = query.limit(limit)
            rows = query.execute().data or []
            counts = self.roster_counts([r["id"] for r in rows])
            return [SessionResponse(**row, students_count=counts.get(row["id"], 0)) for row in rows]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing sessions: {e}")
            raise UpstreamQueryFailure()

    def get_session_row(self, profile: CurrentProfile, session_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("id", session_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching session {session_id}: {e}")
            raise UpstreamQueryFailure()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Session not found")
        return self.resolver.ensure_visible(Entity.SESSIONS, profile, result.data)

    def get_session(self, profile: CurrentProfile, session_id: str) -> SessionDetail:
        """Session with the roster students the caller is allowed to see"""
        session = self.get_session_row(profile, session_id)
        try:
            enrollments = self.supabase.table("session_students")\
                .select("student_id")\
                .eq("session_id", session_id)\
                .execute().data or []
            student_ids = [e["student_id"] for e in enrollments]
            students = []
            if student_ids:
                students = self.supabase.table("students")\
                    .select("*")\
                    .in_("id", student_ids)\
                    .execute().data or []
        except Exception as e:
            logger.error(f"Error fetching roster for session {session_id}: {e}")
            raise UpstreamQueryFailure()
        student_scope = self.resolver.predicate_for(Entity.STUDENTS, profile)
        visible = [to_response(s) for s in students if student_scope.matches(s)]
        return SessionDetail(**session, students_count=len(student_ids), students=visible)

    def _check_instructor(self, instructor_id: Optional[str], facility_id: Optional[str]) -> None:
        if not instructor_id:
            return
        try:
            result = self.supabase.table("profiles")\
                .select("id, role, facility_id")\
                .eq("id", instructor_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error checking instructor {instructor_id}: {e}")
            raise UpstreamQueryFailure()
        instructor = result.data if result else None
        if not instructor or instructor.get("role") != Role.INSTRUCTOR.value:
            raise ValidationFailure("instructor_id", "Instructor not found")
        if facility_id and instructor.get("facility_id") != facility_id:
            raise ValidationFailure("instructor_id", "Instructor does not work at this facility")

    def create_session(self, profile: CurrentProfile, data: SessionCreate) -> SessionResponse:
        facility_id = data.facility_id
        if profile.role != Role.ADMIN:
            if not profile.facility_id:
                raise ValidationFailure("facility_id", "You are not assigned to a facility")
            if facility_id and facility_id != profile.facility_id:
                raise AuthorizationDenied("Sessions can only be created in your own facility")
            facility_id = profile.facility_id
        self._check_instructor(data.instructor_id, facility_id)

        program_package_id = data.program_package_id
        if not program_package_id and facility_id:
            packages = self.resolver.facility_package_ids(facility_id)
            program_package_id = packages[0] if packages else None

        insert_data = {
            "name": data.name,
            "facility_id": facility_id,
            "instructor_id": data.instructor_id,
            "start_time": data.start_time.isoformat() if data.start_time else None,
            "end_time": data.end_time.isoformat() if data.end_time else None,
            "max_students": data.max_students,
            "status": data.status.value,
            "is_public": data.is_public,
            "level": data.level,
            "program_package_id": program_package_id,
        }
        try:
            result = self.supabase.table("sessions").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create session")
            logger.info(f"Session created: {result.data[0]['id']}")
            return SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating session: {e}")
            raise UpstreamQueryFailure()

    def update_session(self, profile: CurrentProfile, session_id: str, data: SessionUpdate) -> SessionResponse:
        session = self.get_session_row(profile, session_id)
        update_data = data.model_dump(exclude_none=True)
        if "instructor_id" in update_data:
            self._check_instructor(update_data["instructor_id"], session.get("facility_id"))
        for field in ("start_time", "end_time"):
            if field in update_data:
                update_data[field] = update_data[field].isoformat()
        if not update_data:
            return SessionResponse(**session)
        update_data["updated_at"] = _now()
        return self._write(session_id, update_data)

    def change_status(self, profile: CurrentProfile, session_id: str, target: SessionStatus) -> SessionResponse:
        session = self.get_session_row(profile, session_id)
        current = normalize_status(session.get("status"))
        if not can_transition(current, target):
            raise ValidationFailure(
                "status", f"Cannot move a session from '{current.value}' to '{target.value}'"
            )
        logger.info(f"Session {session_id}: {current.value} -> {target.value}")
        return self._write(session_id, {"status": target.value, "updated_at": _now()})

    def _write(self, session_id: str, update_data: Dict[str, Any]) -> SessionResponse:
        try:
            result = self.supabase.table("sessions")\
                .update(update_data)\
                .eq("id", session_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Session not found")
            return SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating session {session_id}: {e}")
            raise UpstreamQueryFailure()

    def delete_session(self, profile: CurrentProfile, session_id: str) -> None:
        self.get_session_row(profile, session_id)
        try:
            self.supabase.table("session_students").delete().eq("session_id", session_id).execute()
            self.supabase.table("sessions").delete().eq("id", session_id).execute()
        except Exception as e:
            logger.error(f"Error deleting session {session_id}: {e}")
            raise UpstreamQueryFailure()

    def enroll_student(self, profile: CurrentProfile, session_id: str, student_id: str) -> EnrollmentResponse:
        """Add a student to the roster; the session must be open, in the student's facility and not full"""
        session = self.get_session_row(profile, session_id)
        student = StudentService(self.supabase, self.resolver).get_student_row(profile, student_id)

        if normalize_status(session.get("status")) in CLOSED_STATUSES:
            raise ValidationFailure("session_id", "Session is no longer open for enrollment")
        if session.get("facility_id") and student.get("facility_id") != session.get("facility_id"):
            raise ValidationFailure("student_id", "Student does not belong to this session's facility")

        try:
            roster = self.supabase.table("session_students")\
                .select("student_id")\
                .eq("session_id", session_id)\
                .execute().data or []
        except Exception as e:
            logger.error(f"Error loading roster for session {session_id}: {e}")
            raise UpstreamQueryFailure()
        if any(r["student_id"] == student_id for r in roster):
            raise HTTPException(status_code=409, detail="Student is already enrolled in this session")
        if len(roster) >= (session.get("max_students") or 0):
            raise HTTPException(status_code=409, detail="Session is full")

        try:
            result = self.supabase.table("session_students").insert({
                "session_id": session_id,
                "student_id": student_id,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to enroll student")
            return EnrollmentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error enrolling student {student_id} in {session_id}: {e}")
            raise UpstreamQueryFailure()

    def unenroll_student(self, profile: CurrentProfile, session_id: str, student_id: str) -> None:
        self.get_session_row(profile, session_id)
        try:
            self.supabase.table("session_students")\
                .delete()\
                .eq("session_id", session_id)\
                .eq("student_id", student_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error removing student {student_id} from {session_id}: {e}")
            raise UpstreamQueryFailure()

from supabase import Client
from swimtrackr.core.errors import AuthorizationDenied, UpstreamQueryFailure, ValidationFailure
from swimtrackr.core.roles import Role, PARENT_ROLES, STAFF_ROLES
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.students.schemas import StudentCreate, StudentUpdate, StudentResponse, age_on
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import date, datetime, timezone
import logging

logger = logging.getLogger(__name__)


def to_response(row: Dict[str, Any], today: Optional[date] = None) -> StudentResponse:
    student = StudentResponse(**row)
    student.age = age_on(student.date_of_birth, today or date.today())
    return student


class StudentService:
    def __init__(self, supabase: Client, resolver: ScopeResolver):
        self.supabase = supabase
        self.resolver = resolver

    def list_students(
        self,
        profile: CurrentProfile,
        level_id: Optional[str] = None,
        search: Optional[str] = None
    ) -> List[StudentResponse]:
        """Students visible to the caller; optional level and name filters"""
        query = self.resolver.filtered_query(Entity.STUDENTS, profile)
        if query is None:
            return []
        try:
            if level_id:
                query = query.eq("current_level_id", level_id)
            rows = query.order("last_name").execute().data or []
        except Exception as e:
            logger.error(f"Error listing students: {e}")
            raise UpstreamQueryFailure()
        if search:
            term = search.strip().lower()
            rows = [
                r for r in rows
                if term in (r.get("first_name") or "").lower() or term in (r.get("last_name") or "").lower()
            ]
        return [to_response(row) for row in rows]

    def get_student_row(self, profile: CurrentProfile, student_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("students")\
                .select("*")\
                .eq("id", student_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching student {student_id}: {e}")
            raise UpstreamQueryFailure()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Student not found")
        return self.resolver.ensure_visible(Entity.STUDENTS, profile, result.data)

    def get_student(self, profile: CurrentProfile, student_id: str) -> StudentResponse:
        return to_response(self.get_student_row(profile, student_id))

    def create_student(self, profile: CurrentProfile, data: StudentCreate) -> StudentResponse:
        """
        Parents register their own children; staff register students into their
        own facility. Admins may set any facility and parent.
        """
        facility_id = data.facility_id
        parent_id = data.parent_id
        if profile.role in PARENT_ROLES:
            parent_id = profile.user_id
            if profile.role == Role.FACILITY_PARENT and not facility_id:
                facility_id = profile.facility_id
        elif profile.role in STAFF_ROLES:
            if not profile.facility_id:
                raise ValidationFailure("facility_id", "You are not assigned to a facility")
            if facility_id and facility_id != profile.facility_id:
                raise AuthorizationDenied("Students can only be added to your own facility")
            facility_id = profile.facility_id

        insert_data = {
            "first_name": data.first_name,
            "last_name": data.last_name,
            "date_of_birth": data.date_of_birth.isoformat(),
            "facility_id": facility_id,
            "parent_id": parent_id,
            "current_level_id": data.current_level_id,
        }
        try:
            result = self.supabase.table("students").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create student")
            logger.info(f"Student created: {result.data[0]['id']}")
            return to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating student: {e}")
            raise UpstreamQueryFailure()

    def update_student(self, profile: CurrentProfile, student_id: str, data: StudentUpdate) -> StudentResponse:
        current = self.get_student_row(profile, student_id)
        update_data = data.model_dump(exclude_none=True)

        if profile.role in PARENT_ROLES:
            for field in ("facility_id", "current_level_id"):
                if field in update_data:
                    raise AuthorizationDenied(f"Parents cannot change {field}")
        elif profile.role in STAFF_ROLES and update_data.get("facility_id", profile.facility_id) != profile.facility_id:
            raise AuthorizationDenied("Students can only belong to your own facility")

        if "date_of_birth" in update_data:
            update_data["date_of_birth"] = update_data["date_of_birth"].isoformat()
        if not update_data:
            return to_response(current)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("students")\
                .update(update_data)\
                .eq("id", student_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Student not found")
            return to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating student {student_id}: {e}")
            raise UpstreamQueryFailure()

    def delete_student(self, profile: CurrentProfile, student_id: str) -> None:
        self.get_student_row(profile, student_id)
        try:
            self.supabase.table("session_students").delete().eq("student_id", student_id).execute()
            self.supabase.table("students").delete().eq("id", student_id).execute()
        except Exception as e:
            logger.error(f"Error deleting student {student_id}: {e}")
            raise UpstreamQueryFailure()

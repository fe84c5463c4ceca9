from supabase import Client
from swimtrackr.core.aggregation import completion_rate
from swimtrackr.core.errors import UpstreamQueryFailure
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.progress.schemas import ProgressRecord, ProgressResponse, ProgressStatus, ProgressSummary
from swimtrackr.modules.students.service import StudentService
from typing import Any, Dict, List
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ProgressService:
    def __init__(self, supabase: Client, resolver: ScopeResolver):
        self.supabase = supabase
        self.resolver = resolver

    def _students(self) -> StudentService:
        return StudentService(self.supabase, self.resolver)

    def list_progress(self, profile: CurrentProfile, student_id: str) -> List[ProgressResponse]:
        """Progress entries for one student the caller can see"""
        self._students().get_student_row(profile, student_id)
        try:
            result = self.supabase.table("student_progress")\
                .select("*")\
                .eq("student_id", student_id)\
                .execute()
            return [ProgressResponse(**row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing progress for student {student_id}: {e}")
            raise UpstreamQueryFailure()

    def summarize(self, profile: CurrentProfile, student_id: str) -> ProgressSummary:
        entries = self.list_progress(profile, student_id)
        counts = {status: 0 for status in ProgressStatus}
        for entry in entries:
            counts[entry.status] += 1
        return ProgressSummary(
            student_id=student_id,
            completed=counts[ProgressStatus.COMPLETED],
            in_progress=counts[ProgressStatus.IN_PROGRESS],
            not_started=counts[ProgressStatus.NOT_STARTED],
            completion_rate=completion_rate(counts[ProgressStatus.COMPLETED], len(entries)),
        )

    def _get_task_row(self, profile: CurrentProfile, task_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("tasks")\
                .select("*")\
                .eq("id", task_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching task {task_id}: {e}")
            raise UpstreamQueryFailure()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Task not found")
        return self.resolver.ensure_visible(Entity.TASKS, profile, result.data)

    def record_progress(self, profile: CurrentProfile, student_id: str, data: ProgressRecord) -> ProgressResponse:
        """
        Create or update the (student, task) entry. Any status may follow any
        other; the evaluator and time are stamped on every write.
        """
        self._students().get_student_row(profile, student_id)
        self._get_task_row(profile, data.task_id)

        now = datetime.now(timezone.utc).isoformat()
        values = {
            "status": data.status.value,
            "evaluated_by": profile.user_id,
            "evaluated_at": now,
        }
        if data.notes is not None:
            values["notes"] = data.notes

        try:
            existing = self.supabase.table("student_progress")\
                .select("id")\
                .eq("student_id", student_id)\
                .eq("task_id", data.task_id)\
                .maybe_single()\
                .execute()
            if existing and existing.data:
                values["updated_at"] = now
                result = self.supabase.table("student_progress")\
                    .update(values)\
                    .eq("id", existing.data["id"])\
                    .execute()
            else:
                values.update({"student_id": student_id, "task_id": data.task_id})
                result = self.supabase.table("student_progress").insert(values).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to record progress")
            logger.info(f"Progress for student {student_id} on task {data.task_id}: {data.status.value}")
            return ProgressResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error recording progress for student {student_id}: {e}")
            raise UpstreamQueryFailure()

from fastapi import APIRouter, Depends
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.core.dependencies import get_current_profile, require_instructor
from swimtrackr.core.visibility import ScopeResolver, get_scope_resolver
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.progress.schemas import ProgressRecord, ProgressResponse, ProgressSummary
from swimtrackr.modules.progress.service import ProgressService
from supabase import Client
from typing import List

router = APIRouter(prefix="/students/{student_id}/progress", tags=["progress"])


def get_progress_service(
    supabase: Client = Depends(get_supabase),
    resolver: ScopeResolver = Depends(get_scope_resolver)
) -> ProgressService:
    return ProgressService(supabase, resolver)


@router.get("", response_model=List[ProgressResponse])
async def list_progress(
    student_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProgressService = Depends(get_progress_service)
):
    return service.list_progress(profile, student_id)


@router.get("/summary", response_model=ProgressSummary)
async def progress_summary(
    student_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProgressService = Depends(get_progress_service)
):
    return service.summarize(profile, student_id)


@router.put("", response_model=ProgressResponse)
async def record_progress(
    student_id: str,
    data: ProgressRecord,
    profile: CurrentProfile = Depends(require_instructor),
    service: ProgressService = Depends(get_progress_service)
):
    """Record a task evaluation; accepts a status or a 1-5 proficiency rating"""
    return service.record_progress(profile, student_id, data)

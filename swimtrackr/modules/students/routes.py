from fastapi import APIRouter, Depends
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.core.dependencies import get_current_profile, require_manager
from swimtrackr.core.visibility import ScopeResolver, get_scope_resolver
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.students.schemas import StudentCreate, StudentUpdate, StudentResponse
from swimtrackr.modules.students.service import StudentService
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/students", tags=["students"])


def get_student_service(
    supabase: Client = Depends(get_supabase),
    resolver: ScopeResolver = Depends(get_scope_resolver)
) -> StudentService:
    return StudentService(supabase, resolver)


@router.get("", response_model=List[StudentResponse])
async def list_students(
    level_id: Optional[str] = None,
    search: Optional[str] = None,
    profile: CurrentProfile = Depends(get_current_profile),
    service: StudentService = Depends(get_student_service)
):
    return service.list_students(profile, level_id=level_id, search=search)


@router.post("", response_model=StudentResponse, status_code=201)
async def create_student(
    data: StudentCreate,
    profile: CurrentProfile = Depends(get_current_profile),
    service: StudentService = Depends(get_student_service)
):
    return service.create_student(profile, data)


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: StudentService = Depends(get_student_service)
):
    return service.get_student(profile, student_id)


@router.put("/{student_id}", response_model=StudentResponse)
async def update_student(
    student_id: str,
    data: StudentUpdate,
    profile: CurrentProfile = Depends(get_current_profile),
    service: StudentService = Depends(get_student_service)
):
    """Update student (facility staff or the owning parent)"""
    return service.update_student(profile, student_id, data)


@router.delete("/{student_id}", status_code=204)
async def delete_student(
    student_id: str,
    profile: CurrentProfile = Depends(require_manager),
    service: StudentService = Depends(get_student_service)
):
    service.delete_student(profile, student_id)
    return None

from fastapi import APIRouter, Depends
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.core.dependencies import get_current_profile, require_instructor, require_manager
from swimtrackr.core.visibility import ScopeResolver, get_scope_resolver
from swimtrackr.modules.profiles.schemas import CurrentProfile
from swimtrackr.modules.sessions.schemas import (
    SessionCreate, SessionUpdate, SessionResponse, SessionDetail, SessionStatusChange,
    EnrollmentRequest, EnrollmentResponse,
)
from swimtrackr.modules.sessions.service import SessionService
from swimtrackr.modules.sessions.status import SessionStatus
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_service(
    supabase: Client = Depends(get_supabase),
    resolver: ScopeResolver = Depends(get_scope_resolver)
) -> SessionService:
    return SessionService(supabase, resolver)


@router.get("", response_model=List[SessionResponse])
async def list_sessions(
    status: Optional[SessionStatus] = None,
    level: Optional[str] = None,
    profile: CurrentProfile = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service)
):
    """Admins see all sessions, staff their facility's (instructors only their own), parents their children's"""
    return service.list_sessions(profile, status=status, level=level)


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    data: SessionCreate,
    profile: CurrentProfile = Depends(require_manager),
    service: SessionService = Depends(get_session_service)
):
    return service.create_session(profile, data)


@router.get("/{session_id}", response_model=SessionDetail)
async def get_session(
    session_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service)
):
    return service.get_session(profile, session_id)


@router.put("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: str,
    data: SessionUpdate,
    profile: CurrentProfile = Depends(require_manager),
    service: SessionService = Depends(get_session_service)
):
    return service.update_session(profile, session_id, data)


@router.post("/{session_id}/status", response_model=SessionResponse)
async def change_session_status(
    session_id: str,
    request: SessionStatusChange,
    profile: CurrentProfile = Depends(require_instructor),
    service: SessionService = Depends(get_session_service)
):
    """Move the session along draft -> scheduled -> in-progress -> completed, or cancel it"""
    return service.change_status(profile, session_id, request.status)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    profile: CurrentProfile = Depends(require_manager),
    service: SessionService = Depends(get_session_service)
):
    service.delete_session(profile, session_id)
    return None


@router.post("/{session_id}/students", response_model=EnrollmentResponse, status_code=201)
async def enroll_student(
    session_id: str,
    request: EnrollmentRequest,
    profile: CurrentProfile = Depends(require_instructor),
    service: SessionService = Depends(get_session_service)
):
    return service.enroll_student(profile, session_id, request.student_id)


@router.delete("/{session_id}/students/{student_id}", status_code=204)
async def unenroll_student(
    session_id: str,
    student_id: str,
    profile: CurrentProfile = Depends(require_instructor),
    service: SessionService = Depends(get_session_service)
):
    service.unenroll_student(profile, session_id, student_id)
    return None

from fastapi import APIRouter, Depends
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.core.dependencies import get_current_profile, require_admin, require_roles
from swimtrackr.core.roles import CURRICULUM_EDITORS
from swimtrackr.core.visibility import ScopeResolver, get_scope_resolver
from swimtrackr.modules.curriculum.schemas import (
    ProgramPackageCreate, ProgramPackageResponse,
    LevelCreate, LevelUpdate, LevelResponse, LevelWithTaskCount,
    TaskCreate, TaskUpdate, TaskResponse, ReorderRequest,
)
from swimtrackr.modules.curriculum.service import CurriculumService
from swimtrackr.modules.profiles.schemas import CurrentProfile
from supabase import Client
from typing import List

router = APIRouter(prefix="/curriculum", tags=["curriculum"])

require_editor = require_roles(*CURRICULUM_EDITORS)


def get_curriculum_service(
    supabase: Client = Depends(get_supabase),
    resolver: ScopeResolver = Depends(get_scope_resolver)
) -> CurriculumService:
    return CurriculumService(supabase, resolver)


@router.get("/packages", response_model=List[ProgramPackageResponse])
async def list_packages(
    profile: CurrentProfile = Depends(get_current_profile),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.list_packages(profile)


@router.post("/packages", response_model=ProgramPackageResponse, status_code=201)
async def create_package(
    data: ProgramPackageCreate,
    profile: CurrentProfile = Depends(require_admin),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.create_package(data)


@router.get("/levels", response_model=List[LevelWithTaskCount])
async def list_levels(
    profile: CurrentProfile = Depends(get_current_profile),
    service: CurriculumService = Depends(get_curriculum_service)
):
    """Levels in order, scoped to the caller's program package"""
    return service.list_levels(profile)


@router.post("/levels", response_model=LevelResponse, status_code=201)
async def create_level(
    data: LevelCreate,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.create_level(profile, data)


@router.get("/levels/{level_id}", response_model=LevelResponse)
async def get_level(
    level_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.get_level(profile, level_id)


@router.put("/levels/{level_id}", response_model=LevelResponse)
async def update_level(
    level_id: str,
    data: LevelUpdate,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.update_level(profile, level_id, data)


@router.delete("/levels/{level_id}", status_code=204)
async def delete_level(
    level_id: str,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    service.delete_level(profile, level_id)
    return None


@router.post("/levels/{level_id}/reorder", response_model=List[LevelResponse])
async def reorder_level(
    level_id: str,
    request: ReorderRequest,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    """Move a level one step up or down within its package"""
    return service.reorder_level(profile, level_id, request.direction)


@router.get("/levels/{level_id}/tasks", response_model=List[TaskResponse])
async def list_tasks(
    level_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.list_tasks(profile, level_id)


@router.post("/levels/{level_id}/tasks", response_model=TaskResponse, status_code=201)
async def create_task(
    level_id: str,
    data: TaskCreate,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.create_task(profile, level_id, data)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.update_task(profile, task_id, data)


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    service.delete_task(profile, task_id)
    return None


@router.post("/tasks/{task_id}/reorder", response_model=List[TaskResponse])
async def reorder_task(
    task_id: str,
    request: ReorderRequest,
    profile: CurrentProfile = Depends(require_editor),
    service: CurriculumService = Depends(get_curriculum_service)
):
    return service.reorder_task(profile, task_id, request.direction)

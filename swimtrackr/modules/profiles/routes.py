from fastapi import APIRouter, Depends
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.core.dependencies import get_current_profile, require_admin
from swimtrackr.core.roles import Role
from swimtrackr.core.visibility import Entity, ScopeResolver, get_scope_resolver
from swimtrackr.modules.profiles.schemas import (
    CurrentProfile, ProfileResponse, ProfileUpdate, ProfileRoleUpdate, ProfileWithFacilities
)
from swimtrackr.modules.profiles.service import ProfileService
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileWithFacilities)
async def get_my_profile(
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile_with_facilities(profile.user_id)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service)
):
    """Update own display name"""
    return service.update_own_profile(profile, data)


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    role: Optional[Role] = None,
    limit: int = 50,
    offset: int = 0,
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service),
    resolver: ScopeResolver = Depends(get_scope_resolver)
):
    """List profiles: admin all, staff their facility, parents themselves"""
    return service.list_profiles(profile, resolver, role=role, limit=limit, offset=offset)


@router.get("/instructors", response_model=List[ProfileResponse])
async def list_instructors(
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service),
    resolver: ScopeResolver = Depends(get_scope_resolver)
):
    return service.list_instructors(profile, resolver)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: ProfileService = Depends(get_profile_service),
    resolver: ScopeResolver = Depends(get_scope_resolver)
):
    target = service.get_profile_by_id(profile_id)
    resolver.ensure_visible(Entity.PROFILES, profile, target.model_dump(mode="json"))
    return target


@router.put("/{profile_id}/role", response_model=ProfileResponse)
async def update_profile_role(
    profile_id: str,
    data: ProfileRoleUpdate,
    profile: CurrentProfile = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Assign role/facility (admin only)"""
    return service.update_role(profile, profile_id, data)

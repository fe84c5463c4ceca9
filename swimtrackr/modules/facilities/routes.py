from fastapi import APIRouter, Depends, HTTPException
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.core.dependencies import require_admin, require_manager, get_current_profile
from swimtrackr.core.visibility import Entity, ScopeResolver, get_scope_resolver
from swimtrackr.modules.facilities.schemas import (
    FacilityCreate, FacilityUpdate, FacilityResponse, FacilityWithCounts
)
from swimtrackr.modules.facilities.service import FacilityService
from swimtrackr.modules.profiles.schemas import CurrentProfile
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/facilities", tags=["facilities"])


def get_facility_service(supabase: Client = Depends(get_supabase)) -> FacilityService:
    return FacilityService(supabase)


@router.get("", response_model=List[FacilityWithCounts])
async def list_facilities(
    search: Optional[str] = None,
    profile: CurrentProfile = Depends(require_manager),
    service: FacilityService = Depends(get_facility_service),
    resolver: ScopeResolver = Depends(get_scope_resolver)
):
    """Admins see every facility; managers their own and assigned ones"""
    return await service.list_facilities(profile, resolver, search=search)


@router.post("", response_model=FacilityResponse, status_code=201)
async def create_facility(
    data: FacilityCreate,
    profile: CurrentProfile = Depends(require_admin),
    service: FacilityService = Depends(get_facility_service)
):
    return service.create_facility(data)


@router.get("/{facility_id}", response_model=FacilityResponse)
async def get_facility(
    facility_id: str,
    profile: CurrentProfile = Depends(get_current_profile),
    service: FacilityService = Depends(get_facility_service),
    resolver: ScopeResolver = Depends(get_scope_resolver)
):
    facility = service.get_facility_by_id(facility_id)
    resolver.ensure_visible(Entity.FACILITIES, profile, {"id": facility.id})
    return facility


@router.put("/{facility_id}", response_model=FacilityResponse)
async def update_facility(
    facility_id: str,
    data: FacilityUpdate,
    profile: CurrentProfile = Depends(require_manager),
    service: FacilityService = Depends(get_facility_service)
):
    """Update facility (admin, or the facility's manager)"""
    return service.update_facility(profile, facility_id, data)


@router.delete("/{facility_id}", status_code=204)
async def delete_facility(
    facility_id: str,
    profile: CurrentProfile = Depends(require_admin),
    service: FacilityService = Depends(get_facility_service)
):
    if not service.delete_facility(facility_id):
        raise HTTPException(status_code=404, detail="Facility not found")
    return None

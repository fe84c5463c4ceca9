from fastapi import APIRouter, Depends
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.config.navigation_config import compose_navigation
from swimtrackr.core.dependencies import get_current_profile, require_manager
from swimtrackr.core.visibility import ScopeResolver, get_scope_resolver
from swimtrackr.modules.dashboard.schemas import DashboardAnalytics, DashboardSummary, TimeRange
from swimtrackr.modules.dashboard.service import DashboardService
from swimtrackr.modules.profiles.schemas import CurrentProfile
from supabase import Client
from typing import List

router = APIRouter(tags=["dashboard"])


def get_dashboard_service(
    supabase: Client = Depends(get_supabase),
    resolver: ScopeResolver = Depends(get_scope_resolver)
) -> DashboardService:
    return DashboardService(supabase, resolver)


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(
    profile: CurrentProfile = Depends(get_current_profile),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Role-scoped summary counts, next sessions and recent students"""
    return await service.summary(profile)


@router.get("/dashboard/analytics", response_model=DashboardAnalytics)
async def get_analytics(
    time_range: TimeRange = TimeRange.MONTH,
    profile: CurrentProfile = Depends(require_manager),
    service: DashboardService = Depends(get_dashboard_service)
):
    return await service.analytics(profile, time_range)


@router.get("/navigation", response_model=List[dict])
async def get_navigation(profile: CurrentProfile = Depends(get_current_profile)):
    return [entry.to_dict() for entry in compose_navigation(profile.role)]

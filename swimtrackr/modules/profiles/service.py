from supabase import Client
from swimtrackr.core.errors import AuthorizationDenied, UpstreamQueryFailure, ValidationFailure
from swimtrackr.core.roles import Role, allowed_roles_for
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.profiles.schemas import (
    CurrentProfile, ProfileResponse, ProfileUpdate, ProfileRoleUpdate, ProfileWithFacilities
)
from typing import List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile_by_id(self, profile_id: str) -> ProfileResponse:
        """Get profile by ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", profile_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching profile {profile_id}: {e}")
            raise UpstreamQueryFailure()

    def get_profile_with_facilities(self, profile_id: str) -> ProfileWithFacilities:
        profile = self.get_profile_by_id(profile_id)
        try:
            result = self.supabase.table("user_facilities")\
                .select("facility_id")\
                .eq("profile_id", profile_id)\
                .execute()
            assigned = [r["facility_id"] for r in (result.data or []) if r.get("facility_id")]
        except Exception as e:
            logger.error(f"Error fetching assigned facilities for {profile_id}: {e}")
            raise UpstreamQueryFailure()
        return ProfileWithFacilities(**profile.model_dump(), assigned_facility_ids=assigned)

    def update_own_profile(self, profile: CurrentProfile, data: ProfileUpdate) -> ProfileResponse:
        """Update the caller's own profile (name only)"""
        update_data = {}
        if data.full_name is not None:
            update_data["full_name"] = data.full_name
        if not update_data:
            return self.get_profile_by_id(profile.user_id)
        return self._write(profile.user_id, update_data)

    def update_role(self, actor: CurrentProfile, profile_id: str, data: ProfileRoleUpdate) -> ProfileResponse:
        """Change role and/or facility of a profile. Only admins reach this."""
        if actor.role != Role.ADMIN:
            raise AuthorizationDenied("Only admins can change roles or facilities")
        target = self.get_profile_by_id(profile_id)
        assignable = allowed_roles_for(actor.role)

        update_data = {}
        if data.role is not None:
            if data.role not in assignable:
                raise ValidationFailure("role", f"You cannot assign the role '{data.role.value}'")
            update_data["role"] = data.role.value
        if data.facility_id is not None:
            update_data["facility_id"] = data.facility_id or None
        if not update_data:
            return target
        return self._write(profile_id, update_data)

    def _write(self, profile_id: str, update_data: dict) -> ProfileResponse:
        try:
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", profile_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile {profile_id}: {e}")
            raise UpstreamQueryFailure()

    def list_profiles(
        self,
        profile: CurrentProfile,
        resolver: ScopeResolver,
        role: Optional[Role] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[ProfileResponse]:
        """List profiles visible to the caller, optionally filtered by role"""
        query = resolver.filtered_query(Entity.PROFILES, profile)
        if query is None:
            return []
        try:
            if role is not None:
                query = query.eq("role", role.value)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [ProfileResponse(**row) for row in (result.data or [])]
        except Exception as e:
            logger.error(f"Error listing profiles: {e}")
            raise UpstreamQueryFailure()

    def list_instructors(self, profile: CurrentProfile, resolver: ScopeResolver) -> List[ProfileResponse]:
        return self.list_profiles(profile, resolver, role=Role.INSTRUCTOR, limit=500)

"""
Core dependencies for route protection: identity resolution and role guards
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client
from typing import Optional
import logging

from swimtrackr.core.errors import AuthenticationMissing, AuthorizationDenied
from swimtrackr.core.roles import Role
from swimtrackr.database.supabase_client import get_supabase
from swimtrackr.modules.profiles.schemas import CurrentProfile

logger = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "sb-access-token"

security = HTTPBearer(auto_error=False)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Optional[str]:
    """Bearer token from the Authorization header, falling back to the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def resolve_profile(token: Optional[str], supabase: Client) -> CurrentProfile:
    """
    Load the caller's profile for a session token.

    Fails closed: a missing token, an auth error, a missing profile row or an
    unknown role all raise AuthenticationMissing. There is no retry.
    """
    if not token:
        raise AuthenticationMissing()
    try:
        user_response = supabase.auth.get_user(jwt=token)
        user = user_response.user if user_response else None
        if not user:
            raise AuthenticationMissing("Invalid or expired session")

        result = supabase.table("profiles")\
            .select("*")\
            .eq("id", user.id)\
            .maybe_single()\
            .execute()
        profile = result.data if result else None
        if not profile:
            logger.warning(f"No profile found for user {user.id}")
            raise AuthenticationMissing("Profile not found")

        role = Role.parse(profile.get("role"))
        if role is None:
            logger.warning(f"Profile {user.id} has unknown role {profile.get('role')!r}")
            raise AuthenticationMissing("Profile has no valid role")

        return CurrentProfile(
            user_id=user.id,
            email=profile.get("email") or user.email,
            full_name=profile.get("full_name"),
            role=role,
            facility_id=profile.get("facility_id"),
        )
    except AuthenticationMissing:
        raise
    except Exception as e:
        logger.warning(f"Identity resolution failed: {e}")
        raise AuthenticationMissing()


def get_current_profile(
    token: Optional[str] = Depends(get_access_token),
    supabase: Client = Depends(get_supabase)
) -> CurrentProfile:
    return resolve_profile(token, supabase)


def require_roles(*allowed_roles: Role):
    """Factory function to create a role check dependency"""
    allowed = frozenset(allowed_roles)

    def check_role(profile: CurrentProfile = Depends(get_current_profile)) -> CurrentProfile:
        if profile.role not in allowed:
            raise AuthorizationDenied()
        return profile
    return check_role


require_admin = require_roles(Role.ADMIN)
require_manager = require_roles(Role.ADMIN, Role.MANAGER)
require_instructor = require_roles(Role.ADMIN, Role.MANAGER, Role.INSTRUCTOR)


def can_manage_facility(profile: CurrentProfile, facility_id: Optional[str]) -> bool:
    if profile.role == Role.ADMIN:
        return True
    return profile.role == Role.MANAGER and bool(facility_id) and profile.facility_id == facility_id


def check_facility_manager(profile: CurrentProfile, facility_id: Optional[str]) -> CurrentProfile:
    if not can_manage_facility(profile, facility_id):
        raise AuthorizationDenied("You must manage this facility to perform this action")
    return profile

from supabase import Client
from swimtrackr.core.aggregation import StatisticJob, count_of, gather_statistics
from swimtrackr.core.dependencies import check_facility_manager
from swimtrackr.core.errors import UpstreamQueryFailure
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.facilities.schemas import (
    FacilityCreate, FacilityUpdate, FacilityResponse, FacilityWithCounts
)
from swimtrackr.modules.profiles.schemas import CurrentProfile
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class FacilityService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _count(self, table: str, facility_id: str, **filters) -> int:
        query = self.supabase.table(table).select("id", count="exact").eq("facility_id", facility_id)
        for column, value in filters.items():
            query = query.eq(column, value)
        return count_of(query.execute())

    def _counts_jobs(self, facility_id: str) -> Dict[str, StatisticJob]:
        return {
            f"{facility_id}:instructors_count": (lambda: self._count("profiles", facility_id, role="instructor"), 0),
            f"{facility_id}:students_count": (lambda: self._count("students", facility_id), 0),
            f"{facility_id}:sessions_count": (lambda: self._count("sessions", facility_id), 0),
        }

    async def list_facilities(
        self,
        profile: CurrentProfile,
        resolver: ScopeResolver,
        search: Optional[str] = None,
        include_counts: bool = True
    ) -> List[FacilityWithCounts]:
        """
        List facilities visible to the caller with instructor/student/session counts.
        Counts are fetched concurrently; a failed count reads as 0.
        """
        query = resolver.filtered_query(Entity.FACILITIES, profile)
        if query is None:
            return []
        try:
            result = query.order("name").execute()
            rows = result.data or []
        except Exception as e:
            logger.error(f"Error listing facilities: {e}")
            raise UpstreamQueryFailure()
        if search:
            term = search.lower()
            rows = [
                r for r in rows
                if term in (r.get("name") or "").lower() or term in (r.get("address") or "").lower()
            ]
        if not include_counts:
            return [FacilityWithCounts(**row) for row in rows]

        jobs: Dict[str, StatisticJob] = {}
        for row in rows:
            jobs.update(self._counts_jobs(row["id"]))
        stats = await gather_statistics(jobs)
        return [
            FacilityWithCounts(
                **row,
                instructors_count=stats[f"{row['id']}:instructors_count"],
                students_count=stats[f"{row['id']}:students_count"],
                sessions_count=stats[f"{row['id']}:sessions_count"],
            )
            for row in rows
        ]

    def get_facility_by_id(self, facility_id: str) -> FacilityResponse:
        try:
            result = self.supabase.table("facilities")\
                .select("*")\
                .eq("id", facility_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Facility not found")
            return FacilityResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching facility {facility_id}: {e}")
            raise UpstreamQueryFailure()

    def create_facility(self, data: FacilityCreate) -> FacilityResponse:
        try:
            result = self.supabase.table("facilities").insert({
                "name": data.name,
                "contact_email": str(data.contact_email),
                "phone": data.phone,
                "address": data.address,
                "subscription_tier": data.subscription_tier,
                "program_package_id": data.program_package_id,
                "is_public": data.is_public,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create facility")
            logger.info(f"Facility created: {result.data[0]['id']}")
            return FacilityResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating facility: {e}")
            raise UpstreamQueryFailure()

    def update_facility(self, profile: CurrentProfile, facility_id: str, data: FacilityUpdate) -> FacilityResponse:
        check_facility_manager(profile, facility_id)
        update_data = data.model_dump(exclude_none=True)
        if "contact_email" in update_data:
            update_data["contact_email"] = str(update_data["contact_email"])
        if not update_data:
            return self.get_facility_by_id(facility_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("facilities")\
                .update(update_data)\
                .eq("id", facility_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Facility not found")
            return FacilityResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating facility {facility_id}: {e}")
            raise UpstreamQueryFailure()

    def delete_facility(self, facility_id: str) -> bool:
        try:
            result = self.supabase.table("facilities")\
                .delete()\
                .eq("id", facility_id)\
                .execute()
            return len(result.data or []) > 0
        except Exception as e:
            logger.error(f"Error deleting facility {facility_id}: {e}")
            raise UpstreamQueryFailure()

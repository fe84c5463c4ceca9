from supabase import Client
from swimtrackr.core.errors import UpstreamQueryFailure, ValidationFailure
from swimtrackr.core.ordering import Direction, next_order_index, sort_by_order, swap_with_neighbour
from swimtrackr.core.roles import Role
from swimtrackr.core.visibility import Entity, ScopeResolver
from swimtrackr.modules.curriculum.schemas import (
    ProgramPackageCreate, ProgramPackageResponse,
    LevelCreate, LevelUpdate, LevelResponse, LevelWithTaskCount,
    TaskCreate, TaskUpdate, TaskResponse,
)
from swimtrackr.modules.profiles.schemas import CurrentProfile
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CurriculumService:
    def __init__(self, supabase: Client, resolver: ScopeResolver):
        self.supabase = supabase
        self.resolver = resolver

    def _fetch_one(self, table: str, row_id: str, label: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table(table)\
                .select("*")\
                .eq("id", row_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching {label} {row_id}: {e}")
            raise UpstreamQueryFailure()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail=f"{label.capitalize()} not found")
        return result.data

    # Program packages

    def list_packages(self, profile: CurrentProfile) -> List[ProgramPackageResponse]:
        package_ids = self.resolver.program_package_ids_for(profile)
        if package_ids is not None and not package_ids:
            return []
        try:
            query = self.supabase.table("program_packages").select("*")
            if package_ids is not None:
                query = query.in_("id", package_ids)
            result = query.order("name").execute()
            return [ProgramPackageResponse(**row) for row in (result.data or [])]
        except Exception as e:
            logger.error(f"Error listing program packages: {e}")
            raise UpstreamQueryFailure()

    def create_package(self, data: ProgramPackageCreate) -> ProgramPackageResponse:
        try:
            result = self.supabase.table("program_packages").insert(data.model_dump()).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create program package")
            return ProgramPackageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating program package: {e}")
            raise UpstreamQueryFailure()

    # Levels

    def _visible_level(self, profile: CurrentProfile, level_id: str) -> Dict[str, Any]:
        level = self._fetch_one("levels", level_id, "level")
        self.resolver.ensure_visible(Entity.LEVELS, profile, level)
        return level

    def _sibling_levels(self, program_package_id: Optional[str]) -> List[Dict[str, Any]]:
        query = self.supabase.table("levels").select("*")
        if program_package_id:
            query = query.eq("program_package_id", program_package_id)
        else:
            query = query.is_("program_package_id", "null")
        return query.order("order_index").execute().data or []

    def list_levels(self, profile: CurrentProfile) -> List[LevelWithTaskCount]:
        """Levels visible to the caller, ordered, with the number of tasks in each"""
        query = self.resolver.filtered_query(Entity.LEVELS, profile)
        if query is None:
            return []
        try:
            levels = query.order("order_index").execute().data or []
            counts: Dict[str, int] = {}
            level_ids = [level["id"] for level in levels]
            if level_ids:
                tasks = self.supabase.table("tasks")\
                    .select("id, level_id")\
                    .in_("level_id", level_ids)\
                    .execute()
                for task in tasks.data or []:
                    counts[task["level_id"]] = counts.get(task["level_id"], 0) + 1
            return [
                LevelWithTaskCount(**level, tasks_count=counts.get(level["id"], 0))
                for level in sort_by_order(levels)
            ]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing levels: {e}")
            raise UpstreamQueryFailure()

    def get_level(self, profile: CurrentProfile, level_id: str) -> LevelResponse:
        return LevelResponse(**self._visible_level(profile, level_id))

    def create_level(self, profile: CurrentProfile, data: LevelCreate) -> LevelResponse:
        package_id = data.program_package_id
        if profile.role != Role.ADMIN:
            own = self.resolver.facility_package_ids(profile.facility_id)
            if not own:
                raise ValidationFailure("program_package_id", "Your facility has no program package")
            if package_id and package_id not in own:
                raise ValidationFailure("program_package_id", "Levels can only be added to your facility's program package")
            package_id = own[0]
        try:
            siblings = self._sibling_levels(package_id)
            result = self.supabase.table("levels").insert({
                "program_package_id": package_id,
                "name": data.name,
                "description": data.description,
                "order_index": next_order_index(siblings),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create level")
            return LevelResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating level: {e}")
            raise UpstreamQueryFailure()

    def update_level(self, profile: CurrentProfile, level_id: str, data: LevelUpdate) -> LevelResponse:
        level = self._visible_level(profile, level_id)
        update_data = data.model_dump(exclude_none=True)
        if not update_data:
            return LevelResponse(**level)
        update_data["updated_at"] = _now()
        return LevelResponse(**self._update("levels", level_id, update_data))

    def delete_level(self, profile: CurrentProfile, level_id: str) -> None:
        self._visible_level(profile, level_id)
        self._delete("levels", level_id)

    def reorder_level(self, profile: CurrentProfile, level_id: str, direction: Direction) -> List[LevelResponse]:
        """Swap the level with its neighbour in the same package and return the new order"""
        level = self._visible_level(profile, level_id)
        try:
            siblings = self._sibling_levels(level.get("program_package_id"))
        except Exception as e:
            logger.error(f"Error loading sibling levels: {e}")
            raise UpstreamQueryFailure()
        siblings = self._apply_swap("levels", siblings, level_id, direction)
        return [LevelResponse(**row) for row in siblings]

    # Tasks

    def _visible_task(self, profile: CurrentProfile, task_id: str) -> Dict[str, Any]:
        task = self._fetch_one("tasks", task_id, "task")
        self.resolver.ensure_visible(Entity.TASKS, profile, task)
        return task

    def _sibling_tasks(self, level_id: str) -> List[Dict[str, Any]]:
        return self.supabase.table("tasks")\
            .select("*")\
            .eq("level_id", level_id)\
            .order("order_index")\
            .execute().data or []

    def list_tasks(self, profile: CurrentProfile, level_id: str) -> List[TaskResponse]:
        self._visible_level(profile, level_id)
        try:
            return [TaskResponse(**row) for row in sort_by_order(self._sibling_tasks(level_id))]
        except Exception as e:
            logger.error(f"Error listing tasks for level {level_id}: {e}")
            raise UpstreamQueryFailure()

    def create_task(self, profile: CurrentProfile, level_id: str, data: TaskCreate) -> TaskResponse:
        self._visible_level(profile, level_id)
        try:
            siblings = self._sibling_tasks(level_id)
            result = self.supabase.table("tasks").insert({
                "level_id": level_id,
                "name": data.name,
                "description": data.description,
                "order_index": next_order_index(siblings),
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create task")
            return TaskResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating task: {e}")
            raise UpstreamQueryFailure()

    def update_task(self, profile: CurrentProfile, task_id: str, data: TaskUpdate) -> TaskResponse:
        task = self._visible_task(profile, task_id)
        update_data = data.model_dump(exclude_none=True)
        if not update_data:
            return TaskResponse(**task)
        update_data["updated_at"] = _now()
        return TaskResponse(**self._update("tasks", task_id, update_data))

    def delete_task(self, profile: CurrentProfile, task_id: str) -> None:
        self._visible_task(profile, task_id)
        self._delete("tasks", task_id)

    def reorder_task(self, profile: CurrentProfile, task_id: str, direction: Direction) -> List[TaskResponse]:
        task = self._visible_task(profile, task_id)
        try:
            siblings = self._sibling_tasks(task["level_id"])
        except Exception as e:
            logger.error(f"Error loading sibling tasks: {e}")
            raise UpstreamQueryFailure()
        siblings = self._apply_swap("tasks", siblings, task_id, direction)
        return [TaskResponse(**row) for row in siblings]

    # Shared writes

    def _apply_swap(self, table: str, siblings: List[Dict[str, Any]], row_id: str, direction: Direction) -> List[Dict[str, Any]]:
        swap = swap_with_neighbour(siblings, row_id, direction)
        if swap is None:
            return sort_by_order(siblings)
        first, second = swap
        original = {row["id"]: row["order_index"] for row in siblings}
        self._update(table, first["id"], {"order_index": first["order_index"], "updated_at": _now()})
        try:
            self._update(table, second["id"], {"order_index": second["order_index"], "updated_at": _now()})
        except HTTPException:
            # Put the first row back so the sibling indices stay unique
            self._restore_index(table, first["id"], original[first["id"]])
            raise
        new_index = {change["id"]: change["order_index"] for change in swap}
        reordered = [
            {**row, "order_index": new_index.get(row["id"], row["order_index"])}
            for row in siblings
        ]
        return sort_by_order(reordered)

    def _restore_index(self, table: str, row_id: str, order_index: int) -> None:
        try:
            self.supabase.table(table)\
                .update({"order_index": order_index, "updated_at": _now()})\
                .eq("id", row_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error restoring order_index of {table} {row_id} to {order_index}: {e}")

    def _update(self, table: str, row_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table(table)\
                .update(update_data)\
                .eq("id", row_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=f"{table[:-1].capitalize()} not found")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating {table} {row_id}: {e}")
            raise UpstreamQueryFailure()

    def _delete(self, table: str, row_id: str) -> None:
        try:
            self.supabase.table(table).delete().eq("id", row_id).execute()
        except Exception as e:
            logger.error(f"Error deleting {table} {row_id}: {e}")
            raise UpstreamQueryFailure()

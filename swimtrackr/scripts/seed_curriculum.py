"""
Seed Curriculum Script
Creates or refreshes the default program package with its levels and tasks.
Safe to re-run: rows are matched by name and only missing ones are inserted.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from swimtrackr.config.curriculum_config import CURRICULUM
from swimtrackr.database.supabase_client import SupabaseClient
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed_package(supabase: Client, package: dict) -> str:
    existing = supabase.table("program_packages")\
        .select("id")\
        .eq("name", package["name"])\
        .execute()
    if existing.data:
        package_id = existing.data[0]["id"]
        supabase.table("program_packages")\
            .update({"description": package["description"], "is_default": package["is_default"]})\
            .eq("id", package_id)\
            .execute()
        logger.info(f"Updated program package: {package['name']}")
        return package_id

    result = supabase.table("program_packages").insert(package).execute()
    logger.info(f"Created program package: {package['name']}")
    return result.data[0]["id"]


def seed_levels(supabase: Client, package_id: str, levels: list) -> int:
    """Insert missing levels and their tasks; existing levels keep their order"""
    created_count = 0
    for level in levels:
        try:
            existing = supabase.table("levels")\
                .select("id")\
                .eq("program_package_id", package_id)\
                .eq("name", level["name"])\
                .execute()
            if existing.data:
                level_id = existing.data[0]["id"]
            else:
                result = supabase.table("levels").insert({
                    "program_package_id": package_id,
                    "name": level["name"],
                    "description": level["description"],
                    "order_index": level["order_index"],
                }).execute()
                level_id = result.data[0]["id"]
                created_count += 1
                logger.debug(f"Created level: {level['name']}")
            seed_tasks(supabase, level_id, level["name"], level["tasks"])
        except Exception as e:
            logger.error(f"Error processing level {level['name']}: {e}")
    return created_count


def seed_tasks(supabase: Client, level_id: str, level_name: str, tasks: list):
    existing_result = supabase.table("tasks")\
        .select("name")\
        .eq("level_id", level_id)\
        .execute()
    existing_names = {t["name"] for t in existing_result.data} if existing_result.data else set()

    new_tasks = [
        {"level_id": level_id, "name": task["name"], "order_index": task["order_index"]}
        for task in tasks
        if task["name"] not in existing_names
    ]
    if new_tasks:
        supabase.table("tasks").insert(new_tasks).execute()
        logger.debug(f"Added {len(new_tasks)} tasks to level {level_name}")


def main():
    try:
        supabase = SupabaseClient.get_service_client()
        logger.info("Starting curriculum seeding...")

        package_id = seed_package(supabase, CURRICULUM["package"])
        level_count = seed_levels(supabase, package_id, CURRICULUM["levels"])

        logger.info(f"Seeding completed: {level_count} levels created")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

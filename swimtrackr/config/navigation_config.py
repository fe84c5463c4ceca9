"""
Navigation Configuration
Static, ordered dashboard menu. Each entry declares the roles allowed to see it;
the composer filters the table per request and never mutates it.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from swimtrackr.core.roles import Role, ALL_ROLES

STAFF_MENU_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.INSTRUCTOR})
MANAGEMENT_MENU_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


@dataclass(frozen=True)
class NavigationEntry:
    name: str
    href: str
    icon: str
    roles: FrozenSet[Role]

    def to_dict(self) -> dict:
        return {"name": self.name, "href": self.href, "icon": self.icon}


NAVIGATION: Tuple[NavigationEntry, ...] = (
    NavigationEntry("Dashboard", "/dashboard", "home", ALL_ROLES),
    NavigationEntry("Students", "/dashboard/students", "users", ALL_ROLES),
    NavigationEntry("Sessions", "/dashboard/sessions", "calendar", ALL_ROLES),
    NavigationEntry("Skills & Levels", "/dashboard/skills", "swimming", STAFF_MENU_ROLES),
    NavigationEntry("Facilities", "/dashboard/facilities", "building", MANAGEMENT_MENU_ROLES),
    NavigationEntry("Analytics", "/dashboard/analytics", "chart-bar", MANAGEMENT_MENU_ROLES),
    NavigationEntry("Settings", "/dashboard/settings", "settings", ALL_ROLES),
)


def compose_navigation(role: Optional[Role]) -> List[NavigationEntry]:
    if role is None:
        return []
    return [entry for entry in NAVIGATION if role in entry.roles]

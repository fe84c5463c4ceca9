"""
Roles carried on the `profiles.role` column and the groupings used by access rules.
"""

from enum import Enum
from typing import FrozenSet, List, Optional


class Role(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    INSTRUCTOR = "instructor"
    PARENT = "parent"
    FACILITY_PARENT = "facility_parent"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Role"]:
        """Return the Role for a raw column value, or None when it is not a known role."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


ALL_ROLES: FrozenSet[Role] = frozenset(Role)
STAFF_ROLES: FrozenSet[Role] = frozenset({Role.MANAGER, Role.INSTRUCTOR})
PARENT_ROLES: FrozenSet[Role] = frozenset({Role.PARENT, Role.FACILITY_PARENT})
CURRICULUM_EDITORS: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})


def allowed_roles_for(role: Optional[Role]) -> List[Role]:
    """Roles a user with `role` may see and assign to other profiles."""
    if role == Role.ADMIN:
        return [Role.ADMIN, Role.MANAGER, Role.INSTRUCTOR, Role.FACILITY_PARENT, Role.PARENT]
    if role == Role.MANAGER:
        return [Role.MANAGER, Role.INSTRUCTOR, Role.FACILITY_PARENT, Role.PARENT]
    if role is None:
        return []
    return [role]

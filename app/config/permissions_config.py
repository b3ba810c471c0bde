"""
Permissions and Roles Configuration
This config defines the closed role set, the action x module permission matrix
and the default grants each system role receives.
Used by the seed script, the seeding endpoints and the route requirement table.
"""
from enum import Enum
from typing import Dict, List


class RoleName(str, Enum):
    ADMIN = "admin"
    USER = "user"
    MODERATOR = "moderator"
    DEVELOPER = "developer"


class PermissionAction(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class PermissionModule(str, Enum):
    USER = "user"
    ROLE = "role"
    PERMISSION = "permission"
    ROLE_USER = "role_user"
    ROLE_PERMISSION = "role_permission"


class UserStatus(str, Enum):
    UNVERIFIED = "unverified"
    ACTIVE = "active"
    SUSPENDED = "suspended"


ROLE_NAMES: List[str] = [role.value for role in RoleName]
MODULES: List[str] = [module.value for module in PermissionModule]
ACTIONS: List[str] = [action.value for action in PermissionAction]


def permission_name(module: str, action: str) -> str:
    """Permission-action string used by the guards, e.g. "user.create"."""
    return f"{module}.{action}"


# Every "module.action" pair the system knows about (5 modules x 4 actions)
PERMISSION_NAMES = frozenset(
    permission_name(module, action) for module in MODULES for action in ACTIONS
)

# Default grants per system role. "*" grants the full matrix.
DEFAULT_ROLE_PERMISSIONS: Dict[str, List[str]] = {
    RoleName.ADMIN.value: ["*"],
    RoleName.MODERATOR.value: [
        "user.read",
        "user.update",
        "role.read",
        "permission.read",
    ],
    RoleName.DEVELOPER.value: [
        "user.read",
        "role.read",
        "permission.read",
    ],
    RoleName.USER.value: [
        "user.read",
    ],
}


def get_default_grants(role_name: str) -> List[str]:
    """
    Returns the sorted list of permission names a system role gets on seeding.
    Unknown role names get nothing.
    """
    grants = DEFAULT_ROLE_PERMISSIONS.get(role_name, [])
    if "*" in grants:
        return sorted(PERMISSION_NAMES)
    return sorted(grant for grant in grants if grant in PERMISSION_NAMES)

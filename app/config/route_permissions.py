"""
Route requirement table.

Each protected route is identified by a key and declares the roles allowed to
reach it and the permission-action ("module.action") it needs. Routes that are
not listed here are open.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from app.config.permissions_config import PERMISSION_NAMES, RoleName


@dataclass(frozen=True)
class RouteRequirement:
    roles: FrozenSet[str] = frozenset()
    permission: Optional[str] = None


# Any authenticated user, no role or permission requirement
AUTHENTICATED = RouteRequirement()

STAFF = frozenset({RoleName.ADMIN.value, RoleName.DEVELOPER.value})


def _staff(permission: Optional[str] = None) -> RouteRequirement:
    return RouteRequirement(roles=STAFF, permission=permission)


ROUTE_REQUIREMENTS: Dict[str, RouteRequirement] = {
    # auth
    "auth.logout": AUTHENTICATED,
    "auth.current_user": AUTHENTICATED,
    "auth.change_password": AUTHENTICATED,
    "auth.change_email": AUTHENTICATED,
    "auth.assign_role": _staff("role_user.create"),
    "auth.revoke_role": _staff("role_user.delete"),
    "auth.set_user_email": _staff("user.update"),
    "auth.set_user_password": _staff("user.update"),
    # users
    "users.create": _staff("user.create"),
    "users.list": _staff("user.read"),
    "users.get": _staff("user.read"),
    "users.update": _staff("user.update"),
    "users.delete": _staff("user.delete"),
    # roles
    "roles.create": _staff("role.create"),
    "roles.list": _staff("role.read"),
    "roles.get": _staff("role.read"),
    "roles.update": _staff("role.update"),
    "roles.delete": _staff("role.delete"),
    "roles.seed": _staff("role.create"),
    "roles.assign_permission": _staff("role_permission.create"),
    "roles.update_permission": _staff("role_permission.update"),
    "roles.revoke_permission": _staff("role_permission.delete"),
    # permissions
    "permissions.create": _staff("permission.create"),
    "permissions.list": _staff("permission.read"),
    "permissions.get": _staff("permission.read"),
    "permissions.update": _staff("permission.update"),
    "permissions.delete": _staff("permission.delete"),
    "permissions.seed": _staff("permission.create"),
}


def validate_route_requirements(requirements: Dict[str, RouteRequirement]) -> None:
    """Fail fast when a route names a permission or role outside the closed enumerations."""
    known_roles = {role.value for role in RoleName}
    for route_key, requirement in requirements.items():
        if requirement.permission is not None and requirement.permission not in PERMISSION_NAMES:
            raise ValueError(f"Route '{route_key}' requires unknown permission '{requirement.permission}'")
        unknown_roles = set(requirement.roles) - known_roles
        if unknown_roles:
            raise ValueError(f"Route '{route_key}' requires unknown roles {sorted(unknown_roles)}")


validate_route_requirements(ROUTE_REQUIREMENTS)

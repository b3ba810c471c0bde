"""
Role and permission evaluation for the authorization gates.

Access data is read from the store on every call; nothing is cached between
requests.
"""
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List

from supabase import Client

from app.config.permissions_config import permission_name
from app.config.route_permissions import RouteRequirement
from app.core.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserAccess:
    user_id: str
    role_ids: FrozenSet[str] = field(default_factory=frozenset)
    roles: FrozenSet[str] = field(default_factory=frozenset)
    permissions: FrozenSet[str] = field(default_factory=frozenset)


def get_user_role_ids(user_id: str, supabase: Client) -> List[str]:
    result = supabase.table("role_users")\
        .select("role_id")\
        .eq("user_id", user_id)\
        .execute()
    return list({link["role_id"] for link in result.data or []})


def get_role_names(role_ids: List[str], supabase: Client) -> List[str]:
    if not role_ids:
        return []
    result = supabase.table("roles")\
        .select("id, name")\
        .in_("id", role_ids)\
        .execute()
    return [role["name"] for role in result.data or []]


def get_granted_permission_names(role_ids: List[str], supabase: Client) -> List[str]:
    """Union of "module.action" strings enabled through any of the given roles"""
    if not role_ids:
        return []
    links = supabase.table("role_permissions")\
        .select("permission_id")\
        .in_("role_id", role_ids)\
        .eq("can_do_the_action", True)\
        .execute()
    permission_ids = list({link["permission_id"] for link in links.data or []})
    if not permission_ids:
        return []
    permissions = supabase.table("permissions")\
        .select("id, action, module")\
        .in_("id", permission_ids)\
        .execute()
    return sorted({permission_name(p["module"], p["action"]) for p in permissions.data or []})


def load_user_access(user_id: str, supabase: Client) -> UserAccess:
    role_ids = get_user_role_ids(user_id, supabase)
    return UserAccess(
        user_id=user_id,
        role_ids=frozenset(role_ids),
        roles=frozenset(get_role_names(role_ids, supabase)),
        permissions=frozenset(get_granted_permission_names(role_ids, supabase)),
    )


def check_role_gate(requirement: RouteRequirement, access: UserAccess) -> None:
    if not requirement.roles:
        return
    if requirement.roles & access.roles:
        return
    logger.warning(f"User {access.user_id} lacks any of roles {sorted(requirement.roles)}")
    raise ForbiddenError("FORBIDDEN_ROLE")


def check_permission_gate(requirement: RouteRequirement, access: UserAccess) -> None:
    if requirement.permission is None:
        return
    if requirement.permission in access.permissions:
        return
    logger.warning(f"User {access.user_id} lacks permission {requirement.permission}")
    raise ForbiddenError("FORBIDDEN_PERMISSION")


def evaluate_access(requirement: RouteRequirement, access: UserAccess) -> None:
    """Run the role gate then the permission gate; the first failure raises ForbiddenError"""
    check_role_gate(requirement, access)
    check_permission_gate(requirement, access)


def needs_access_data(requirement: RouteRequirement) -> bool:
    return bool(requirement.roles) or requirement.permission is not None

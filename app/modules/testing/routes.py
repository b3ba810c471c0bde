"""
Test support routes, mounted only when enable_test_routes is set outside production.
"""
import logging

from fastapi import APIRouter, Depends
from supabase import Client

from app.database.supabase_client import get_supabase
from app.modules.permissions.service import PermissionService
from app.modules.roles.service import RoleService
from app.modules.users.service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/test", tags=["test"])

# Children before parents
WIPE_ORDER = [
    "role_permissions",
    "role_users",
    "auth_tokens",
    "verification_tokens",
    "permissions",
    "roles",
    "users",
]
NIL_UUID = "00000000-0000-0000-0000-000000000000"


def reset_database(supabase: Client) -> None:
    for table in WIPE_ORDER:
        # PostgREST refuses an unfiltered delete
        supabase.table(table).delete().neq("id", NIL_UUID).execute()


@router.post("/setup", status_code=201)
async def setup(supabase: Client = Depends(get_supabase)):
    """Wipe every table, then seed permissions, system roles, default grants and the test accounts"""
    logger.warning("Resetting database for test setup")
    reset_database(supabase)
    role_service = RoleService(supabase)
    permissions = PermissionService(supabase).seed_permissions()
    roles = role_service.seed_system_roles()
    grants = role_service.seed_default_permissions(roles)
    users = UserService(supabase).seed_test_users(roles)
    return {
        "permissions": len(permissions),
        "roles": len(roles),
        "grants": grants,
        "users": [user.email for user in users],
    }

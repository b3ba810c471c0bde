from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.roles.schemas import (
    RoleCreate, RoleUpdate, RoleResponse, RoleWithRelationsResponse,
    RolePermissionResponse, ManagePermission, RevokePermission, RevokePermissionResponse
)
from app.modules.roles.service import RoleService
from app.core.dependencies import require_access
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


@router.post("/seed", response_model=List[RoleResponse], status_code=201)
async def seed_roles(
    user_data: Dict = Depends(require_access("roles.seed")),
    service: RoleService = Depends(get_role_service)
):
    """Create any missing system role"""
    return service.seed_system_roles()


# Role-Permission association endpoints
@router.post("/permissions/assign", response_model=RolePermissionResponse, status_code=201)
async def assign_permission(
    params: ManagePermission,
    user_data: Dict = Depends(require_access("roles.assign_permission")),
    service: RoleService = Depends(get_role_service)
):
    """Assign a permission to a role (updates can_do_the_action if already assigned)"""
    return service.assign_permission(params)


@router.patch("/permissions/update", response_model=RolePermissionResponse)
async def update_permission(
    params: ManagePermission,
    user_data: Dict = Depends(require_access("roles.update_permission")),
    service: RoleService = Depends(get_role_service)
):
    return service.update_permission(params)


@router.post("/permissions/revoke", response_model=RevokePermissionResponse, status_code=201)
async def revoke_permission(
    params: RevokePermission,
    user_data: Dict = Depends(require_access("roles.revoke_permission")),
    service: RoleService = Depends(get_role_service)
):
    """Remove a permission from a role; succeeds when nothing was assigned"""
    return service.revoke_permission(params)


# Role endpoints
@router.post("", response_model=RoleResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    user_data: Dict = Depends(require_access("roles.create")),
    service: RoleService = Depends(get_role_service)
):
    """Create a new role"""
    return service.create(role_data)


@router.get("", response_model=List[RoleWithRelationsResponse])
async def list_roles(
    user_data: Dict = Depends(require_access("roles.list")),
    service: RoleService = Depends(get_role_service)
):
    return service.find_all()


@router.get("/{role_id}", response_model=RoleWithRelationsResponse)
async def get_role(
    role_id: str,
    user_data: Dict = Depends(require_access("roles.get")),
    service: RoleService = Depends(get_role_service)
):
    return service.find_one(role_id)


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    user_data: Dict = Depends(require_access("roles.update")),
    service: RoleService = Depends(get_role_service)
):
    return service.update(role_id, role_data)


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: str,
    user_data: Dict = Depends(require_access("roles.delete")),
    service: RoleService = Depends(get_role_service)
):
    """Delete role along with its permission links and memberships"""
    service.remove(role_id)
    return None

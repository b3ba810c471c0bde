from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.permissions.schemas import PermissionCreate, PermissionUpdate, PermissionResponse
from app.modules.permissions.service import PermissionService
from app.core.dependencies import require_access
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/permissions", tags=["permissions"])


def get_permission_service(supabase: Client = Depends(get_supabase)) -> PermissionService:
    return PermissionService(supabase)


@router.post("/seed", response_model=List[PermissionResponse], status_code=201)
async def seed_permissions(
    user_data: Dict = Depends(require_access("permissions.seed")),
    service: PermissionService = Depends(get_permission_service)
):
    """Create every module x action permission that does not exist yet"""
    return service.seed_permissions()


@router.post("", response_model=PermissionResponse, status_code=201)
async def create_permission(
    permission_data: PermissionCreate,
    user_data: Dict = Depends(require_access("permissions.create")),
    service: PermissionService = Depends(get_permission_service)
):
    """Create a new permission"""
    return service.create(permission_data)


@router.get("", response_model=List[PermissionResponse])
async def list_permissions(
    user_data: Dict = Depends(require_access("permissions.list")),
    service: PermissionService = Depends(get_permission_service)
):
    return service.find_all()


@router.get("/{permission_id}", response_model=PermissionResponse)
async def get_permission(
    permission_id: str,
    user_data: Dict = Depends(require_access("permissions.get")),
    service: PermissionService = Depends(get_permission_service)
):
    return service.find_one(permission_id)


@router.patch("/{permission_id}", response_model=PermissionResponse)
async def update_permission(
    permission_id: str,
    permission_data: PermissionUpdate,
    user_data: Dict = Depends(require_access("permissions.update")),
    service: PermissionService = Depends(get_permission_service)
):
    return service.update(permission_id, permission_data)


@router.delete("/{permission_id}", status_code=204)
async def delete_permission(
    permission_id: str,
    user_data: Dict = Depends(require_access("permissions.delete")),
    service: PermissionService = Depends(get_permission_service)
):
    """Delete permission and its role assignments"""
    service.remove(permission_id)
    return None

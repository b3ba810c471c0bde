from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.users.schemas import UserCreate, UserUpdate, UserResponse, UserWithRolesResponse
from app.modules.users.service import UserService
from app.core.dependencies import require_access
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    user_data: UserCreate,
    current_user: Dict = Depends(require_access("users.create")),
    service: UserService = Depends(get_user_service)
):
    """Create a user (active unless another status is given)"""
    return service.create(user_data)


@router.get("", response_model=List[UserWithRolesResponse])
async def list_users(
    current_user: Dict = Depends(require_access("users.list")),
    service: UserService = Depends(get_user_service)
):
    return service.find_all()


@router.get("/{user_id}", response_model=UserWithRolesResponse)
async def get_user(
    user_id: str,
    current_user: Dict = Depends(require_access("users.get")),
    service: UserService = Depends(get_user_service)
):
    return service.find_one(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    current_user: Dict = Depends(require_access("users.update")),
    service: UserService = Depends(get_user_service)
):
    return service.update(user_id, user_data)


@router.delete("/{user_id}", status_code=204)
async def delete_user(
    user_id: str,
    current_user: Dict = Depends(require_access("users.delete")),
    service: UserService = Depends(get_user_service)
):
    """Delete user with its role links and sessions"""
    service.remove(user_id)
    return None

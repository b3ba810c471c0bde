from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime

from app.config.permissions_config import RoleName
from app.modules.permissions.schemas import PermissionResponse
from app.modules.users.schemas import UserResponse


class RoleCreate(BaseModel):
    name: RoleName


class RoleUpdate(BaseModel):
    name: Optional[RoleName] = None


class RoleResponse(BaseModel):
    id: str
    name: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RolePermissionResponse(BaseModel):
    id: str
    role_id: str
    permission_id: str
    can_do_the_action: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RolePermissionWithPermission(RolePermissionResponse):
    permission: Optional[PermissionResponse] = None


class RoleUserWithUser(BaseModel):
    id: str
    user_id: str
    role_id: str
    created_at: datetime
    user: Optional[UserResponse] = None

    class Config:
        from_attributes = True


class RoleWithRelationsResponse(RoleResponse):
    role_permissions: List[RolePermissionWithPermission] = []
    role_users: List[RoleUserWithUser] = []


class ManagePermission(BaseModel):
    role_id: str
    permission_id: str
    can_do_the_action: bool = False


class RevokePermission(BaseModel):
    role_id: str
    permission_id: str


class RevokePermissionResponse(BaseModel):
    message: str
    role_permission: Optional[RolePermissionResponse] = None

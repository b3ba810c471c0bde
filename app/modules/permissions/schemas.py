from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.config.permissions_config import PermissionAction, PermissionModule, permission_name


class PermissionCreate(BaseModel):
    action: PermissionAction
    module: PermissionModule


class PermissionUpdate(BaseModel):
    action: Optional[PermissionAction] = None
    module: Optional[PermissionModule] = None


class PermissionResponse(BaseModel):
    id: str
    action: PermissionAction
    module: PermissionModule
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def name(self) -> str:
        return permission_name(self.module.value, self.action.value)

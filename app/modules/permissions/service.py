import logging
from datetime import datetime, timezone
from typing import List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.config.permissions_config import ACTIONS, MODULES
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.database.supabase_client import is_malformed_id, is_unique_violation
from app.modules.permissions.schemas import PermissionCreate, PermissionUpdate, PermissionResponse

logger = logging.getLogger(__name__)


class PermissionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create(self, permission_data: PermissionCreate) -> PermissionResponse:
        """Create a new permission"""
        try:
            result = self.supabase.table("permissions").insert({
                "action": permission_data.action.value,
                "module": permission_data.module.value,
            }).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError("PERMISSION_ALREADY_EXISTS")
            raise
        return PermissionResponse(**result.data[0])

    def find_all(self) -> List[PermissionResponse]:
        result = self.supabase.table("permissions")\
            .select("*")\
            .order("created_at")\
            .execute()
        return [PermissionResponse(**permission) for permission in result.data]

    def find_one(self, permission_id: str) -> PermissionResponse:
        """Get permission by ID"""
        try:
            result = self.supabase.table("permissions")\
                .select("*")\
                .eq("id", permission_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_PERMISSION_ID")
            raise
        if not result.data:
            raise NotFoundError("PERMISSION_NOT_FOUND")
        return PermissionResponse(**result.data[0])

    def find_by_action_module(self, action: str, module: str) -> Optional[PermissionResponse]:
        result = self.supabase.table("permissions")\
            .select("*")\
            .eq("action", action)\
            .eq("module", module)\
            .execute()
        if not result.data:
            return None
        return PermissionResponse(**result.data[0])

    def update(self, permission_id: str, permission_data: PermissionUpdate) -> PermissionResponse:
        """Update permission"""
        update_data = permission_data.model_dump(exclude_none=True, mode="json")
        if not update_data:
            return self.find_one(permission_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("permissions")\
                .update(update_data)\
                .eq("id", permission_id)\
                .execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError("PERMISSION_ALREADY_EXISTS")
            if is_malformed_id(e):
                raise BadRequestError("INVALID_PERMISSION_ID")
            raise
        if not result.data:
            raise NotFoundError("PERMISSION_NOT_FOUND")
        return PermissionResponse(**result.data[0])

    def remove(self, permission_id: str) -> PermissionResponse:
        """Delete permission together with the role links pointing at it"""
        try:
            # Remove from role_permissions first
            self.supabase.table("role_permissions")\
                .delete()\
                .eq("permission_id", permission_id)\
                .execute()

            result = self.supabase.table("permissions")\
                .delete()\
                .eq("id", permission_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_PERMISSION_ID")
            raise
        if not result.data:
            raise NotFoundError("PERMISSION_NOT_FOUND")
        return PermissionResponse(**result.data[0])

    def seed_permissions(self) -> List[PermissionResponse]:
        """
        Ensure one permission exists per module x action pair.

        Safe to run repeatedly: an insert that hits the (action, module)
        unique constraint is replaced by a read of the row that won.
        """
        permissions: List[Optional[PermissionResponse]] = []
        for module in MODULES:
            for action in ACTIONS:
                try:
                    result = self.supabase.table("permissions").insert({
                        "action": action,
                        "module": module,
                    }).execute()
                    permissions.append(PermissionResponse(**result.data[0]))
                except APIError as e:
                    if not is_unique_violation(e):
                        raise
                    permissions.append(self.find_by_action_module(action, module))

        seeded = [permission for permission in permissions if permission is not None]
        logger.info(f"Permissions seeded: {len(seeded)} present")
        return seeded

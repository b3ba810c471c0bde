import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.config.permissions_config import ROLE_NAMES, get_default_grants
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError
from app.database.supabase_client import is_malformed_id, is_unique_violation
from app.modules.permissions.schemas import PermissionResponse
from app.modules.permissions.service import PermissionService
from app.modules.roles.schemas import (
    RoleCreate, RoleUpdate, RoleResponse, RoleWithRelationsResponse,
    RolePermissionResponse, RolePermissionWithPermission, RoleUserWithUser,
    ManagePermission, RevokePermission, RevokePermissionResponse
)
from app.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RoleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create(self, role_data: RoleCreate) -> RoleResponse:
        """Create a new role"""
        try:
            result = self.supabase.table("roles").insert({
                "name": role_data.name.value
            }).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError("ROLE_ALREADY_EXISTS")
            raise
        logger.info(f"Created role {role_data.name.value}")
        return RoleResponse(**result.data[0])

    def _with_relations(self, roles: List[Dict[str, Any]]) -> List[RoleWithRelationsResponse]:
        """Attach role_permissions[].permission and role_users[].user to each role row"""
        if not roles:
            return []
        role_ids = [role["id"] for role in roles]

        links = self.supabase.table("role_permissions")\
            .select("*")\
            .in_("role_id", role_ids)\
            .execute().data or []
        permission_ids = list({link["permission_id"] for link in links})
        permissions: Dict[str, PermissionResponse] = {}
        if permission_ids:
            for row in self.supabase.table("permissions").select("*").in_("id", permission_ids).execute().data or []:
                permissions[row["id"]] = PermissionResponse(**row)

        memberships = self.supabase.table("role_users")\
            .select("*")\
            .in_("role_id", role_ids)\
            .execute().data or []
        user_ids = list({membership["user_id"] for membership in memberships})
        users: Dict[str, UserResponse] = {}
        if user_ids:
            for row in self.supabase.table("users").select("*").in_("id", user_ids).execute().data or []:
                users[row["id"]] = UserResponse(**row)

        response = []
        for role in roles:
            response.append(RoleWithRelationsResponse(
                **role,
                role_permissions=[
                    RolePermissionWithPermission(**link, permission=permissions.get(link["permission_id"]))
                    for link in links if link["role_id"] == role["id"]
                ],
                role_users=[
                    RoleUserWithUser(**membership, user=users.get(membership["user_id"]))
                    for membership in memberships if membership["role_id"] == role["id"]
                ],
            ))
        return response

    def find_all(self) -> List[RoleWithRelationsResponse]:
        result = self.supabase.table("roles")\
            .select("*")\
            .order("created_at")\
            .execute()
        return self._with_relations(result.data or [])

    def _get_role_row(self, role_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq("id", role_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_ROLE_ID")
            raise
        if not result.data:
            raise NotFoundError("ROLE_NOT_FOUND")
        return result.data[0]

    def find_one(self, role_id: str) -> RoleWithRelationsResponse:
        """Get role by ID with its permission links and members"""
        return self._with_relations([self._get_role_row(role_id)])[0]

    def find_by_name(self, name: str) -> Optional[RoleResponse]:
        result = self.supabase.table("roles")\
            .select("*")\
            .eq("name", name)\
            .execute()
        if not result.data:
            return None
        return RoleResponse(**result.data[0])

    def update(self, role_id: str, role_data: RoleUpdate) -> RoleResponse:
        """Update role"""
        update_data = role_data.model_dump(exclude_none=True, mode="json")
        if not update_data:
            return RoleResponse(**self._get_role_row(role_id))
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("roles")\
                .update(update_data)\
                .eq("id", role_id)\
                .execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError("ROLE_NAME_ALREADY_EXISTS")
            if is_malformed_id(e):
                raise BadRequestError("INVALID_ROLE_ID")
            raise
        if not result.data:
            raise NotFoundError("ROLE_NOT_FOUND")
        return RoleResponse(**result.data[0])

    def remove(self, role_id: str) -> RoleResponse:
        """Delete role after its permission links and memberships"""
        try:
            self.supabase.table("role_permissions")\
                .delete()\
                .eq("role_id", role_id)\
                .execute()
            self.supabase.table("role_users")\
                .delete()\
                .eq("role_id", role_id)\
                .execute()
            result = self.supabase.table("roles")\
                .delete()\
                .eq("id", role_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_ROLE_ID")
            raise
        if not result.data:
            raise NotFoundError("ROLE_NOT_FOUND")
        logger.info(f"Deleted role {result.data[0]['name']}")
        return RoleResponse(**result.data[0])

    def seed_system_roles(self) -> List[RoleResponse]:
        """Create-or-fetch each of the fixed system roles"""
        roles: List[Optional[RoleResponse]] = []
        for name in ROLE_NAMES:
            try:
                result = self.supabase.table("roles").insert({"name": name}).execute()
                roles.append(RoleResponse(**result.data[0]))
            except APIError as e:
                if not is_unique_violation(e):
                    raise
                roles.append(self.find_by_name(name))
        return [role for role in roles if role is not None]

    def assign_permission(self, params: ManagePermission) -> RolePermissionResponse:
        """
        Link a permission to a role, or update the flag when the link exists.

        Raises:
            NotFoundError: role or permission does not exist.
            BadRequestError: malformed id.
        """
        self._get_role_row(params.role_id)
        PermissionService(self.supabase).find_one(params.permission_id)

        try:
            result = self.supabase.table("role_permissions").insert({
                "role_id": params.role_id,
                "permission_id": params.permission_id,
                "can_do_the_action": params.can_do_the_action,
            }).execute()
        except APIError as e:
            if not is_unique_violation(e):
                raise
            # Lost the insert race or already linked: switch to an update
            result = self.supabase.table("role_permissions")\
                .update({"can_do_the_action": params.can_do_the_action, "updated_at": _now()})\
                .eq("role_id", params.role_id)\
                .eq("permission_id", params.permission_id)\
                .execute()
            if not result.data:
                # Link removed between the conflict and the update
                raise NotFoundError("ROLE_PERMISSION_ASSIGNMENT_NOT_FOUND")
        return RolePermissionResponse(**result.data[0])

    def revoke_permission(self, params: RevokePermission) -> RevokePermissionResponse:
        """Remove a role/permission link; a missing link counts as revoked"""
        try:
            result = self.supabase.table("role_permissions")\
                .delete()\
                .eq("role_id", params.role_id)\
                .eq("permission_id", params.permission_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_ID")
            raise
        if not result.data:
            return RevokePermissionResponse(message="PERMISSION_REVOKED_OR_NOT_ASSIGNED")
        return RevokePermissionResponse(
            message="PERMISSION_REVOKED",
            role_permission=RolePermissionResponse(**result.data[0]),
        )

    def update_permission(self, params: ManagePermission) -> RolePermissionResponse:
        """Change can_do_the_action on an existing link only"""
        try:
            result = self.supabase.table("role_permissions")\
                .update({"can_do_the_action": params.can_do_the_action, "updated_at": _now()})\
                .eq("role_id", params.role_id)\
                .eq("permission_id", params.permission_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_ID")
            raise
        if not result.data:
            raise NotFoundError("ROLE_PERMISSION_ASSIGNMENT_NOT_FOUND")
        return RolePermissionResponse(**result.data[0])

    def seed_default_permissions(self, roles: List[RoleResponse]) -> int:
        """Grant each system role its default permissions. Returns the number of links written."""
        permission_service = PermissionService(self.supabase)
        written = 0
        for role in roles:
            for grant in get_default_grants(role.name):
                module, action = grant.split(".", 1)
                permission = permission_service.find_by_action_module(action, module)
                if permission is None:
                    logger.warning(f"Permission {grant} missing, not granted to {role.name}")
                    continue
                self.assign_permission(ManagePermission(
                    role_id=role.id,
                    permission_id=permission.id,
                    can_do_the_action=True,
                ))
                written += 1
        logger.info(f"Default grants written: {written}")
        return written

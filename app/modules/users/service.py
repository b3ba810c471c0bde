import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from postgrest.exceptions import APIError
from supabase import Client

from app.config.permissions_config import ROLE_NAMES, RoleName, UserStatus
from app.core.exceptions import BadRequestError, ConflictError, InvalidInputError, NotFoundError
from app.core.security import hash_password
from app.database.supabase_client import is_malformed_id, is_unique_violation
from app.modules.roles.schemas import RoleResponse
from app.modules.roles.service import RoleService
from app.modules.users.schemas import (
    UserCreate, UserUpdate, UserResponse, UserWithRolesResponse,
    RoleUserResponse, RoleUserWithRole, UserRoleSummary
)

logger = logging.getLogger(__name__)

TEST_USER_PASSWORD = "password"
TEST_USERS = [
    {"email": "test-1@test.com", "first_name": "Test", "last_name": "User 1"},
    {"email": "test-2@test.com", "first_name": "Test", "last_name": "User 2"},
    {"email": "test-3@test.com", "first_name": "Test", "last_name": "User 3"},
]
# Roles granted on top of the default "user" role
TEST_USER_EXTRA_ROLES = {
    "test-1@test.com": [RoleName.ADMIN.value],
    "test-2@test.com": [RoleName.DEVELOPER.value],
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.role_service = RoleService(supabase)

    def create(self, user_data: UserCreate) -> UserResponse:
        """Create a user; the password is hashed before it reaches the store"""
        try:
            result = self.supabase.table("users").insert({
                "email": user_data.email,
                "password": hash_password(user_data.password),
                "first_name": user_data.first_name,
                "last_name": user_data.last_name,
                "status": user_data.status.value,
            }).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError("USER_ALREADY_EXISTS")
            raise
        logger.info(f"Created user {result.data[0]['id']} with status {user_data.status.value}")
        return UserResponse(**result.data[0])

    def _with_roles(self, users: List[Dict[str, Any]]) -> List[UserWithRolesResponse]:
        """Attach role_users[].role to each user row"""
        if not users:
            return []
        user_ids = [user["id"] for user in users]
        memberships = self.supabase.table("role_users")\
            .select("*")\
            .in_("user_id", user_ids)\
            .execute().data or []
        role_ids = list({membership["role_id"] for membership in memberships})
        roles: Dict[str, UserRoleSummary] = {}
        if role_ids:
            for row in self.supabase.table("roles").select("id, name").in_("id", role_ids).execute().data or []:
                roles[row["id"]] = UserRoleSummary(**row)

        return [
            UserWithRolesResponse(
                **user,
                role_users=[
                    RoleUserWithRole(**membership, role=roles.get(membership["role_id"]))
                    for membership in memberships if membership["user_id"] == user["id"]
                ],
            )
            for user in users
        ]

    def find_all(self) -> List[UserWithRolesResponse]:
        result = self.supabase.table("users")\
            .select("*")\
            .order("created_at")\
            .execute()
        return self._with_roles(result.data or [])

    def get_user_row(self, user_id: str) -> Dict[str, Any]:
        """Raw users row (including the password hash) for internal callers"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", user_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_USER_ID")
            raise
        if not result.data:
            raise NotFoundError("USER_NOT_FOUND")
        return result.data[0]

    def find_one(self, user_id: str) -> UserWithRolesResponse:
        return self._with_roles([self.get_user_row(user_id)])[0]

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("users")\
            .select("*")\
            .eq("email", email)\
            .execute()
        if not result.data:
            return None
        return result.data[0]

    def _update_row(self, user_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        update_data["updated_at"] = _now()
        try:
            result = self.supabase.table("users")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except APIError as e:
            if is_unique_violation(e):
                raise ConflictError("USER_ALREADY_EXISTS")
            if is_malformed_id(e):
                raise BadRequestError("INVALID_USER_ID")
            raise
        if not result.data:
            raise NotFoundError("USER_NOT_FOUND")
        return result.data[0]

    def update(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update profile fields, email or status"""
        update_data = user_data.model_dump(exclude_none=True, mode="json")
        if not update_data:
            return UserResponse(**self.get_user_row(user_id))
        return UserResponse(**self._update_row(user_id, update_data))

    def set_status(self, user_id: str, status: UserStatus) -> UserResponse:
        return UserResponse(**self._update_row(user_id, {"status": status.value}))

    def set_password(self, user_id: str, password: str) -> UserResponse:
        return UserResponse(**self._update_row(user_id, {"password": hash_password(password)}))

    def remove(self, user_id: str) -> UserResponse:
        """Delete user after its role links, sessions and pending tokens"""
        try:
            for table in ("role_users", "auth_tokens", "verification_tokens"):
                self.supabase.table(table)\
                    .delete()\
                    .eq("user_id", user_id)\
                    .execute()
            result = self.supabase.table("users")\
                .delete()\
                .eq("id", user_id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_USER_ID")
            raise
        if not result.data:
            raise NotFoundError("USER_NOT_FOUND")
        logger.info(f"Deleted user {user_id}")
        return UserResponse(**result.data[0])

    def _resolve_role(self, role_name: str) -> RoleResponse:
        if role_name not in ROLE_NAMES:
            raise InvalidInputError("INVALID_ROLE_NAME")
        role = self.role_service.find_by_name(role_name)
        if role is None:
            raise NotFoundError("ROLE_NOT_FOUND")
        return role

    def assign_role(self, user_id: str, role_name: str) -> RoleUserResponse:
        """Give a user a role by name; assigning a held role returns the existing link"""
        role = self._resolve_role(role_name)
        self.get_user_row(user_id)
        try:
            result = self.supabase.table("role_users").insert({
                "user_id": user_id,
                "role_id": role.id,
            }).execute()
        except APIError as e:
            if not is_unique_violation(e):
                raise
            existing = self.supabase.table("role_users")\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("role_id", role.id)\
                .execute()
            if not existing.data:
                raise
            return RoleUserResponse(**existing.data[0])
        logger.info(f"Assigned role {role_name} to user {user_id}")
        return RoleUserResponse(**result.data[0])

    def revoke_role(self, user_id: str, role_name: str) -> RoleUserResponse:
        role = self._resolve_role(role_name)
        try:
            result = self.supabase.table("role_users")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("role_id", role.id)\
                .execute()
        except APIError as e:
            if is_malformed_id(e):
                raise BadRequestError("INVALID_USER_ID")
            raise
        if not result.data:
            raise NotFoundError("ROLE_USER_NOT_FOUND")
        logger.info(f"Revoked role {role_name} from user {user_id}")
        return RoleUserResponse(**result.data[0])

    def _link_role(self, user_id: str, role_id: str) -> None:
        """Insert a role_users row, ignoring "already assigned" """
        try:
            self.supabase.table("role_users").insert({
                "user_id": user_id,
                "role_id": role_id,
            }).execute()
        except APIError as e:
            if not is_unique_violation(e):
                raise

    def seed_test_users(self, roles: List[RoleResponse]) -> List[UserResponse]:
        """
        Create the fixed sample accounts (all active, password "password").

        Every account gets the "user" role; test-1 is also admin and test-2
        developer. Existing accounts and links are reused.
        """
        role_lookup = {role.name: role for role in roles}
        hashed_password = hash_password(TEST_USER_PASSWORD)

        users: List[Dict[str, Any]] = []
        for data in TEST_USERS:
            try:
                result = self.supabase.table("users").insert({
                    **data,
                    "password": hashed_password,
                    "status": UserStatus.ACTIVE.value,
                }).execute()
                users.append(result.data[0])
            except APIError as e:
                if not is_unique_violation(e):
                    raise
                existing = self.find_by_email(data["email"])
                if existing:
                    users.append(existing)

        default_role = role_lookup.get(RoleName.USER.value)
        for user in users:
            if default_role is not None:
                self._link_role(user["id"], default_role.id)
            for role_name in TEST_USER_EXTRA_ROLES.get(user["email"], []):
                role = role_lookup.get(role_name)
                if role is not None:
                    self._link_role(user["id"], role.id)

        logger.info(f"Test users seeded: {len(users)}")
        return [UserResponse(**user) for user in users]

import logging
from typing import Any, Dict

from supabase import Client

from app.config.permissions_config import RoleName, UserStatus
from app.core.authorization import UserAccess
from app.core.exceptions import BadRequestError, NotFoundError, UnauthorizedError
from app.core.mailer import Mailer
from app.core.security import verify_password
from app.modules.auth.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, RefreshTokenRequest,
    MessageResponse, CurrentUserResponse
)
from app.modules.auth_tokens.service import TokenService
from app.modules.users.schemas import UserCreate, UserResponse, UserUpdate, RoleUserResponse
from app.modules.users.service import UserService
from app.modules.verification_tokens.models import VerificationPurpose
from app.modules.verification_tokens.service import VerificationTokenService

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client, mailer: Mailer):
        self.supabase = supabase
        self.mailer = mailer
        self.users = UserService(supabase)
        self.tokens = TokenService(supabase)
        self.verification_tokens = VerificationTokenService(supabase)

    def _send_verification(self, user_id: str, email: str) -> None:
        token = self.verification_tokens.issue(user_id, VerificationPurpose.EMAIL_VERIFICATION)
        self.mailer.send_verification_email(email, token)

    def register(self, register_data: RegisterRequest) -> UserResponse:
        """Create an unverified account and email its verification token"""
        user = self.users.create(UserCreate(
            email=register_data.email,
            password=register_data.password,
            first_name=register_data.first_name,
            last_name=register_data.last_name,
            status=UserStatus.UNVERIFIED,
        ))
        default_role = self.users.role_service.find_by_name(RoleName.USER.value)
        if default_role is not None:
            self.users.assign_role(user.id, default_role.name)
        else:
            logger.warning("Default role 'user' is not seeded; registered user has no role")
        self._send_verification(user.id, user.email)
        logger.info(f"Registered user {user.id}")
        return user

    def login(self, login_data: LoginRequest) -> TokenResponse:
        user = self.users.find_by_email(login_data.email)
        if not user or not verify_password(login_data.password, user.get("password", "")):
            logger.warning("Login failed: invalid credentials")
            raise UnauthorizedError("INVALID_CREDENTIALS")
        if user.get("status") == UserStatus.SUSPENDED.value:
            logger.warning(f"Login refused for suspended user {user['id']}")
            raise UnauthorizedError("USER_SUSPENDED")
        logger.info(f"User {user['id']} logged in")
        return TokenResponse(**self.tokens.issue(user["id"]))

    def logout(self, access_token: str) -> MessageResponse:
        self.tokens.revoke(access_token)
        return MessageResponse(message="Logged out successfully")

    def refresh(self, refresh_data: RefreshTokenRequest) -> TokenResponse:
        """Rotate a pair for a user that still exists and is not suspended"""
        user_id = self.tokens.refresh_subject(refresh_data.refresh_token)
        try:
            user = self.users.get_user_row(user_id)
        except (NotFoundError, BadRequestError):
            raise UnauthorizedError("UNAUTHORIZED")
        if user.get("status") == UserStatus.SUSPENDED.value:
            logger.warning(f"Refresh refused for suspended user {user_id}")
            raise UnauthorizedError("USER_SUSPENDED")
        return TokenResponse(**self.tokens.refresh(refresh_data.access_token, refresh_data.refresh_token))

    def current_user(self, user: Dict[str, Any], access: UserAccess) -> CurrentUserResponse:
        """Current user with role links plus flattened role and permission names (for frontend UI)"""
        profile = self.users.find_one(user["id"])
        return CurrentUserResponse(
            **profile.model_dump(),
            roles=sorted(access.roles),
            permissions=sorted(access.permissions),
        )

    def verify_email(self, email: str, token: str) -> UserResponse:
        user = self.verification_tokens.consume(email, token, VerificationPurpose.EMAIL_VERIFICATION)
        if user.get("status") == UserStatus.UNVERIFIED.value:
            return self.users.set_status(user["id"], UserStatus.ACTIVE)
        return UserResponse(**user)

    def resend_verification_email(self, email: str) -> MessageResponse:
        user = self.users.find_by_email(email)
        if not user:
            raise NotFoundError("USER_NOT_FOUND")
        if user.get("status") != UserStatus.UNVERIFIED.value:
            raise BadRequestError("USER_ALREADY_VERIFIED")
        self._send_verification(user["id"], user["email"])
        return MessageResponse(message="Verification email sent")

    def forgot_password(self, email: str) -> MessageResponse:
        user = self.users.find_by_email(email)
        if not user:
            raise NotFoundError("USER_NOT_FOUND")
        token = self.verification_tokens.issue(user["id"], VerificationPurpose.PASSWORD_RESET)
        self.mailer.send_password_reset_email(user["email"], token)
        return MessageResponse(message="Password reset email sent")

    def reset_password(self, email: str, token: str, new_password: str) -> MessageResponse:
        """Overwrite the password with a reset token instead of the old password; ends all sessions"""
        user = self.verification_tokens.consume(email, token, VerificationPurpose.PASSWORD_RESET)
        self.users.set_password(user["id"], new_password)
        revoked = self.tokens.revoke_all(user["id"])
        logger.info(f"Password reset for user {user['id']}, {revoked} sessions revoked")
        return MessageResponse(message="Password has been reset")

    def change_password(self, user: Dict[str, Any], old_password: str, new_password: str) -> MessageResponse:
        if not verify_password(old_password, user.get("password", "")):
            raise BadRequestError("INVALID_OLD_PASSWORD")
        self.users.set_password(user["id"], new_password)
        logger.info(f"User {user['id']} changed password")
        return MessageResponse(message="Password changed successfully")

    def change_email(self, user: Dict[str, Any], email: str) -> UserResponse:
        """Switch to a new address; the account is unverified until the new address is confirmed"""
        updated = self.users.update(user["id"], UserUpdate(email=email, status=UserStatus.UNVERIFIED))
        self._send_verification(updated.id, updated.email)
        return updated

    def assign_role(self, user_id: str, role_name: str) -> RoleUserResponse:
        return self.users.assign_role(user_id, role_name)

    def revoke_role(self, user_id: str, role_name: str) -> RoleUserResponse:
        return self.users.revoke_role(user_id, role_name)

    def set_user_email(self, user_id: str, new_email: str) -> UserResponse:
        return self.users.update(user_id, UserUpdate(email=new_email))

    def set_user_password(self, user_id: str, password: str) -> UserResponse:
        user = self.users.set_password(user_id, password)
        self.tokens.revoke_all(user_id)
        return user

from fastapi import APIRouter, Depends, Request
from app.config.settings import settings
from app.core.authorization import UserAccess
from app.core.dependencies import require_access, get_request_access
from app.core.mailer import Mailer, get_mailer
from app.core.rate_limit import limiter
from app.database.supabase_client import get_supabase
from app.modules.auth.schemas import (
    RegisterRequest, LoginRequest, TokenResponse, RefreshTokenRequest, MessageResponse,
    EmailRequest, VerifyEmailRequest, ResetPasswordRequest, ChangePasswordRequest,
    RoleAssignmentRequest, SetUserEmailRequest, SetUserPasswordRequest, CurrentUserResponse
)
from app.modules.auth.service import AuthService
from app.modules.users.schemas import UserResponse, RoleUserResponse
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    mailer: Mailer = Depends(get_mailer)
) -> AuthService:
    return AuthService(supabase, mailer)


@router.post("/register", response_model=UserResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new (unverified) user and send the verification email"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.login(login_data)


@router.post("/refresh-token", response_model=TokenResponse, status_code=201)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Exchange an access/refresh pair for a new pair; the old pair stops working"""
    return service.refresh(refresh_data)


@router.post("/logout", response_model=MessageResponse, status_code=201)
async def logout(
    request: Request,
    current_user: Dict = Depends(require_access("auth.logout")),
    service: AuthService = Depends(get_auth_service)
):
    return service.logout(request.state.access_token)


@router.get("/user", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(require_access("auth.current_user")),
    access: UserAccess = Depends(get_request_access),
    service: AuthService = Depends(get_auth_service)
):
    """Get current authenticated user with role names and granted permissions (for frontend UI)."""
    return service.current_user(current_user, access)


@router.post("/verify-user-email", response_model=UserResponse, status_code=201)
async def verify_user_email(
    verify_data: VerifyEmailRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.verify_email(verify_data.email, verify_data.token)


@router.post("/resend-verification-email", response_model=MessageResponse, status_code=201)
async def resend_verification_email(
    email_data: EmailRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.resend_verification_email(email_data.email)


@router.post("/forgot-password", response_model=MessageResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def forgot_password(
    request: Request,
    email_data: EmailRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.forgot_password(email_data.email)


@router.post("/reset-password", response_model=MessageResponse, status_code=201)
async def reset_password(
    reset_data: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service)
):
    return service.reset_password(reset_data.email, reset_data.token, reset_data.new_password)


@router.post("/change-password", response_model=MessageResponse, status_code=201)
async def change_password(
    password_data: ChangePasswordRequest,
    current_user: Dict = Depends(require_access("auth.change_password")),
    service: AuthService = Depends(get_auth_service)
):
    return service.change_password(current_user, password_data.old_password, password_data.new_password)


@router.post("/change-email", response_model=UserResponse, status_code=201)
async def change_email(
    email_data: EmailRequest,
    current_user: Dict = Depends(require_access("auth.change_email")),
    service: AuthService = Depends(get_auth_service)
):
    """Change own email; the account goes back to unverified"""
    return service.change_email(current_user, email_data.email)


@router.post("/assign-role", response_model=RoleUserResponse, status_code=201)
async def assign_role(
    assignment: RoleAssignmentRequest,
    current_user: Dict = Depends(require_access("auth.assign_role")),
    service: AuthService = Depends(get_auth_service)
):
    return service.assign_role(assignment.user_id, assignment.role_name)


@router.post("/revoke-role", response_model=RoleUserResponse, status_code=201)
async def revoke_role(
    assignment: RoleAssignmentRequest,
    current_user: Dict = Depends(require_access("auth.revoke_role")),
    service: AuthService = Depends(get_auth_service)
):
    return service.revoke_role(assignment.user_id, assignment.role_name)


@router.post("/set-user-email", response_model=UserResponse, status_code=201)
async def set_user_email(
    email_data: SetUserEmailRequest,
    current_user: Dict = Depends(require_access("auth.set_user_email")),
    service: AuthService = Depends(get_auth_service)
):
    return service.set_user_email(email_data.user_id, email_data.new_email)


@router.post("/set-user-password", response_model=UserResponse, status_code=201)
async def set_user_password(
    password_data: SetUserPasswordRequest,
    current_user: Dict = Depends(require_access("auth.set_user_password")),
    service: AuthService = Depends(get_auth_service)
):
    """Overwrite a user's password and end their sessions"""
    return service.set_user_password(password_data.user_id, password_data.password)

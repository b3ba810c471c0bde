"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, Request, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from postgrest.exceptions import APIError
from supabase import Client
from typing import Any, Dict, Optional
import logging

from app.config.permissions_config import UserStatus
from app.config.route_permissions import ROUTE_REQUIREMENTS
from app.core.authorization import UserAccess, evaluate_access, load_user_access, needs_access_data
from app.core.exceptions import UnauthorizedError
from app.database.supabase_client import get_supabase, is_malformed_id
from app.modules.auth_tokens.service import TokenService

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


def get_token_service(supabase: Client = Depends(get_supabase)) -> TokenService:
    return TokenService(supabase)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract the bearer token from the Authorization header"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("UNAUTHORIZED")
    return credentials.credentials


def get_current_user(
    request: Request,
    token: str = Depends(get_bearer_token),
    token_service: TokenService = Depends(get_token_service),
    supabase: Client = Depends(get_supabase),
) -> Dict[str, Any]:
    """Authentication gate: resolve the bearer token to a live user row"""
    user_id = token_service.validate(token)
    try:
        result = supabase.table("users")\
            .select("*")\
            .eq("id", user_id)\
            .execute()
    except APIError as e:
        if is_malformed_id(e):
            raise UnauthorizedError("INVALID_TOKEN")
        raise
    if not result.data:
        raise UnauthorizedError("UNAUTHORIZED")
    user = result.data[0]
    if user.get("status") == UserStatus.SUSPENDED.value:
        raise UnauthorizedError("USER_SUSPENDED")
    request.state.user = user
    request.state.access_token = token
    return user


def require_access(route_key: str):
    """Factory for the full gate chain (authentication -> role -> permission) of a route"""
    requirement = ROUTE_REQUIREMENTS[route_key]

    def check_access(
        request: Request,
        user: Dict[str, Any] = Depends(get_current_user),
        supabase: Client = Depends(get_supabase),
    ) -> Dict[str, Any]:
        if needs_access_data(requirement):
            access = load_user_access(user["id"], supabase)
            evaluate_access(requirement, access)
            request.state.access = access
        return user

    return check_access


def get_request_access(request: Request, supabase: Client = Depends(get_supabase)) -> UserAccess:
    """Access data for the authenticated user; reuses what the gates already loaded."""
    access = getattr(request.state, "access", None)
    if access is None:
        access = load_user_access(request.state.user["id"], supabase)
        request.state.access = access
    return access

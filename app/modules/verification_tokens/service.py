import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from supabase import Client

from app.config.settings import settings
from app.core.exceptions import BadRequestError
from app.core.security import generate_opaque_token, token_digest
from app.modules.verification_tokens.models import VerificationPurpose

logger = logging.getLogger(__name__)


def _lifetime(purpose: VerificationPurpose) -> timedelta:
    if purpose == VerificationPurpose.PASSWORD_RESET:
        return timedelta(minutes=settings.password_reset_token_expire_minutes)
    return timedelta(minutes=settings.email_verification_token_expire_minutes)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class VerificationTokenService:
    """Single-use tokens for email verification and password reset"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def issue(self, user_id: str, purpose: VerificationPurpose) -> str:
        """Create a fresh token, replacing any outstanding one for the same purpose"""
        self.supabase.table("verification_tokens")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("purpose", purpose.value)\
            .execute()

        token = generate_opaque_token()
        expires_at = datetime.now(timezone.utc) + _lifetime(purpose)
        self.supabase.table("verification_tokens").insert({
            "user_id": user_id,
            "purpose": purpose.value,
            "token_hash": token_digest(token),
            "expires_at": expires_at.isoformat(),
        }).execute()
        logger.info(f"Issued {purpose.value} token for user {user_id}")
        return token

    def consume(self, email: str, token: str, purpose: VerificationPurpose) -> Dict[str, Any]:
        """
        Validate and burn a token.

        Returns:
            The users row the token belongs to.

        Raises:
            BadRequestError: unknown email, no matching token, or token expired.
        """
        user_result = self.supabase.table("users")\
            .select("*")\
            .eq("email", email)\
            .execute()
        if not user_result.data:
            raise BadRequestError("INVALID_VERIFICATION_TOKEN")
        user = user_result.data[0]

        # Deleting first makes the token single-use even when it turns out expired
        deleted = self.supabase.table("verification_tokens")\
            .delete()\
            .eq("user_id", user["id"])\
            .eq("purpose", purpose.value)\
            .eq("token_hash", token_digest(token))\
            .execute()
        if not deleted.data:
            raise BadRequestError("INVALID_VERIFICATION_TOKEN")

        if _parse_timestamp(deleted.data[0]["expires_at"]) <= datetime.now(timezone.utc):
            raise BadRequestError("VERIFICATION_TOKEN_EXPIRED")

        return user

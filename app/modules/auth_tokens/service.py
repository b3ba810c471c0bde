import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError
from supabase import Client

from app.config.settings import settings
from app.core.exceptions import UnauthorizedError
from app.core.security import token_digest

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenService:
    """
    Issues, validates, refreshes and revokes access/refresh token pairs.

    Tokens are signed JWTs, and every issued pair is also recorded in the
    auth_tokens table. Cryptographic validity alone is never enough: the
    access token must still have its row, and a refresh must present the
    exact pair that row was written for.
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _encode(self, user_id: str, token_type: str, expires_at: datetime) -> str:
        payload = {
            "sub": str(user_id),
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": datetime.now(timezone.utc),
            "exp": expires_at,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def _decode(self, token: str, expected_type: str, verify_exp: bool = True) -> Dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                settings.jwt_secret_key,
                algorithms=[settings.jwt_algorithm],
                options={"verify_exp": verify_exp, "require": ["exp", "sub"]},
            )
        except ExpiredSignatureError:
            raise UnauthorizedError("TOKEN_EXPIRED")
        except InvalidTokenError:
            raise UnauthorizedError("INVALID_TOKEN")
        if claims.get("type") != expected_type:
            raise UnauthorizedError("INVALID_TOKEN")
        return claims

    def issue(self, user_id: str) -> Dict[str, str]:
        """Sign a new pair for the user and persist its auth_tokens row"""
        now = datetime.now(timezone.utc)
        refresh_expires_at = now + timedelta(days=settings.refresh_token_expire_days)
        access_token = self._encode(
            user_id, ACCESS_TOKEN_TYPE, now + timedelta(minutes=settings.access_token_expire_minutes)
        )
        refresh_token = self._encode(user_id, REFRESH_TOKEN_TYPE, refresh_expires_at)

        self.supabase.table("auth_tokens").insert({
            "user_id": user_id,
            "access_token_hash": token_digest(access_token),
            "refresh_token_hash": token_digest(refresh_token),
            "refresh_expires_at": refresh_expires_at.isoformat(),
        }).execute()

        return {
            "access_token": access_token,
            "refresh_token": refresh_token,
            "token_type": "bearer",
        }

    def validate(self, access_token: str) -> str:
        """Return the user id the access token was issued to"""
        claims = self._decode(access_token, ACCESS_TOKEN_TYPE)
        result = self.supabase.table("auth_tokens")\
            .select("id, user_id")\
            .eq("access_token_hash", token_digest(access_token))\
            .execute()
        if not result.data:
            raise UnauthorizedError("TOKEN_REVOKED")
        if result.data[0]["user_id"] != claims["sub"]:
            raise UnauthorizedError("INVALID_TOKEN")
        return claims["sub"]

    def refresh_subject(self, refresh_token: str) -> str:
        """User id a valid refresh token was issued to"""
        return self._decode(refresh_token, REFRESH_TOKEN_TYPE)["sub"]

    def refresh(self, access_token: str, refresh_token: str) -> Dict[str, str]:
        """
        Rotate a pair. The access token may be expired but must carry a valid
        signature; the refresh token must be fully valid; both must belong to
        the same persisted auth_tokens row.
        """
        access_claims = self._decode(access_token, ACCESS_TOKEN_TYPE, verify_exp=False)
        refresh_claims = self._decode(refresh_token, REFRESH_TOKEN_TYPE)
        if access_claims["sub"] != refresh_claims["sub"]:
            raise UnauthorizedError("TOKEN_PAIR_MISMATCH")

        result = self.supabase.table("auth_tokens")\
            .delete()\
            .eq("access_token_hash", token_digest(access_token))\
            .eq("refresh_token_hash", token_digest(refresh_token))\
            .execute()
        if not result.data:
            logger.warning(f"Refresh rejected for user {refresh_claims['sub']}: pair not issued together or revoked")
            raise UnauthorizedError("TOKEN_PAIR_MISMATCH")

        logger.info(f"Rotated tokens for user {refresh_claims['sub']}")
        return self.issue(refresh_claims["sub"])

    def revoke(self, access_token: str) -> None:
        result = self.supabase.table("auth_tokens")\
            .delete()\
            .eq("access_token_hash", token_digest(access_token))\
            .execute()
        if not result.data:
            raise UnauthorizedError("TOKEN_REVOKED")

    def revoke_all(self, user_id: str) -> int:
        """Drop every session of a user, e.g. after a password reset"""
        result = self.supabase.table("auth_tokens")\
            .delete()\
            .eq("user_id", user_id)\
            .execute()
        return len(result.data or [])

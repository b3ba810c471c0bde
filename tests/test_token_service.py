from datetime import datetime, timedelta, timezone

import jwt
import pytest

from app.config.settings import settings
from app.core.exceptions import UnauthorizedError
from app.core.security import token_digest
from app.modules.auth_tokens.service import TokenService, ACCESS_TOKEN_TYPE

USER_ID = "7f1a54c2-3f52-4c5e-9d2a-2f9f7f7f0c11"
OTHER_USER_ID = "0b3c7c35-43a5-41a4-9c39-8dd6a4a1a0a2"


@pytest.fixture
def service(supabase):
    return TokenService(supabase)


def expired_access_token(service, user_id=USER_ID):
    return service._encode(user_id, ACCESS_TOKEN_TYPE, datetime.now(timezone.utc) - timedelta(minutes=1))


def test_issue_and_validate(service, supabase):
    tokens = service.issue(USER_ID)

    assert service.validate(tokens["access_token"]) == USER_ID
    claims = jwt.decode(tokens["access_token"], settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    assert claims["type"] == "access"
    assert claims["sub"] == USER_ID
    assert supabase.rows("auth_tokens")[0]["user_id"] == USER_ID


def test_refresh_token_is_not_an_access_token(service):
    tokens = service.issue(USER_ID)

    with pytest.raises(UnauthorizedError) as exc_info:
        service.validate(tokens["refresh_token"])

    assert exc_info.value.message == "INVALID_TOKEN"


def test_expired_access_token(service):
    with pytest.raises(UnauthorizedError) as exc_info:
        service.validate(expired_access_token(service))

    assert exc_info.value.message == "TOKEN_EXPIRED"


def test_token_signed_with_other_secret(service):
    forged = jwt.encode(
        {"sub": USER_ID, "type": "access", "exp": datetime.now(timezone.utc) + timedelta(minutes=5)},
        "another-secret-that-is-long-enough-for-hs256",
        algorithm="HS256",
    )

    with pytest.raises(UnauthorizedError) as exc_info:
        service.validate(forged)

    assert exc_info.value.message == "INVALID_TOKEN"


def test_unrecorded_token_is_rejected(service):
    access = service._encode(USER_ID, ACCESS_TOKEN_TYPE, datetime.now(timezone.utc) + timedelta(minutes=5))

    with pytest.raises(UnauthorizedError) as exc_info:
        service.validate(access)

    assert exc_info.value.message == "TOKEN_REVOKED"


def test_refresh_accepts_expired_access_token_of_the_pair(service, supabase):
    tokens = service.issue(USER_ID)
    expired = expired_access_token(service)
    # pretend the recorded access token of this pair has since expired
    supabase.rows("auth_tokens")[0]["access_token_hash"] = token_digest(expired)

    new_tokens = service.refresh(expired, tokens["refresh_token"])

    assert service.validate(new_tokens["access_token"]) == USER_ID
    assert len(supabase.rows("auth_tokens")) == 1


def test_refresh_rejects_pairs_of_different_users(service):
    mine = service.issue(USER_ID)
    theirs = service.issue(OTHER_USER_ID)

    with pytest.raises(UnauthorizedError) as exc_info:
        service.refresh(mine["access_token"], theirs["refresh_token"])

    assert exc_info.value.message == "TOKEN_PAIR_MISMATCH"


def test_revoke_twice(service):
    tokens = service.issue(USER_ID)
    service.revoke(tokens["access_token"])

    with pytest.raises(UnauthorizedError):
        service.revoke(tokens["access_token"])


def test_revoke_all(service, supabase):
    service.issue(USER_ID)
    service.issue(USER_ID)
    other = service.issue(OTHER_USER_ID)

    assert service.revoke_all(USER_ID) == 2
    assert service.validate(other["access_token"]) == OTHER_USER_ID

"""
Credential helpers: password hashing, verification and strength policy.
"""
import hashlib
import re
import secrets

from werkzeug.security import generate_password_hash, check_password_hash

from app.config.settings import settings

_SPECIAL_CHARACTERS = re.compile(r"[^A-Za-z0-9]")


def hash_password(password: str) -> str:
    return generate_password_hash(password, method=settings.password_hash_method)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return check_password_hash(password_hash, password)


def check_password_strength(password: str) -> str:
    """
    Validate a new password against the policy and return it unchanged.

    Policy: at least `password_min_length` characters with an uppercase letter,
    a lowercase letter, a digit and a special character.

    Raises:
        ValueError: with a human readable reason (pydantic turns it into a 400)
    """
    if len(password) < settings.password_min_length:
        raise ValueError(f"Password must be at least {settings.password_min_length} characters long")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain an uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain a lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain a digit")
    if not _SPECIAL_CHARACTERS.search(password):
        raise ValueError("Password must contain a special character")
    return password


def token_digest(token: str) -> str:
    """SHA-256 digest stored in place of raw tokens"""
    return hashlib.sha256(token.encode()).hexdigest()


def generate_opaque_token() -> str:
    return secrets.token_urlsafe(32)

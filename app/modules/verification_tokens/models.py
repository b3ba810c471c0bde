# Supabase table: verification_tokens
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

verification_tokens:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null)
- purpose: text (not null) - "email_verification" | "password_reset"
- token_hash: text (not null) - sha256 of the token sent by email
- expires_at: timestamptz (not null)
- created_at: timestamp (default: now())
"""
from enum import Enum


class VerificationPurpose(str, Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"

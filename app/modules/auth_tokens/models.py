# Supabase table: auth_tokens
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

auth_tokens:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null)
- access_token_hash: text (not null, unique) - sha256 of the issued access JWT
- refresh_token_hash: text (not null, unique) - sha256 of the issued refresh JWT
- refresh_expires_at: timestamptz (not null)
- created_at: timestamp (default: now())

One row per issued access/refresh pair. Logout deletes the row; refresh
rotates it. Raw tokens are never stored.
"""

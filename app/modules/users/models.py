# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

users:
- id: uuid (primary key)
- email: text (unique, not null)
- password: text (not null) - werkzeug password hash, never plaintext
- first_name: text (nullable)
- last_name: text (nullable)
- status: text (not null, default: 'unverified') - unverified | active | suspended
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Rows referencing a user (role_users, auth_tokens, verification_tokens) are
deleted before the user itself.
"""

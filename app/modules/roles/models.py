# Supabase tables: roles, role_users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# role_permissions is documented in app/modules/permissions/models.py

"""
Expected Supabase table structure:

roles:
- id: uuid (primary key)
- name: text (not null, unique) - one of admin, user, moderator, developer
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

role_users:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, not null)
- role_id: uuid (foreign key to roles.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (user_id, role_id)

Deleting a role requires its role_permissions and role_users rows to be
deleted first.
"""

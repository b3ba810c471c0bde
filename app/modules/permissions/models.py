# Supabase tables: permissions, role_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

permissions:
- id: uuid (primary key)
- action: text (not null) - one of create, read, update, delete
- module: text (not null) - one of user, role, permission, role_user, role_permission
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique constraint on (action, module)

role_permissions:
- id: uuid (primary key)
- role_id: uuid (foreign key to roles.id, not null)
- permission_id: uuid (foreign key to permissions.id, not null)
- can_do_the_action: boolean (not null, default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- unique constraint on (role_id, permission_id)

A role_permissions row with can_do_the_action = false keeps the link but
grants nothing.
"""

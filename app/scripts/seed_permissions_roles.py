"""
Seed Permissions and Roles Script
Populates permissions, system roles and the default role grants.
Safe to re-run: every step is create-or-fetch.

Usage:
    python -m app.scripts.seed_permissions_roles [--with-test-users]
"""

import argparse
import logging
import sys

from supabase import Client

from app.database.supabase_client import create_supabase_client
from app.modules.permissions.service import PermissionService
from app.modules.roles.service import RoleService
from app.modules.users.service import UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed(supabase: Client, with_test_users: bool = False) -> dict:
    """Seed permissions first, then roles (grants depend on both)"""
    role_service = RoleService(supabase)

    logger.info("Seeding permissions...")
    permissions = PermissionService(supabase).seed_permissions()

    logger.info("Seeding roles...")
    roles = role_service.seed_system_roles()
    grants = role_service.seed_default_permissions(roles)

    users = []
    if with_test_users:
        logger.info("Seeding test users...")
        users = UserService(supabase).seed_test_users(roles)

    return {
        "permissions": len(permissions),
        "roles": len(roles),
        "grants": grants,
        "users": len(users),
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed permissions, roles and default grants")
    parser.add_argument(
        "--with-test-users",
        action="store_true",
        help="also create the test-1/2/3@test.com accounts",
    )
    args = parser.parse_args(argv)

    try:
        supabase = create_supabase_client()
        logger.info("Starting permissions and roles seeding...")
        counts = seed(supabase, with_test_users=args.with_test_users)
        logger.info("Seeding completed successfully!")
        logger.info(
            f"Total: {counts['permissions']} permissions, {counts['roles']} roles, "
            f"{counts['grants']} grants, {counts['users']} test users"
        )
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

import pytest

from app.config.route_permissions import (
    ROUTE_REQUIREMENTS, AUTHENTICATED, RouteRequirement, validate_route_requirements
)
from app.core.authorization import UserAccess, evaluate_access, load_user_access, needs_access_data
from app.core.exceptions import ForbiddenError
from tests.conftest import ADMIN_EMAIL, DEVELOPER_EMAIL, role_id_by_name, user_id_by_email

STAFF_READ = RouteRequirement(roles=frozenset({"admin", "developer"}), permission="user.read")


def access(roles=(), permissions=()):
    return UserAccess(user_id="u1", roles=frozenset(roles), permissions=frozenset(permissions))


def test_authenticated_only_requirement_needs_no_lookup():
    assert not needs_access_data(AUTHENTICATED)
    evaluate_access(AUTHENTICATED, access())


def test_role_gate_runs_before_permission_gate():
    with pytest.raises(ForbiddenError) as exc_info:
        evaluate_access(STAFF_READ, access(roles={"moderator"}, permissions={"user.read"}))

    assert exc_info.value.message == "FORBIDDEN_ROLE"


def test_permission_gate():
    with pytest.raises(ForbiddenError) as exc_info:
        evaluate_access(STAFF_READ, access(roles={"developer"}, permissions={"role.read"}))

    assert exc_info.value.message == "FORBIDDEN_PERMISSION"


def test_any_listed_role_passes():
    evaluate_access(STAFF_READ, access(roles={"user", "developer"}, permissions={"user.read"}))


def test_permission_without_roles():
    requirement = RouteRequirement(permission="role.read")

    evaluate_access(requirement, access(permissions={"role.read"}))
    with pytest.raises(ForbiddenError):
        evaluate_access(requirement, access(roles={"admin"}))


def test_route_table_is_valid():
    validate_route_requirements(ROUTE_REQUIREMENTS)


def test_unknown_permission_in_route_table():
    with pytest.raises(ValueError):
        validate_route_requirements({"broken": RouteRequirement(permission="user.fly")})


def test_unknown_role_in_route_table():
    with pytest.raises(ValueError):
        validate_route_requirements({"broken": RouteRequirement(roles=frozenset({"root"}))})


def test_load_user_access_unions_roles(supabase, seeded):
    loaded = load_user_access(user_id_by_email(supabase, DEVELOPER_EMAIL), supabase)

    assert loaded.roles == {"developer", "user"}
    assert loaded.permissions == {"user.read", "role.read", "permission.read"}
    assert role_id_by_name(supabase, "developer") in loaded.role_ids


def test_load_user_access_skips_disabled_grants(supabase, seeded):
    for link in supabase.rows("role_permissions"):
        link["can_do_the_action"] = False

    loaded = load_user_access(user_id_by_email(supabase, ADMIN_EMAIL), supabase)

    assert loaded.roles == {"admin", "user"}
    assert loaded.permissions == frozenset()

"""
Tests for the role permission matrix and the authorization gate.
"""

import pytest
from fleetflow.app.core.permissions import (
    ROLE_PERMISSIONS, is_allowed, get_viewable_modules, get_role_label, describe_role
)
from fleetflow.app.core.guards import ensure_allowed
from fleetflow.app.core.exceptions import InsufficientPermissionsError
from fleetflow.app.models.enums import UserRole, PermissionModule as M, PermissionAction as A

NO_DELETE = {A.VIEW, A.CREATE, A.EDIT}

EXPECTED = {
    UserRole.MANAGER: {
        M.DASHBOARD: {A.VIEW},
        M.VEHICLES: set(A),
        M.TRIPS: set(A),
        M.MAINTENANCE: set(A),
        M.EXPENSES: set(A),
        M.DRIVERS: set(A),
        M.ANALYTICS: {A.VIEW},
    },
    UserRole.DISPATCHER: {
        M.DASHBOARD: {A.VIEW},
        M.VEHICLES: NO_DELETE,
        M.TRIPS: NO_DELETE,
        M.DRIVERS: {A.VIEW},
    },
    UserRole.SAFETY_OFFICER: {
        M.DASHBOARD: {A.VIEW},
        M.VEHICLES: NO_DELETE,
        M.TRIPS: {A.VIEW},
        M.MAINTENANCE: NO_DELETE,
        M.DRIVERS: NO_DELETE,
    },
    UserRole.ANALYST: {
        M.DASHBOARD: {A.VIEW},
        M.VEHICLES: {A.VIEW},
        M.TRIPS: {A.VIEW},
        M.EXPENSES: NO_DELETE,
        M.ANALYTICS: {A.VIEW},
    },
}


@pytest.mark.parametrize("role", list(UserRole))
def test_matrix_matches_role_capabilities(role):
    for module in M:
        allowed = EXPECTED[role].get(module, set())
        for action in A:
            assert is_allowed(role, module, action) == (action in allowed), (role, module, action)


@pytest.mark.parametrize("role", [UserRole.DISPATCHER, UserRole.SAFETY_OFFICER, UserRole.ANALYST])
def test_modules_outside_role_deny_every_action(role):
    hidden = [m for m in M if m not in EXPECTED[role]]
    assert hidden
    for module in hidden:
        assert not any(is_allowed(role, module, action) for action in A)


def test_only_manager_can_delete():
    for role in UserRole:
        for module in M:
            if is_allowed(role, module, A.DELETE):
                assert role == UserRole.MANAGER


def test_raw_strings_are_accepted():
    assert is_allowed("dispatcher", "trips", "create") is True
    assert is_allowed("analyst", "expenses", "delete") is False


@pytest.mark.parametrize("role,module,action", [
    ("driver", "trips", "view"),
    ("manager", "billing", "view"),
    ("manager", "vehicles", "archive"),
    (None, "vehicles", "view"),
    ("", "", ""),
])
def test_unknown_values_fail_closed(role, module, action):
    assert is_allowed(role, module, action) is False


def test_matrix_is_read_only():
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS[UserRole.ANALYST] = {}
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS[UserRole.ANALYST][M.MAINTENANCE] = frozenset(A)
    with pytest.raises(AttributeError):
        ROLE_PERMISSIONS[UserRole.DISPATCHER][M.TRIPS].add(A.DELETE)


def test_viewable_modules_and_labels():
    assert get_viewable_modules(UserRole.DISPATCHER) == [M.DASHBOARD, M.VEHICLES, M.TRIPS, M.DRIVERS]
    assert get_viewable_modules("nobody") == []
    assert get_role_label("safety_officer") == "Safety Officer"

    grid = describe_role(UserRole.ANALYST)
    assert grid["expenses"] == {"view": True, "create": True, "edit": True, "delete": False}
    assert grid["drivers"] == {"view": False, "create": False, "edit": False, "delete": False}


def test_gate_raises_for_denied_action():
    user = {"user_id": 7, "role": "dispatcher"}
    ensure_allowed(user, M.TRIPS, A.CREATE)

    with pytest.raises(InsufficientPermissionsError) as exc_info:
        ensure_allowed(user, M.MAINTENANCE, A.CREATE)

    assert exc_info.value.status_code == 403
    assert exc_info.value.details["module"] == "maintenance"


def test_gate_denies_missing_role():
    with pytest.raises(InsufficientPermissionsError):
        ensure_allowed({"user_id": 1}, M.DASHBOARD, A.VIEW)

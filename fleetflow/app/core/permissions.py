"""
Role permission matrix.

Static table mapping role -> module -> allowed actions. It is built once at
import time and exposed read-only; nothing mutates it at runtime. The same
table is served to the web client, but the client copy is advisory only:
every request is re-checked here through the authorization gate.
"""

from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Union

from fleetflow.app.models.enums import UserRole, PermissionModule, PermissionAction

Module = PermissionModule
Action = PermissionAction

_ALL = frozenset(Action)
_NO_DELETE = frozenset({Action.VIEW, Action.CREATE, Action.EDIT})
_VIEW = frozenset({Action.VIEW})
_NONE: FrozenSet[PermissionAction] = frozenset()


def _freeze(table: Dict[UserRole, Dict[PermissionModule, FrozenSet[PermissionAction]]]):
    return MappingProxyType({
        role: MappingProxyType(dict(modules))
        for role, modules in table.items()
    })


ROLE_PERMISSIONS: Mapping[UserRole, Mapping[PermissionModule, FrozenSet[PermissionAction]]] = _freeze({
    UserRole.MANAGER: {
        Module.DASHBOARD: _VIEW,
        Module.VEHICLES: _ALL,
        Module.TRIPS: _ALL,
        Module.MAINTENANCE: _ALL,
        Module.EXPENSES: _ALL,
        Module.DRIVERS: _ALL,
        Module.ANALYTICS: _VIEW,
    },
    UserRole.DISPATCHER: {
        Module.DASHBOARD: _VIEW,
        Module.VEHICLES: _NO_DELETE,
        Module.TRIPS: _NO_DELETE,
        Module.MAINTENANCE: _NONE,
        Module.EXPENSES: _NONE,
        Module.DRIVERS: _VIEW,
        Module.ANALYTICS: _NONE,
    },
    UserRole.SAFETY_OFFICER: {
        Module.DASHBOARD: _VIEW,
        Module.VEHICLES: _NO_DELETE,
        Module.TRIPS: _VIEW,
        Module.MAINTENANCE: _NO_DELETE,
        Module.EXPENSES: _NONE,
        Module.DRIVERS: _NO_DELETE,
        Module.ANALYTICS: _NONE,
    },
    UserRole.ANALYST: {
        Module.DASHBOARD: _VIEW,
        Module.VEHICLES: _VIEW,
        Module.TRIPS: _VIEW,
        Module.MAINTENANCE: _NONE,
        Module.EXPENSES: _NO_DELETE,
        Module.DRIVERS: _NONE,
        Module.ANALYTICS: _VIEW,
    },
})

ROLE_LABELS: Mapping[UserRole, str] = MappingProxyType({
    UserRole.MANAGER: "Fleet Manager",
    UserRole.DISPATCHER: "Dispatcher",
    UserRole.SAFETY_OFFICER: "Safety Officer",
    UserRole.ANALYST: "Financial Analyst",
})


def _coerce(enum_cls, value):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


def is_allowed(
    role: Union[UserRole, str, None],
    module: Union[PermissionModule, str, None],
    action: Union[PermissionAction, str, None] = Action.VIEW,
) -> bool:
    """
    Check whether ``role`` may perform ``action`` on ``module``.

    Unknown roles, modules or actions are denied.
    """
    role = _coerce(UserRole, role)
    module = _coerce(PermissionModule, module)
    action = _coerce(PermissionAction, action)
    if role is None or module is None or action is None:
        return False
    return action in ROLE_PERMISSIONS[role].get(module, _NONE)


def get_viewable_modules(role: Union[UserRole, str]) -> List[PermissionModule]:
    """Modules the role can open at all, in menu order."""
    return [module for module in PermissionModule if is_allowed(role, module, Action.VIEW)]


def get_role_label(role: Union[UserRole, str]) -> str:
    coerced = _coerce(UserRole, role)
    if coerced is None:
        return str(role)
    return ROLE_LABELS[coerced]


def describe_role(role: Union[UserRole, str]) -> Dict[str, Dict[str, bool]]:
    """
    Full capability grid for one role, shaped for the web client:
    ``{"vehicles": {"view": True, "create": True, ...}, ...}``.
    """
    return {
        module.value: {action.value: is_allowed(role, module, action) for action in PermissionAction}
        for module in PermissionModule
    }

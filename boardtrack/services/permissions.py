# boardtrack/services/permissions.py
"""
Declarative role permissions.

Every role-dependent decision lives in the maps below: which operations
a role may call, which board fields it may touch through direct edit,
and which affiliation field a user of that role must carry. Routers ask
``require_permission`` instead of branching on roles themselves.
"""

from typing import Dict, FrozenSet, Optional

from ..errors import PermissionDeniedError, ValidationError
from ..models.enums import UserRole

# operations
DASHBOARD_VIEW = "dashboard:view"
BOARDS_READ = "boards:read"
BOARDS_WRITE = "boards:write"
BOARDS_EDIT = "boards:edit"
BOARDS_DELETE = "boards:delete"
SERVICE_REQUEST = "service:request"
SERVICE_UPDATE = "service:update"
INWARD_PROCESS = "inward:process"
MASTER_WRITE = "master:write"
USERS_MANAGE = "users:manage"
REPORTS_VIEW = "reports:view"
REPORTS_EXPORT = "reports:export"
DATA_BACKUP = "data:backup"

_READ_ONLY = frozenset({DASHBOARD_VIEW, BOARDS_READ, REPORTS_VIEW})

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.ADMIN: _READ_ONLY | {
        BOARDS_WRITE,
        BOARDS_EDIT,
        BOARDS_DELETE,
        SERVICE_REQUEST,
        SERVICE_UPDATE,
        INWARD_PROCESS,
        MASTER_WRITE,
        USERS_MANAGE,
        REPORTS_EXPORT,
        DATA_BACKUP,
    },
    UserRole.MILL_SUPERVISOR: _READ_ONLY | {
        BOARDS_WRITE,
        BOARDS_EDIT,
        SERVICE_REQUEST,
        INWARD_PROCESS,
        REPORTS_EXPORT,
    },
    UserRole.SERVICE_PARTNER: _READ_ONLY | {
        BOARDS_EDIT,
        SERVICE_UPDATE,
        INWARD_PROCESS,
        REPORTS_EXPORT,
    },
    UserRole.VIEWER: _READ_ONLY,
}

# None means "every field"
EDITABLE_BOARD_FIELDS: Dict[UserRole, Optional[FrozenSet[str]]] = {
    UserRole.ADMIN: None,
    UserRole.MILL_SUPERVISOR: frozenset({"current_status", "current_location", "substitute_board"}),
    UserRole.SERVICE_PARTNER: frozenset({"current_status"}),
    UserRole.VIEWER: frozenset(),
}

AFFILIATION_FIELD: Dict[UserRole, Optional[str]] = {
    UserRole.ADMIN: None,
    UserRole.MILL_SUPERVISOR: "mill",
    UserRole.SERVICE_PARTNER: "service_partner",
    UserRole.VIEWER: None,
}

# Human-readable summaries shown on the user management screen
ROLE_DESCRIPTIONS: Dict[UserRole, list] = {
    UserRole.ADMIN: [
        "Full system access",
        "User management",
        "Master data management",
        "All reports and analytics",
        "System configuration",
    ],
    UserRole.MILL_SUPERVISOR: [
        "Create service requests",
        "View board status",
        "Mill-specific reports",
        "Update board information",
    ],
    UserRole.SERVICE_PARTNER: [
        "Update service status",
        "View assigned boards",
        "Service reports",
        "Update repair progress",
    ],
    UserRole.VIEWER: [
        "View-only access",
        "Basic reports",
        "Dashboard viewing",
    ],
}


def has_permission(role: UserRole, operation: str) -> bool:
    return operation in ROLE_PERMISSIONS.get(role, frozenset())


def check_permission(role: UserRole, operation: str) -> None:
    if not has_permission(role, operation):
        raise PermissionDeniedError(
            f"Role '{role.value}' is not allowed to perform '{operation}'",
            role=role.value,
            operation=operation,
        )


def editable_board_fields(role: UserRole) -> Optional[FrozenSet[str]]:
    return EDITABLE_BOARD_FIELDS.get(role, frozenset())


def check_affiliation(role: UserRole, mill: Optional[str], service_partner: Optional[str]) -> Dict[str, Optional[str]]:
    """
    Validate the role-specific affiliation and drop the one that does not
    apply. Returns the cleaned ``{"mill": ..., "service_partner": ...}``.
    """
    values = {"mill": mill, "service_partner": service_partner}
    required = AFFILIATION_FIELD.get(role)
    if required and not values[required]:
        raise ValidationError(f"{required} is required for role '{role.value}'", field=required)
    return {k: (v if k == required else None) for k, v in values.items()}


def permissions_matrix() -> Dict[str, dict]:
    return {
        role.value: {
            "operations": sorted(ROLE_PERMISSIONS[role]),
            "editable_board_fields": (
                "all" if EDITABLE_BOARD_FIELDS[role] is None else sorted(EDITABLE_BOARD_FIELDS[role])
            ),
            "affiliation": AFFILIATION_FIELD[role],
            "description": ROLE_DESCRIPTIONS[role],
        }
        for role in UserRole
    }

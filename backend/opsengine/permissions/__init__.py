# Overview: Capability catalog package.

from .categories import PermissionCategory
from .definitions import (
    Capability,
    PERMISSION_DEFINITIONS,
    DASHBOARD_PERMISSIONS,
    INVENTORY_PERMISSIONS,
    ATTENDANCE_PERMISSIONS,
    PURCHASING_PERMISSIONS,
    NOTIFICATION_PERMISSIONS,
    ADMINISTRATION_PERMISSIONS,
    INVOICE_PERMISSIONS,
)
from .roles import DEFAULT_ROLE_PERMISSIONS, FULL_ACCESS_ROLES, ROLE_DESCRIPTIONS
from .helpers import (
    catalog,
    full_permission_map,
    get_all_permission_codes,
    get_permission_definition,
    validate_permission_code,
)

__all__ = [
    "Capability",
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "DASHBOARD_PERMISSIONS",
    "INVENTORY_PERMISSIONS",
    "ATTENDANCE_PERMISSIONS",
    "PURCHASING_PERMISSIONS",
    "NOTIFICATION_PERMISSIONS",
    "ADMINISTRATION_PERMISSIONS",
    "INVOICE_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "FULL_ACCESS_ROLES",
    "ROLE_DESCRIPTIONS",
    "catalog",
    "full_permission_map",
    "get_all_permission_codes",
    "get_permission_definition",
    "validate_permission_code",
]

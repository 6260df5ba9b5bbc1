# Overview: Default role definitions seeded at provisioning time.

from .definitions import Capability

# Roles flagged full access imply every capability and cannot be edited.
FULL_ACCESS_ROLES = ["Chairwoman", "Managing Director", "CEO"]

DEFAULT_ROLE_PERMISSIONS = {
    "Supervisor": [
        Capability.VIEW_DASHBOARD,
        Capability.VIEW_INVENTORY,
        Capability.MANAGE_INVENTORY,
        Capability.UPDATE_INVENTORY,
        Capability.VIEW_ATTENDANCE,
        Capability.MANAGE_ATTENDANCE,
        Capability.CREATE_PURCHASE_REQUEST,
        Capability.SUPERVISE_PURCHASE_REQUEST,
        Capability.VIEW_NOTIFICATIONS,
        Capability.CONFIGURE_THRESHOLDS,
    ],
    "Staff": [
        Capability.VIEW_DASHBOARD,
        Capability.VIEW_INVENTORY,
        Capability.UPDATE_INVENTORY,
        Capability.VIEW_ATTENDANCE,
        Capability.CREATE_PURCHASE_REQUEST,
        Capability.VIEW_NOTIFICATIONS,
    ],
}

ROLE_DESCRIPTIONS = {
    "Chairwoman": "Board chair; full access",
    "Managing Director": "Full access",
    "CEO": "Executive approver; full access",
    "Supervisor": "Floor supervisor; first-stage purchase review",
    "Staff": "Default role for new employees",
}

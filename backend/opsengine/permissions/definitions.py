# Overview: All capability definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


class Capability:
    """Closed catalog of capability codes; call sites use these names."""
    VIEW_DASHBOARD = "VIEW_DASHBOARD"
    VIEW_INVENTORY = "VIEW_INVENTORY"
    MANAGE_INVENTORY = "MANAGE_INVENTORY"
    UPDATE_INVENTORY = "UPDATE_INVENTORY"
    CONFIGURE_THRESHOLDS = "CONFIGURE_THRESHOLDS"
    VIEW_ATTENDANCE = "VIEW_ATTENDANCE"
    MANAGE_ATTENDANCE = "MANAGE_ATTENDANCE"
    CREATE_PURCHASE_REQUEST = "CREATE_PURCHASE_REQUEST"
    SUPERVISE_PURCHASE_REQUEST = "SUPERVISE_PURCHASE_REQUEST"
    APPROVE_PURCHASE_REQUEST = "APPROVE_PURCHASE_REQUEST"
    VIEW_NOTIFICATIONS = "VIEW_NOTIFICATIONS"
    MANAGE_NOTIFICATIONS = "MANAGE_NOTIFICATIONS"  # reserved, no gate yet
    MANAGE_ROLES = "MANAGE_ROLES"
    # Reserved, no gate yet
    VIEW_INVOICES = "VIEW_INVOICES"
    MANAGE_INVOICES = "MANAGE_INVOICES"


# -- DASHBOARD --

DASHBOARD_PERMISSIONS = [
    (
        Capability.VIEW_DASHBOARD,
        "View Dashboard",
        "View totals, movement trend and low-stock summary",
        PermissionCategory.DASHBOARD,
    ),
]


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        Capability.VIEW_INVENTORY,
        "View Inventory",
        "View items, stock levels and the transaction log",
        PermissionCategory.INVENTORY,
    ),
    (
        Capability.MANAGE_INVENTORY,
        "Manage Inventory",
        "Create catalogue items",
        PermissionCategory.INVENTORY,
    ),
    (
        Capability.UPDATE_INVENTORY,
        "Update Inventory",
        "Scan stock IN and OUT through the ledger",
        PermissionCategory.INVENTORY,
    ),
    (
        Capability.CONFIGURE_THRESHOLDS,
        "Configure Thresholds",
        "Change low-stock thresholds",
        PermissionCategory.INVENTORY,
    ),
]


# -- ATTENDANCE --

ATTENDANCE_PERMISSIONS = [
    (
        Capability.VIEW_ATTENDANCE,
        "View Attendance",
        "View attendance records (own records unless managing)",
        PermissionCategory.ATTENDANCE,
    ),
    (
        Capability.MANAGE_ATTENDANCE,
        "Manage Attendance",
        "Record attendance for any employee and view all records",
        PermissionCategory.ATTENDANCE,
    ),
]


# -- PURCHASING --

PURCHASING_PERMISSIONS = [
    (
        Capability.CREATE_PURCHASE_REQUEST,
        "Create Purchase Request",
        "Submit purchase requests",
        PermissionCategory.PURCHASING,
    ),
    (
        Capability.SUPERVISE_PURCHASE_REQUEST,
        "Supervise Purchase Requests",
        "Approve or reject requests at the supervisor stage",
        PermissionCategory.PURCHASING,
    ),
    (
        Capability.APPROVE_PURCHASE_REQUEST,
        "Approve Purchase Requests",
        "Approve or reject requests at the executive stage",
        PermissionCategory.PURCHASING,
    ),
]


# -- NOTIFICATIONS --

NOTIFICATION_PERMISSIONS = [
    (
        Capability.VIEW_NOTIFICATIONS,
        "View Notifications",
        "Read the notification feed and mark entries read",
        PermissionCategory.NOTIFICATIONS,
    ),
    (
        Capability.MANAGE_NOTIFICATIONS,
        "Manage Notifications",
        "Administer notifications",
        PermissionCategory.NOTIFICATIONS,
    ),
]


# -- ADMINISTRATION --

ADMINISTRATION_PERMISSIONS = [
    (
        Capability.MANAGE_ROLES,
        "Manage Roles",
        "Edit role capabilities and provision employees",
        PermissionCategory.ADMINISTRATION,
    ),
]


# -- INVOICES --

INVOICE_PERMISSIONS = [
    (
        Capability.VIEW_INVOICES,
        "View Invoices",
        "View issued invoices",
        PermissionCategory.INVOICES,
    ),
    (
        Capability.MANAGE_INVOICES,
        "Manage Invoices",
        "Issue and edit invoices",
        PermissionCategory.INVOICES,
    ),
]


PERMISSION_DEFINITIONS = (
    DASHBOARD_PERMISSIONS
    + INVENTORY_PERMISSIONS
    + ATTENDANCE_PERMISSIONS
    + PURCHASING_PERMISSIONS
    + NOTIFICATION_PERMISSIONS
    + ADMINISTRATION_PERMISSIONS
    + INVOICE_PERMISSIONS
)

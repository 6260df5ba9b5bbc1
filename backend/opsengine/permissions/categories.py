# Overview: Permission category constants for grouping related capabilities.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    DASHBOARD = "DASHBOARD"
    INVENTORY = "INVENTORY"
    ATTENDANCE = "ATTENDANCE"
    PURCHASING = "PURCHASING"
    NOTIFICATIONS = "NOTIFICATIONS"
    ADMINISTRATION = "ADMINISTRATION"
    INVOICES = "INVOICES"

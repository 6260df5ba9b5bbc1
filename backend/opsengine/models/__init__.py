from .auth import Role, Employee
from .inventory import InventoryItem, InventoryTransaction
from .purchasing import PurchaseRequest, PurchaseRequestLine, PurchaseRequestEvent
from .attendance import AttendanceRecord
from .communications import Notification

__all__ = [
    'Role', 'Employee',
    'InventoryItem', 'InventoryTransaction',
    'PurchaseRequest', 'PurchaseRequestLine', 'PurchaseRequestEvent',
    'AttendanceRecord',
    'Notification',
]

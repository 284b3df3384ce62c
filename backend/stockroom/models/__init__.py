from .auth import User, UserPermission, SessionToken
from .security import SecurityEvent
from .catalog import Supplier, Product
from .invoices import Invoice, InvoiceItem
from .purchasing import PurchaseOrder, PurchaseOrderItem
from .inventory import StockMovement, LowStockAlert, FraudAlert

__all__ = [
    'User', 'UserPermission', 'SessionToken', 'SecurityEvent',
    'Supplier', 'Product',
    'Invoice', 'InvoiceItem',
    'PurchaseOrder', 'PurchaseOrderItem',
    'StockMovement', 'LowStockAlert', 'FraudAlert',
]

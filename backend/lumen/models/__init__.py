from .auth import User, SessionToken
from .inventory import Product, InventoryRecord, StockAdjustment, ADJUSTMENT_TYPES
from .sales import Sale, SALE_STATUSES
from . import guards  # noqa: F401  (registers ledger integrity listeners)

__all__ = [
    'User', 'SessionToken',
    'Product', 'InventoryRecord', 'StockAdjustment', 'ADJUSTMENT_TYPES',
    'Sale', 'SALE_STATUSES',
]

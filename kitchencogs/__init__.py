"""
kitchenCOGS Core Package

Inventory reconciliation for a single-location kitchen: catalog, stock
ledger, order-driven usage, daily summary and low-stock alerts.
No framework dependencies (FastAPI) in this package.
"""

__version__ = "0.1.0"

from kitchencogs.models.common import Kind, MovementType, Unit
from kitchencogs.models.inventory import CatalogItem, Movement, StockEntry
from kitchencogs.models.orders import Order, OrderLineItem
from kitchencogs.models.summary import InventorySummary, SummaryRow

__all__ = [
    "Kind",
    "Unit",
    "MovementType",
    "CatalogItem",
    "StockEntry",
    "Movement",
    "Order",
    "OrderLineItem",
    "InventorySummary",
    "SummaryRow",
]

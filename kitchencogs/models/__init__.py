"""Data models for kitchenCOGS."""

from kitchencogs.models.common import Kind, MovementType, OrderChannel, SideEffectResult, Unit
from kitchencogs.models.inventory import (
    CatalogItem,
    CatalogItemCreate,
    CatalogItemUpdate,
    Movement,
    StockAddRequest,
    StockEntry,
    StockEntryUpdate,
)
from kitchencogs.models.orders import Order, OrderLineItem
from kitchencogs.models.summary import InventorySummary, LowStockAlert, SummaryRow

__all__ = [
    # Common
    "Kind",
    "Unit",
    "MovementType",
    "OrderChannel",
    "SideEffectResult",
    # Inventory
    "CatalogItem",
    "CatalogItemCreate",
    "CatalogItemUpdate",
    "StockEntry",
    "StockAddRequest",
    "StockEntryUpdate",
    "Movement",
    # Orders
    "Order",
    "OrderLineItem",
    # Summary
    "SummaryRow",
    "InventorySummary",
    "LowStockAlert",
]

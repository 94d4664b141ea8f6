"""
kitchenCOGS Business Logic Services

Pure functions for naming, resolution, aggregation and summaries; the
InventoryService facade adds storage and alerting on top.
"""

from kitchencogs.services.alias_resolver import AliasMap, build_alias_map
from kitchencogs.services.clock import ShopClock
from kitchencogs.services.consumption import ConsumptionTotals, aggregate_consumption
from kitchencogs.services.inventory_service import InventoryService
from kitchencogs.services.low_stock_monitor import AlertRules, LowStockRule, default_rules
from kitchencogs.services.notifier import EmailNotifier, NullNotifier
from kitchencogs.services.summary_builder import build_summary

__all__ = [
    "AliasMap",
    "build_alias_map",
    "ShopClock",
    "ConsumptionTotals",
    "aggregate_consumption",
    "build_summary",
    "AlertRules",
    "LowStockRule",
    "default_rules",
    "EmailNotifier",
    "NullNotifier",
    "InventoryService",
]

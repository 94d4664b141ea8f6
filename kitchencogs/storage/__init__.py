"""Data storage layer."""

from kitchencogs.storage.sqlite_repo import (
    get_connection,
    init_database,
    list_orders_between,
    save_order,
)

__all__ = [
    "get_connection",
    "init_database",
    "save_order",
    "list_orders_between",
]

"""
Inventory API endpoints.

Handlers are plain functions: the service does blocking SQLite and SMTP
work, so FastAPI runs them in its threadpool instead of on the event loop.
"""

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_inventory_service
from kitchencogs.models.inventory import (
    CatalogItemCreate,
    CatalogItemUpdate,
    StockAddRequest,
    StockEntryUpdate,
)
from kitchencogs.services.inventory_service import InventoryService

router = APIRouter()


# =============================================================================
# Catalog Endpoints
# =============================================================================

@router.get("/items")
def list_items(service: InventoryService = Depends(get_inventory_service)):
    """List catalog items sorted by kind, then name."""
    items = service.list_items()
    return {"items": [i.model_dump(mode="json") for i in items]}


@router.post("/items")
def create_item(
    request: CatalogItemCreate,
    service: InventoryService = Depends(get_inventory_service),
):
    """Create or upsert a catalog item by slug; initial_qty adds a same-day stock entry."""
    item = service.create_item(request)
    return item.model_dump(mode="json")


@router.patch("/items/{item_id}")
def edit_item(
    item_id: str,
    patch: CatalogItemUpdate,
    service: InventoryService = Depends(get_inventory_service),
):
    """Edit name/kind/unit. Renaming re-slugs and moves existing stock entries."""
    item = service.edit_item(item_id, patch)
    return item.model_dump(mode="json")


@router.delete("/items/{item_id}")
def delete_item(
    item_id: str,
    service: InventoryService = Depends(get_inventory_service),
):
    """Delete an item and its stock entries."""
    removed = service.delete_item(item_id)
    return {"ok": True, "stock_entries_removed": removed}


# =============================================================================
# Stock Endpoints
# =============================================================================

@router.get("/stock")
def list_stock(service: InventoryService = Depends(get_inventory_service)):
    """Today's stock entries, newest first."""
    entries = service.list_today_stock()
    return {"entries": [e.model_dump(mode="json") for e in entries]}


@router.post("/stock")
def add_stock(
    request: StockAddRequest,
    service: InventoryService = Depends(get_inventory_service),
):
    """Add stock by item_id, slug or free-text sku. Unknown skus are auto-created."""
    entry = service.add_stock(request)
    return entry.model_dump(mode="json")


@router.patch("/stock/{entry_id}")
def edit_stock(
    entry_id: str,
    patch: StockEntryUpdate,
    service: InventoryService = Depends(get_inventory_service),
):
    entry = service.edit_stock_entry(entry_id, patch)
    return entry.model_dump(mode="json")


@router.delete("/stock/{entry_id}")
def delete_stock(
    entry_id: str,
    service: InventoryService = Depends(get_inventory_service),
):
    service.delete_stock_entry(entry_id)
    return {"ok": True}


@router.post("/reset")
def reset_day(service: InventoryService = Depends(get_inventory_service)):
    """Clear today's stock entries."""
    removed = service.reset_day()
    return {"ok": True, "stock_entries_removed": removed}


# =============================================================================
# Movements & Summary
# =============================================================================

@router.get("/movements")
def list_movements(
    limit: int = Query(50, description="Clamped to 1..200"),
    service: InventoryService = Depends(get_inventory_service),
):
    """Today's audit movements plus stock additions, newest first."""
    movements = service.list_movements(limit)
    return {"items": [m.model_dump(mode="json") for m in movements]}


@router.get("/summary")
def get_summary(service: InventoryService = Depends(get_inventory_service)):
    """
    Today's added / used / remaining per item.

    Also evaluates low-stock alerts; alerting problems never fail this call.
    """
    summary = service.get_summary()
    return summary.to_response()

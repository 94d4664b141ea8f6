"""
Inventory Data Models

Catalog items, stock ledger entries and audit movements.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from kitchencogs.models.common import Kind, MovementType, Unit


# ============================================================================
# Catalog
# ============================================================================

class CatalogItem(BaseModel):
    """A trackable SKU."""

    id: str = Field(..., description="Catalog identifier")
    name: str = Field(..., description="Display name as entered by staff")
    slug: str = Field(..., description="Canonical normalized name, unique")
    kind: Kind
    unit: Unit
    aliases: List[str] = Field(default_factory=list, description="Alternate spellings")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CatalogItemCreate(BaseModel):
    """Create-or-upsert request for a catalog item."""

    sku: str = Field(..., min_length=1, description="Display name; the slug is derived from it")
    kind: Kind
    unit: Unit
    aliases: List[str] = Field(default_factory=list)
    initial_qty: Optional[float] = Field(default=None, ge=0, description="Optional same-day stock entry")

    @field_validator("sku")
    @classmethod
    def strip_sku(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("sku must not be blank")
        return v


class CatalogItemUpdate(BaseModel):
    """Patch for a catalog item. Omitted fields are left unchanged."""

    name: Optional[str] = None
    kind: Optional[Kind] = None
    unit: Optional[Unit] = None
    aliases: Optional[List[str]] = None


# ============================================================================
# Stock ledger
# ============================================================================

class StockEntry(BaseModel):
    """One stock addition event."""

    id: str
    slug: str
    display_name: str = Field(..., description="Item name at the time of entry")
    unit: Unit
    quantity: float = Field(..., ge=0)
    day_key: str = Field(..., description="Shop-local YYYY-MM-DD")
    note: str = ""
    created_at: datetime
    updated_at: datetime


class StockAddRequest(BaseModel):
    """Restock request. At least one of item_id, slug or sku is required."""

    item_id: Optional[str] = None
    slug: Optional[str] = None
    sku: Optional[str] = None
    qty: float
    note: str = ""
    kind: Optional[Kind] = None
    unit: Optional[Unit] = None


class StockEntryUpdate(BaseModel):
    """Patch for a stock entry."""

    qty: Optional[float] = None
    note: Optional[str] = None


# ============================================================================
# Audit
# ============================================================================

class Movement(BaseModel):
    """Append-only audit record."""

    id: str
    type: MovementType
    sku: str
    slug: str
    unit: Unit
    note: str = ""
    day_key: str
    created_at: datetime

"""Daily summary models."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from kitchencogs.models.common import Kind, Unit


class SummaryRow(BaseModel):
    """Added / used / remaining for one item on one shop-local day."""

    id: Optional[str] = Field(default=None, description="Catalog id; None for unconfigured rows")
    sku: str
    slug: str
    unit: Unit
    kind: Kind
    added: float = 0.0
    used: float = 0.0
    remaining: float = 0.0

    # Slug seen in usage or stock with no catalog entry
    configured: bool = True
    # Closest catalog slug for an unconfigured row, if any
    suggestion: Optional[str] = None
    # Extra/half portion usage, shown for information only
    extra: bool = False


class InventorySummary(BaseModel):
    """Summary rows grouped by kind."""

    day_key: str
    food: List[SummaryRow] = Field(default_factory=list)
    drinks: List[SummaryRow] = Field(default_factory=list)
    proteins: List[SummaryRow] = Field(default_factory=list)

    def all_rows(self) -> List[SummaryRow]:
        return [*self.food, *self.drinks, *self.proteins]

    def to_response(self) -> Dict[str, list]:
        return {
            "day_key": self.day_key,
            "food": [r.model_dump(mode="json") for r in self.food],
            "drinks": [r.model_dump(mode="json") for r in self.drinks],
            "proteins": [r.model_dump(mode="json") for r in self.proteins],
        }


class LowStockAlert(BaseModel):
    """A low-stock alert that won the daily gate."""

    slug: str
    sku: str
    unit: Unit
    remaining: float
    rule: str
    emailed: bool = False

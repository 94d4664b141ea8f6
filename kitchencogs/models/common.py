"""Common types used across the inventory system."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

# ============================================================================
# Closed Enums
# ============================================================================

class Kind(str, Enum):
    """Category of a stock item."""
    FOOD = "food"
    DRINK = "drink"
    PROTEIN = "protein"


class Unit(str, Enum):
    """Measurement basis of a stock item."""
    GRAM = "gram"
    PIECE = "piece"


class MovementType(str, Enum):
    """Audit movement types."""
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    RESET = "reset"
    ADD = "add"
    EDIT_STOCK = "edit_stock"
    DELETE_STOCK = "delete_stock"
    LOW_STOCK = "low_stock"


class OrderChannel(str, Enum):
    """Order intake channels."""
    ONLINE = "online"
    INSTORE = "instore"
    CHOWDECK = "chowdeck"


# ============================================================================
# Side-effect results
# ============================================================================

@dataclass
class SideEffectResult:
    """Outcome of a best-effort side effect (email, audit write)."""
    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "SideEffectResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: str) -> "SideEffectResult":
        return cls(ok=False, error=error)

"""Typed failures raised by the inventory services."""

from typing import Any, Dict, Optional


class InventoryError(Exception):
    """Base class for inventory errors."""

    code = "INVENTORY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInputError(InventoryError):
    """Missing field, bad quantity or bad enum. Raised before any write."""

    code = "VALIDATION_ERROR"


class ConflictError(InventoryError):
    """Another catalog item already owns the slug."""

    code = "CONFLICT"


class ItemNotFoundError(InventoryError):
    """Unknown catalog item or stock entry."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            f"{resource} not found: {identifier}",
            details={"resource": resource, "identifier": identifier},
        )

"""API Routers"""

from api.routers import health, inventory

__all__ = ["health", "inventory"]

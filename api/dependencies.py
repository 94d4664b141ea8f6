"""
API Dependencies

Dependency injection for services.
"""

import logging
from functools import lru_cache

from api.config import Settings, get_settings
from kitchencogs.services.clock import ShopClock
from kitchencogs.services.inventory_service import InventoryService, split_channels
from kitchencogs.services.low_stock_monitor import AlertRules, default_rules
from kitchencogs.services.notifier import EmailNotifier, Notifier, NullNotifier

logger = logging.getLogger("kitchencogs.api")


def build_notifier(settings: Settings) -> Notifier:
    """SMTP notifier when credentials are configured, otherwise log-only."""
    if not settings.email_enabled:
        logger.warning("EMAIL_USER or EMAIL_PASSWORD not set. Low-stock emails will not be sent.")
        return NullNotifier()

    return EmailNotifier(
        host=settings.email_host,
        user=settings.email_user,
        password=settings.email_password,
        to=settings.email_to or settings.email_user,
        sender=settings.email_from,
        port=settings.email_port,
        fallback_port=settings.email_fallback_port,
    )


def build_inventory_service(settings: Settings) -> InventoryService:
    return InventoryService(
        db_path=settings.database_path,
        clock=ShopClock(settings.shop_timezone),
        alert_rules=AlertRules(
            rules=default_rules(
                rice_threshold_grams=settings.rice_threshold_grams,
                piece_threshold=settings.piece_threshold,
            ),
            require_catalog_identity=settings.alerts_require_catalog_identity,
            enabled=settings.alerts_enabled,
        ),
        notifier=build_notifier(settings),
        usage_channels=split_channels(settings.usage_channels),
    )


@lru_cache()
def get_inventory_service() -> InventoryService:
    """Get singleton inventory service."""
    return build_inventory_service(get_settings())

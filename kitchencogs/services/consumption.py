"""
Consumption Aggregator

Turns the day's order line items into grams and pieces used per slug.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Collection, Dict, Iterable, Optional

from kitchencogs.models.common import OrderChannel, Unit
from kitchencogs.models.orders import Order
from kitchencogs.services.alias_resolver import AliasMap
from kitchencogs.services.naming import (
    base_food_slug,
    grams_for_name,
    infer_kind_unit,
    is_portion_variant,
    normalize_slug,
)

logger = logging.getLogger(__name__)


@dataclass
class ConsumptionTotals:
    """Usage per slug for one window."""

    used_grams: Dict[str, float] = field(default_factory=lambda: defaultdict(float))
    used_pieces: Dict[str, float] = field(default_factory=lambda: defaultdict(float))
    # Extra/half grams keyed by the raw normalized name; display only
    extra_grams: Dict[str, float] = field(default_factory=lambda: defaultdict(float))
    line_items_seen: int = 0
    unresolved_names: set = field(default_factory=set)

    def used(self, slug: str, unit: Unit) -> float:
        source = self.used_grams if unit == Unit.GRAM else self.used_pieces
        return source.get(slug, 0.0)


def aggregate_consumption(
    orders: Iterable[Order],
    alias_map: AliasMap,
    channels: Optional[Collection[OrderChannel]] = None,
) -> ConsumptionTotals:
    """
    Aggregate usage from orders.

    Gram foods deduct a plate weight per unit (175 g for extra/half, else
    350 g) from the resolved base item, so "Fried Rice Extra" draws on
    "Fried Rice" stock. Names with no catalog entry aggregate under their own
    normalized slug and later surface as unconfigured summary rows.

    Args:
        orders: Orders already restricted to the time window
        alias_map: Request-scoped alias map
        channels: Only count these channels; None or empty counts all
    """
    totals = ConsumptionTotals()
    allowed = set(channels) if channels else None

    for order in orders:
        if allowed is not None and order.channel not in allowed:
            continue

        for line in order.items:
            qty = line.quantity or 0
            if not qty:
                continue
            totals.line_items_seen += 1

            raw = line.name or ""
            sl = normalize_slug(raw)
            item = alias_map.resolve(sku=raw)

            if item:
                slug = item.slug
                unit = item.unit
            else:
                _, unit = infer_kind_unit(raw)
                # Same base slug add_stock would auto-create under
                slug = (base_food_slug(raw) or sl) if unit == Unit.GRAM else sl
                if slug:
                    totals.unresolved_names.add(raw)

            if not slug:
                logger.warning(f"Skipping line item with unusable name: {raw!r}")
                continue

            if unit == Unit.GRAM:
                grams = grams_for_name(raw) * qty
                totals.used_grams[slug] += grams
                if is_portion_variant(raw):
                    totals.extra_grams[sl] += grams
            else:
                totals.used_pieces[slug] += qty

    if totals.unresolved_names:
        logger.info(
            f"{len(totals.unresolved_names)} line item names have no catalog entry"
        )

    return totals

"""
Summary Builder

Joins the day's ledger totals with aggregated usage into added / used /
remaining rows grouped by kind.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from kitchencogs.models.common import Kind, Unit
from kitchencogs.models.inventory import CatalogItem, StockEntry
from kitchencogs.models.summary import InventorySummary, SummaryRow
from kitchencogs.services.alias_resolver import AliasMap
from kitchencogs.services.consumption import ConsumptionTotals
from kitchencogs.services.naming import infer_kind_unit

logger = logging.getLogger(__name__)


def remaining_of(added: float, used: float) -> float:
    return max(0.0, float(added or 0) - float(used or 0))


def total_added(entries: Iterable[StockEntry]) -> Dict[Tuple[str, Unit], float]:
    """Ledger totals keyed by (slug, unit)."""
    added: Dict[Tuple[str, Unit], float] = defaultdict(float)
    for entry in entries:
        added[(entry.slug, entry.unit)] += float(entry.quantity or 0)
    return added


def build_summary(
    day_key: str,
    items: List[CatalogItem],
    entries: Iterable[StockEntry],
    usage: ConsumptionTotals,
    alias_map: Optional[AliasMap] = None,
) -> InventorySummary:
    """
    Build the summary for one shop-local day.

    Configured items come first in catalog order. Slugs seen in stock or
    usage without a catalog entry follow as unconfigured rows classified by
    infer_kind_unit. Extra/half rows go last in the food group with nothing
    added or remaining, so they are never subtracted twice.
    """
    summary = InventorySummary(day_key=day_key)

    added = total_added(entries)
    used: Dict[Tuple[str, Unit], float] = defaultdict(float)
    for slug, grams in usage.used_grams.items():
        used[(slug, Unit.GRAM)] += grams
    for slug, pieces in usage.used_pieces.items():
        used[(slug, Unit.PIECE)] += pieces

    configured_slugs = set()
    for item in items:
        configured_slugs.add(item.slug)
        key = (item.slug, item.unit)
        _append(summary, SummaryRow(
            id=item.id,
            sku=item.name,
            slug=item.slug,
            unit=item.unit,
            kind=item.kind,
            added=added.get(key, 0.0),
            used=used.get(key, 0.0),
            remaining=remaining_of(added.get(key, 0.0), used.get(key, 0.0)),
        ))

    leftovers = [
        key for key in list(used.keys()) + list(added.keys())
        if key[0] not in configured_slugs
    ]
    seen = set()
    for key in leftovers:
        if key in seen:
            continue
        seen.add(key)
        slug, unit = key
        kind, _ = infer_kind_unit(slug)
        row_added = added.get(key, 0.0)
        row_used = used.get(key, 0.0)
        _append(summary, SummaryRow(
            sku=slug,
            slug=slug,
            unit=unit,
            kind=kind,
            added=row_added,
            used=row_used,
            remaining=remaining_of(row_added, row_used),
            configured=False,
            suggestion=alias_map.suggest(slug) if alias_map else None,
        ))

    if seen:
        logger.info(f"Summary {day_key}: {len(seen)} unconfigured rows")

    for extra_slug, grams in usage.extra_grams.items():
        summary.food.append(SummaryRow(
            sku=extra_slug,
            slug=extra_slug,
            unit=Unit.GRAM,
            kind=Kind.FOOD,
            added=0.0,
            used=grams,
            remaining=0.0,
            extra=True,
        ))

    return summary


def _append(summary: InventorySummary, row: SummaryRow) -> None:
    if row.kind == Kind.FOOD:
        summary.food.append(row)
    elif row.kind == Kind.DRINK:
        summary.drinks.append(row)
    else:
        summary.proteins.append(row)

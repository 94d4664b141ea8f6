"""
Inventory Service - catalog, stock ledger, movements and the daily summary

The single entry point the API talks to. Every call reads the store fresh;
the alias map is rebuilt per call and passed down, never cached.
"""

import json
import logging
import math
import sqlite3
from typing import Collection, List, Optional, Tuple

from kitchencogs.errors import ConflictError, InvalidInputError, ItemNotFoundError
from kitchencogs.models.common import MovementType, OrderChannel, SideEffectResult, Unit
from kitchencogs.models.inventory import (
    CatalogItem,
    CatalogItemCreate,
    CatalogItemUpdate,
    Movement,
    StockAddRequest,
    StockEntry,
    StockEntryUpdate,
)
from kitchencogs.models.summary import InventorySummary, LowStockAlert
from kitchencogs.services.alias_resolver import AliasMap, build_alias_map
from kitchencogs.services.clock import ShopClock
from kitchencogs.services.consumption import aggregate_consumption
from kitchencogs.services.low_stock_monitor import (
    AlertRules,
    default_rules,
    run_low_stock_alerts,
    sqlite_claim,
)
from kitchencogs.services.naming import (
    base_food_slug,
    infer_kind_unit,
    normalize_slug,
    strip_portion_words,
)
from kitchencogs.services.notifier import Notifier, NullNotifier
from kitchencogs.services.summary_builder import build_summary
from kitchencogs.storage import sqlite_repo

logger = logging.getLogger(__name__)

AUDIT_TYPES = [
    MovementType.CREATE,
    MovementType.EDIT,
    MovementType.DELETE,
    MovementType.EDIT_STOCK,
    MovementType.DELETE_STOCK,
    MovementType.RESET,
]

MAX_MOVEMENTS = 200
DEFAULT_MOVEMENTS = 50


def format_qty(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _valid_quantity(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


class InventoryService:
    """Main service for inventory reconciliation."""

    def __init__(
        self,
        db_path: Optional[str] = None,
        clock: Optional[ShopClock] = None,
        alert_rules: Optional[AlertRules] = None,
        notifier: Optional[Notifier] = None,
        usage_channels: Optional[Collection[OrderChannel]] = None,
    ):
        self.db_path = db_path
        self.clock = clock or ShopClock()
        self.alert_rules = alert_rules or AlertRules(rules=default_rules())
        self.notifier = notifier or NullNotifier()
        self.usage_channels = list(usage_channels or [])

    # =========================================================================
    # Catalog
    # =========================================================================

    def list_items(self) -> List[CatalogItem]:
        """All catalog items sorted by kind, then name."""
        return sqlite_repo.list_catalog_items(db_path=self.db_path)

    def alias_map(self) -> AliasMap:
        """Fresh alias map over the current catalog."""
        return build_alias_map(self.list_items())

    def create_item(self, request: CatalogItemCreate) -> CatalogItem:
        """Create or upsert by slug, with an optional same-day stock entry."""
        slug = normalize_slug(request.sku)
        if not slug:
            raise InvalidInputError("sku must contain letters or digits", {"sku": request.sku})

        try:
            item, created = sqlite_repo.upsert_catalog_item(
                name=request.sku,
                slug=slug,
                kind=request.kind,
                unit=request.unit,
                aliases=request.aliases,
                now=self.clock.now(),
                db_path=self.db_path,
            )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Item already exists.", {"slug": slug}) from exc

        # Plain upserts of an already-logged slug stay quiet
        if created or not sqlite_repo.has_movement(item.slug, MovementType.CREATE, db_path=self.db_path):
            self._record_movement(MovementType.CREATE, item.name, item.slug, item.unit)

        qty = _valid_quantity(request.initial_qty or 0) or 0
        if qty > 0:
            self._append_entry(item, qty, "Initial stock")

        return item

    def edit_item(self, item_id: str, patch: CatalogItemUpdate) -> CatalogItem:
        """Patch name/kind/unit/aliases. A rename re-slugs and migrates stock entries."""
        item = sqlite_repo.get_catalog_item(item_id, db_path=self.db_path)
        if not item:
            raise ItemNotFoundError("Catalog item", item_id)

        before = {"name": item.name, "kind": item.kind.value, "unit": item.unit.value}
        previous_slug = item.slug
        updated = item.model_copy()

        if patch.name is not None and patch.name.strip() and patch.name.strip() != item.name:
            new_name = patch.name.strip()
            new_slug = normalize_slug(new_name)
            if not new_slug:
                raise InvalidInputError("name must contain letters or digits", {"name": patch.name})
            if new_slug != item.slug:
                owner = sqlite_repo.get_catalog_item_by_slug(new_slug, db_path=self.db_path)
                if owner and owner.id != item.id:
                    raise ConflictError(
                        "Another item with this name already exists.",
                        {"slug": new_slug, "existing_id": owner.id},
                    )
                updated.slug = new_slug
            updated.name = new_name

        if patch.kind is not None:
            updated.kind = patch.kind
        if patch.unit is not None:
            updated.unit = patch.unit
        if patch.aliases is not None:
            updated.aliases = [a.strip() for a in patch.aliases if a and a.strip()]

        try:
            saved = sqlite_repo.update_catalog_item(
                updated,
                previous_slug,
                now=self.clock.now(),
                day_key=self.clock.day_key(),
                db_path=self.db_path,
            )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Duplicate after rename.", {"slug": updated.slug}) from exc

        after = {"name": saved.name, "kind": saved.kind.value, "unit": saved.unit.value}
        self._record_movement(
            MovementType.EDIT,
            saved.name,
            saved.slug,
            saved.unit,
            f"Edited: {json.dumps(before)} -> {json.dumps(after)}",
        )
        return saved

    def delete_item(self, item_id: str) -> int:
        """Delete an item and its stock entries. Returns entries removed."""
        item = sqlite_repo.get_catalog_item(item_id, db_path=self.db_path)
        if not item:
            raise ItemNotFoundError("Catalog item", item_id)

        removed = sqlite_repo.delete_catalog_item(item, db_path=self.db_path)
        self._record_movement(MovementType.DELETE, item.name, item.slug, item.unit)
        return removed

    # =========================================================================
    # Stock ledger
    # =========================================================================

    def list_today_stock(self) -> List[StockEntry]:
        return sqlite_repo.list_stock_entries(day_key=self.clock.day_key(), db_path=self.db_path)

    def add_stock(self, request: StockAddRequest) -> StockEntry:
        """
        Append a stock entry for today.

        Resolves item_id / slug / sku through the alias map. An unresolved
        sku auto-creates its base item (portion words stripped). No movement
        is written for the addition itself.
        """
        qty = _valid_quantity(request.qty)
        if qty is None or qty <= 0:
            raise InvalidInputError("Positive qty is required", {"qty": request.qty})

        item = self.alias_map().resolve(
            item_id=request.item_id, slug=request.slug, sku=request.sku
        )

        if not item and request.sku and request.sku.strip():
            item = self._find_or_create_base_item(request)

        if not item:
            identifier = request.item_id or request.slug or request.sku or ""
            raise ItemNotFoundError("Catalog item", identifier)

        return self._append_entry(item, qty, request.note)

    def edit_stock_entry(self, entry_id: str, patch: StockEntryUpdate) -> StockEntry:
        entry = sqlite_repo.get_stock_entry(entry_id, db_path=self.db_path)
        if not entry:
            raise ItemNotFoundError("Stock entry", entry_id)

        quantity = entry.quantity
        if patch.qty is not None:
            qty = _valid_quantity(patch.qty)
            if qty is None or qty < 0:
                raise InvalidInputError("Invalid qty", {"qty": patch.qty})
            quantity = qty
        note = patch.note if patch.note is not None else entry.note

        updated = sqlite_repo.update_stock_entry(
            entry_id, quantity, note, now=self.clock.now(), db_path=self.db_path
        )

        audit = f"edit qty:{format_qty(entry.quantity)}->{format_qty(updated.quantity)}"
        if entry.note != updated.note:
            audit += f"; note:{entry.note or ''}->{updated.note or ''}"
        self._record_movement(
            MovementType.EDIT_STOCK, updated.display_name, updated.slug, updated.unit, audit
        )
        return updated

    def delete_stock_entry(self, entry_id: str) -> None:
        entry = sqlite_repo.get_stock_entry(entry_id, db_path=self.db_path)
        if not entry:
            raise ItemNotFoundError("Stock entry", entry_id)

        sqlite_repo.delete_stock_entry(entry_id, db_path=self.db_path)

        audit = f"deleted +{format_qty(entry.quantity)} {entry.unit.value}"
        if entry.note:
            audit += f" — {entry.note}"
        self._record_movement(
            MovementType.DELETE_STOCK, entry.display_name, entry.slug, entry.unit, audit
        )

    def reset_day(self) -> int:
        """Clear today's stock entries and log one reset movement."""
        day_key = self.clock.day_key()
        removed = sqlite_repo.delete_stock_entries_for_day(day_key, db_path=self.db_path)
        self._record_movement(
            MovementType.RESET, "all", "all", Unit.GRAM, f"cleared {removed} stock entries for {day_key}"
        )
        logger.info(f"Reset {day_key}: removed {removed} stock entries")
        return removed

    # =========================================================================
    # Movements
    # =========================================================================

    def list_movements(self, limit: Optional[int] = None) -> List[Movement]:
        """
        Today's audit movements merged with today's stock entries shown as
        "add" rows, newest first.
        """
        limit = max(1, min(MAX_MOVEMENTS, int(limit or DEFAULT_MOVEMENTS)))
        day_key = self.clock.day_key()

        audit = sqlite_repo.list_movements(
            day_key=day_key, types=AUDIT_TYPES, limit=limit, db_path=self.db_path
        )
        additions = [
            Movement(
                id=f"stock-{entry.id}",
                type=MovementType.ADD,
                sku=entry.display_name,
                slug=entry.slug,
                unit=entry.unit,
                note=f"+{format_qty(entry.quantity)} {entry.unit.value}"
                     + (f" — {entry.note}" if entry.note else ""),
                day_key=entry.day_key,
                created_at=entry.created_at,
            )
            for entry in sqlite_repo.list_stock_entries(day_key=day_key, db_path=self.db_path)
        ]

        merged = sorted(audit + additions, key=lambda m: m.created_at, reverse=True)
        return merged[:limit]

    # =========================================================================
    # Summary
    # =========================================================================

    def build_summary(self) -> InventorySummary:
        """Today's summary without side effects."""
        day_key = self.clock.day_key()
        start, end = self.clock.day_bounds()

        items = self.list_items()
        alias_map = build_alias_map(items)
        entries = sqlite_repo.list_stock_entries(day_key=day_key, db_path=self.db_path)
        orders = sqlite_repo.list_orders_between(start, end, db_path=self.db_path)

        usage = aggregate_consumption(orders, alias_map, channels=self.usage_channels)
        return build_summary(day_key, items, entries, usage, alias_map=alias_map)

    def get_summary(self) -> InventorySummary:
        """Today's summary; evaluates low-stock alerts as a side effect."""
        summary = self.build_summary()
        self.check_low_stock(summary)
        return summary

    def check_low_stock(self, summary: InventorySummary) -> List[LowStockAlert]:
        """Fire today's low-stock alerts. Never raises."""
        try:
            return run_low_stock_alerts(
                summary,
                self.alert_rules,
                claim=sqlite_claim(self._insert_movement),
                notifier=self.notifier,
            )
        except Exception:
            logger.exception("Low-stock alert check failed")
            return []

    # =========================================================================
    # Internals
    # =========================================================================

    def _find_or_create_base_item(self, request: StockAddRequest) -> CatalogItem:
        typed = request.sku.strip()
        slug = normalize_slug(typed)
        base = base_food_slug(typed) or slug
        if not base:
            raise InvalidInputError("sku must contain letters or digits", {"sku": request.sku})

        existing = (
            sqlite_repo.get_catalog_item_by_slug(base, db_path=self.db_path)
            or sqlite_repo.get_catalog_item_by_slug(slug, db_path=self.db_path)
        )
        if existing:
            return existing

        inferred_kind, inferred_unit = infer_kind_unit(typed)
        name = strip_portion_words(typed) if base != slug else typed

        try:
            item = sqlite_repo.insert_catalog_item(
                name=name,
                slug=base,
                kind=request.kind or inferred_kind,
                unit=request.unit or inferred_unit,
                aliases=[],
                now=self.clock.now(),
                db_path=self.db_path,
            )
        except sqlite3.IntegrityError:
            # Created concurrently by another request
            item = sqlite_repo.get_catalog_item_by_slug(base, db_path=self.db_path)
            if not item:
                raise
            return item

        logger.info(f"Auto-created catalog item {item.slug} ({item.kind.value}/{item.unit.value})")
        self._record_movement(MovementType.CREATE, item.name, item.slug, item.unit)
        return item

    def _append_entry(self, item: CatalogItem, quantity: float, note: str) -> StockEntry:
        return sqlite_repo.insert_stock_entry(
            slug=item.slug,
            display_name=item.name,
            unit=item.unit,
            quantity=quantity,
            day_key=self.clock.day_key(),
            note=note or "",
            now=self.clock.now(),
            db_path=self.db_path,
        )

    def _insert_movement(self, movement_type: MovementType, sku: str, slug: str,
                         unit: Unit, note: str = "", day_key: Optional[str] = None) -> Movement:
        return sqlite_repo.insert_movement(
            movement_type=movement_type,
            sku=sku,
            slug=slug,
            unit=unit,
            note=note,
            day_key=day_key or self.clock.day_key(),
            now=self.clock.now(),
            db_path=self.db_path,
        )

    def _record_movement(self, movement_type: MovementType, sku: str, slug: str,
                         unit: Unit, note: str = "") -> SideEffectResult:
        """Audit write that must not fail the mutation it describes."""
        try:
            self._insert_movement(movement_type, sku, slug, unit, note)
            return SideEffectResult.success()
        except sqlite3.Error as exc:
            logger.warning(f"Could not record {movement_type.value} movement for {slug}: {exc}")
            return SideEffectResult.failure(str(exc))


def split_channels(value: str) -> Tuple[OrderChannel, ...]:
    """Parse a comma-separated channel list; unknown names are ignored."""
    channels = []
    for part in (value or "").split(","):
        part = part.strip().lower()
        if not part:
            continue
        try:
            channels.append(OrderChannel(part))
        except ValueError:
            logger.warning(f"Ignoring unknown order channel {part!r}")
    return tuple(channels)

"""Tests for the inventory service against a real SQLite file."""

from datetime import datetime, timezone

import pytest

from kitchencogs.errors import ConflictError, InvalidInputError, ItemNotFoundError
from kitchencogs.models.common import Kind, MovementType, OrderChannel, Unit
from kitchencogs.models.inventory import (
    CatalogItemCreate,
    CatalogItemUpdate,
    StockAddRequest,
    StockEntryUpdate,
)
from kitchencogs.services.inventory_service import InventoryService, format_qty, split_channels
from kitchencogs.services.notifier import Notifier, RecordingNotifier
from kitchencogs.storage import sqlite_repo


def create_test_item(service, sku, kind=Kind.FOOD, unit=Unit.GRAM, initial_qty=None, aliases=None):
    return service.create_item(CatalogItemCreate(
        sku=sku, kind=kind, unit=unit, initial_qty=initial_qty, aliases=aliases or [],
    ))


def movement_types(service, limit=None):
    return [m.type for m in service.list_movements(limit=limit)]


def low_stock_movements(service):
    return sqlite_repo.list_movements(
        day_key=service.clock.day_key(),
        types=[MovementType.LOW_STOCK],
        db_path=service.db_path,
    )


class TestCatalog:

    def test_create_logs_movement_and_initial_stock(self, service):
        item = create_test_item(service, "Jollof Rice", initial_qty=5000)

        assert item.slug == "jollofrice"
        entries = service.list_today_stock()
        assert len(entries) == 1
        assert entries[0].quantity == 5000
        assert entries[0].note == "Initial stock"
        assert MovementType.CREATE in movement_types(service)

    def test_create_is_an_upsert_by_slug(self, service, now):
        first = create_test_item(service, "Jollof Rice")
        now.advance(minutes=1)
        second = create_test_item(service, "jollof-rice", unit=Unit.PIECE)

        assert second.id == first.id
        assert second.unit == Unit.PIECE
        assert len(service.list_items()) == 1
        assert movement_types(service).count(MovementType.CREATE) == 1

    def test_blank_slug_rejected(self, service):
        with pytest.raises(InvalidInputError):
            create_test_item(service, "!!!")

    def test_list_sorted_by_kind_then_name(self, service):
        create_test_item(service, "Zobo", kind=Kind.DRINK, unit=Unit.PIECE)
        create_test_item(service, "Jollof Rice")
        create_test_item(service, "Fried Rice")

        assert [i.name for i in service.list_items()] == ["Zobo", "Fried Rice", "Jollof Rice"]

    def test_rename_collision_is_rejected(self, service):
        create_test_item(service, "Fried Rice")
        jollof = create_test_item(service, "Jollof Rice")

        with pytest.raises(ConflictError) as exc_info:
            service.edit_item(jollof.id, CatalogItemUpdate(name="Fried-Rice"))

        assert exc_info.value.message == "Another item with this name already exists."
        unchanged = sqlite_repo.get_catalog_item(jollof.id, db_path=service.db_path)
        assert unchanged.name == "Jollof Rice"
        assert unchanged.slug == "jollofrice"

    def test_rename_moves_stock_entries(self, service):
        item = create_test_item(service, "Jollof Rice", initial_qty=3000)

        renamed = service.edit_item(item.id, CatalogItemUpdate(name="Party Jollof"))

        assert renamed.slug == "partyjollof"
        entries = service.list_today_stock()
        assert [(e.slug, e.display_name) for e in entries] == [("partyjollof", "Party Jollof")]

        edit = next(m for m in service.list_movements() if m.type == MovementType.EDIT)
        assert edit.note.startswith('Edited: {"name": "Jollof Rice"')
        assert '"name": "Party Jollof"' in edit.note

    def test_edit_kind_and_aliases(self, service):
        item = create_test_item(service, "Chicken", kind=Kind.FOOD, unit=Unit.GRAM)

        updated = service.edit_item(item.id, CatalogItemUpdate(
            kind=Kind.PROTEIN, unit=Unit.PIECE, aliases=["chikin", "  "],
        ))

        assert (updated.kind, updated.unit) == (Kind.PROTEIN, Unit.PIECE)
        assert updated.aliases == ["chikin"]

    def test_edit_unknown_item(self, service):
        with pytest.raises(ItemNotFoundError):
            service.edit_item("nope", CatalogItemUpdate(name="x"))

    def test_delete_cascades_to_stock(self, service):
        item = create_test_item(service, "Moi Moi", unit=Unit.PIECE, initial_qty=10)
        service.add_stock(StockAddRequest(item_id=item.id, qty=5))

        removed = service.delete_item(item.id)

        assert removed == 2
        assert service.list_items() == []
        assert service.list_today_stock() == []
        assert MovementType.DELETE in movement_types(service)

    def test_delete_unknown_item(self, service):
        with pytest.raises(ItemNotFoundError):
            service.delete_item("nope")


class TestStockLedger:

    def test_add_by_alias(self, service):
        create_test_item(service, "Chicken", kind=Kind.PROTEIN, unit=Unit.PIECE, aliases=["chikin"])

        entry = service.add_stock(StockAddRequest(sku="Chikin", qty=12, note="market"))

        assert entry.slug == "chicken"
        assert entry.unit == Unit.PIECE
        assert entry.display_name == "Chicken"

    def test_add_by_slug_with_portion_variant_in_catalog(self, service):
        create_test_item(service, "Fried Rice")
        create_test_item(service, "Fried Rice Extra")

        assert service.add_stock(StockAddRequest(slug="friedrice", qty=5000)).slug == "friedrice"
        assert service.add_stock(StockAddRequest(sku="Fried Rice", qty=1000)).slug == "friedrice"

    @pytest.mark.parametrize("qty", [0, -5, float("nan"), float("inf")])
    def test_add_requires_positive_quantity(self, service, qty):
        create_test_item(service, "Jollof Rice")

        with pytest.raises(InvalidInputError) as exc_info:
            service.add_stock(StockAddRequest(sku="Jollof Rice", qty=qty))
        assert exc_info.value.message == "Positive qty is required"

    def test_add_without_identifier(self, service):
        with pytest.raises(ItemNotFoundError):
            service.add_stock(StockAddRequest(qty=1))

    def test_unknown_sku_creates_base_item(self, service):
        entry = service.add_stock(StockAddRequest(sku="Fried Rice Extra", qty=2000))

        assert entry.slug == "friedrice"
        item = sqlite_repo.get_catalog_item_by_slug("friedrice", db_path=service.db_path)
        assert item.name == "Fried Rice"
        assert (item.kind, item.unit) == (Kind.FOOD, Unit.GRAM)
        assert MovementType.CREATE in movement_types(service)

    def test_auto_create_honours_explicit_kind(self, service):
        entry = service.add_stock(StockAddRequest(
            sku="Agege Bread", qty=4, kind=Kind.FOOD, unit=Unit.PIECE,
        ))
        assert entry.unit == Unit.PIECE

    def test_auto_created_drink(self, service):
        entry = service.add_stock(StockAddRequest(sku="Coke", qty=24))
        item = sqlite_repo.get_catalog_item_by_slug(entry.slug, db_path=service.db_path)

        assert (item.kind, item.unit) == (Kind.DRINK, Unit.PIECE)

    def test_edit_entry_records_change(self, service):
        create_test_item(service, "Moi Moi", unit=Unit.PIECE)
        entry = service.add_stock(StockAddRequest(sku="Moi Moi", qty=10))

        updated = service.edit_stock_entry(entry.id, StockEntryUpdate(qty=12, note="recount"))

        assert updated.quantity == 12
        audit = next(m for m in service.list_movements() if m.type == MovementType.EDIT_STOCK)
        assert audit.note == "edit qty:10->12; note:->recount"

    def test_edit_entry_rejects_negative(self, service):
        create_test_item(service, "Moi Moi", unit=Unit.PIECE)
        entry = service.add_stock(StockAddRequest(sku="Moi Moi", qty=10))

        with pytest.raises(InvalidInputError):
            service.edit_stock_entry(entry.id, StockEntryUpdate(qty=-1))

    def test_delete_entry_records_change(self, service):
        create_test_item(service, "Moi Moi", unit=Unit.PIECE)
        entry = service.add_stock(StockAddRequest(sku="Moi Moi", qty=10, note="late delivery"))

        service.delete_stock_entry(entry.id)

        assert service.list_today_stock() == []
        audit = next(m for m in service.list_movements() if m.type == MovementType.DELETE_STOCK)
        assert audit.note == "deleted +10 piece — late delivery"

    def test_delete_unknown_entry(self, service):
        with pytest.raises(ItemNotFoundError):
            service.delete_stock_entry("missing")

    def test_reset_day(self, service, now):
        create_test_item(service, "Jollof Rice", initial_qty=3000)
        service.add_stock(StockAddRequest(sku="Jollof Rice", qty=1000))
        now.advance(minutes=1)

        assert service.reset_day() == 2
        assert service.list_today_stock() == []
        assert movement_types(service)[0] == MovementType.RESET

    def test_entries_are_per_day(self, service, now):
        create_test_item(service, "Jollof Rice", initial_qty=3000)
        now.advance(days=1)

        assert service.list_today_stock() == []


class TestMovements:

    def test_newest_first_with_add_rows(self, service, now):
        create_test_item(service, "Jollof Rice")
        now.advance(minutes=1)
        service.add_stock(StockAddRequest(sku="Jollof Rice", qty=5000, note="morning"))

        movements = service.list_movements()

        assert [m.type for m in movements] == [MovementType.ADD, MovementType.CREATE]
        assert movements[0].id.startswith("stock-")
        assert movements[0].note == "+5000 gram — morning"

    def test_limit_is_clamped(self, service, now):
        for name in ("Fried Rice", "Jollof Rice", "White Rice"):
            create_test_item(service, name)
            now.advance(minutes=1)

        assert len(service.list_movements(limit=-5)) == 1
        assert len(service.list_movements(limit=2)) == 2
        assert len(service.list_movements(limit=1000)) == 3
        assert service.list_movements(limit=2)[0].sku == "White Rice"

    def test_low_stock_movements_are_hidden(self, service):
        create_test_item(service, "Jollof Rice", initial_qty=100)
        service.get_summary()

        assert len(low_stock_movements(service)) == 1
        assert MovementType.LOW_STOCK not in movement_types(service)

    def test_only_today(self, service, now):
        create_test_item(service, "Jollof Rice")
        now.advance(days=1)

        assert service.list_movements() == []


class TestSummary:

    def test_jollof_scenario(self, service, notifier, place_order):
        create_test_item(service, "Jollof Rice", initial_qty=5000)
        place_order(("Jollof Rice Extra", 2))

        summary = service.get_summary()
        row = next(r for r in summary.food if r.slug == "jollofrice")

        assert (row.added, row.used, row.remaining) == (5000, 350, 4650)
        assert notifier.sent == []

    def test_full_plate_scenario(self, service, place_order):
        create_test_item(service, "Jollof Rice", initial_qty=5000)
        place_order(("Jollof Rice", 1))

        row = service.build_summary().food[0]
        assert (row.used, row.remaining) == (350, 4650)

    def test_extra_portion_scenario(self, service, place_order):
        create_test_item(service, "Fried Rice", initial_qty=2000)
        place_order(("Fried Rice Extra", 2))

        summary = service.build_summary()
        base = next(r for r in summary.food if r.slug == "friedrice" and not r.extra)
        extra = next(r for r in summary.food if r.extra)

        assert base.used == 350
        assert base.remaining == 1650
        assert (extra.slug, extra.used, extra.remaining) == ("friedriceextra", 350, 0)

    def test_unconfigured_drink_scenario(self, service, notifier, place_order):
        place_order(("Coke", 3))

        summary = service.get_summary()

        assert summary.food == []
        row = summary.drinks[0]
        assert (row.slug, row.used, row.remaining, row.configured) == ("coke", 3, 0, False)
        assert notifier.sent == []
        assert low_stock_movements(service) == []

    def test_unconfigured_extra_portion_has_no_row_of_its_own(self, service, place_order):
        place_order(("Pounded Yam", 1), ("Pounded Yam Extra", 1))

        rows = [(r.slug, r.used, r.configured, r.extra) for r in service.build_summary().food]

        assert rows == [
            ("poundedyam", 525, False, False),
            ("poundedyamextra", 175, True, True),
        ]

    def test_rice_alert_fires_once_per_day(self, service, notifier, place_order, now):
        create_test_item(service, "Jollof Rice", initial_qty=1000)
        place_order(("Jollof Rice", 1))

        service.get_summary()
        service.get_summary()

        assert len(low_stock_movements(service)) == 1
        assert low_stock_movements(service)[0].note == "remaining=650 (Rice (grams) < 900g)"
        assert len(notifier.sent) == 1

        now.advance(days=1)
        service.get_summary()

        assert len(low_stock_movements(service)) == 1
        assert len(notifier.sent) == 2

    def test_rice_alert_without_orders(self, service, notifier):
        create_test_item(service, "Fried Rice", initial_qty=800)

        service.get_summary()
        assert len(low_stock_movements(service)) == 1

        service.get_summary()
        assert len(low_stock_movements(service)) == 1
        assert notifier.sent[0].remaining == 800

    def test_rename_does_not_alert_twice(self, service, notifier):
        item = create_test_item(service, "Jollof Rice", initial_qty=100)
        service.get_summary()

        service.edit_item(item.id, CatalogItemUpdate(name="Jollof Rice Special"))
        service.get_summary()

        alerts = low_stock_movements(service)
        assert [m.slug for m in alerts] == ["jollofricespecial"]
        assert len(notifier.sent) == 1

    def test_build_summary_has_no_side_effects(self, service, notifier):
        create_test_item(service, "Jollof Rice", initial_qty=100)

        service.build_summary()

        assert notifier.sent == []
        assert low_stock_movements(service) == []

    def test_day_boundary_is_shop_local(self, service, now, place_order):
        create_test_item(service, "Moi Moi", unit=Unit.PIECE)
        # 23:00 UTC is midnight in Lagos
        place_order(("Moi Moi", 5), created_at=datetime(2026, 10, 19, 22, 30, tzinfo=timezone.utc))
        place_order(("Moi Moi", 2), created_at=datetime(2026, 10, 19, 23, 15, tzinfo=timezone.utc))
        now.current = datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc)

        summary = service.build_summary()

        assert summary.day_key == "2026-10-20"
        assert summary.food[0].used == 2

    def test_raising_notifier_does_not_fail_summary(self, db_path, clock):
        class BrokenNotifier(Notifier):
            def send_low_stock(self, alert):
                raise ConnectionError("smtp unreachable")

        service = InventoryService(db_path=db_path, clock=clock, notifier=BrokenNotifier())
        create_test_item(service, "Jollof Rice", initial_qty=100)

        summary = service.get_summary()

        assert summary.food[0].remaining == 100
        assert len(low_stock_movements(service)) == 1

    def test_usage_channel_filter(self, db_path, clock, place_order):
        service = InventoryService(
            db_path=db_path, clock=clock, notifier=RecordingNotifier(),
            usage_channels=[OrderChannel.INSTORE],
        )
        create_test_item(service, "Moi Moi", unit=Unit.PIECE, initial_qty=10)
        place_order(("Moi Moi", 3), channel=OrderChannel.ONLINE)
        place_order(("Moi Moi", 1), channel=OrderChannel.INSTORE)

        assert service.build_summary().food[0].used == 1


def test_format_qty():
    assert format_qty(10.0) == "10"
    assert format_qty(2.5) == "2.5"


def test_split_channels():
    assert split_channels("online, INSTORE,,fax") == (OrderChannel.ONLINE, OrderChannel.INSTORE)
    assert split_channels("") == ()

"""
SQLite Repository

Handles all database operations using SQLite.

Timestamps are stored as fixed-width UTC strings so they sort lexically.
Low-stock alert dedup relies on a partial unique index: at most one
low_stock movement per (slug, day_key).
"""

import json
import logging
import os
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from kitchencogs.models.common import Kind, MovementType, Unit
from kitchencogs.models.inventory import CatalogItem, Movement, StockEntry
from kitchencogs.models.orders import Order

logger = logging.getLogger(__name__)

# Default database path
DEFAULT_DB_PATH = "./data/db/kitchencogs.db"

TS_FORMAT = "%Y-%m-%dT%H:%M:%S.%f+00:00"


def _ts(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(TS_FORMAT)


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


def new_id() -> str:
    return uuid.uuid4().hex


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Get a database connection."""
    db_path = db_path or os.environ.get("DATABASE_PATH", DEFAULT_DB_PATH)

    # Ensure directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_database(db_path: Optional[str] = None):
    """Initialize database tables."""
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS catalog_items (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                slug TEXT NOT NULL UNIQUE,
                kind TEXT NOT NULL CHECK (kind IN ('food', 'drink', 'protein')),
                unit TEXT NOT NULL CHECK (unit IN ('gram', 'piece')),
                aliases TEXT NOT NULL DEFAULT '[]',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS stock_entries (
                id TEXT PRIMARY KEY,
                slug TEXT NOT NULL,
                display_name TEXT NOT NULL,
                unit TEXT NOT NULL CHECK (unit IN ('gram', 'piece')),
                quantity REAL NOT NULL CHECK (quantity >= 0),
                day_key TEXT NOT NULL,
                note TEXT NOT NULL DEFAULT '',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS movements (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                sku TEXT NOT NULL,
                slug TEXT NOT NULL,
                unit TEXT NOT NULL,
                note TEXT NOT NULL DEFAULT '',
                day_key TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS orders (
                order_id TEXT PRIMARY KEY,
                channel TEXT NOT NULL,
                created_at TEXT NOT NULL,
                items TEXT NOT NULL DEFAULT '[]'
            )
        """)

        # Create indexes
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_stock_day_slug ON stock_entries(day_key, slug)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_stock_slug ON stock_entries(slug)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_movements_day ON movements(day_key, created_at)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_movements_slug_type ON movements(slug, type)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_orders_created ON orders(created_at)")
        cursor.execute("""
            CREATE UNIQUE INDEX IF NOT EXISTS ux_movements_low_stock_daily
            ON movements(slug, day_key) WHERE type = 'low_stock'
        """)

        conn.commit()
        logger.info("Database initialized successfully")

    finally:
        conn.close()


# Row mappers

def _row_to_item(row: sqlite3.Row) -> CatalogItem:
    return CatalogItem(
        id=row['id'],
        name=row['name'],
        slug=row['slug'],
        kind=Kind(row['kind']),
        unit=Unit(row['unit']),
        aliases=json.loads(row['aliases']) if row['aliases'] else [],
        created_at=_parse_ts(row['created_at']),
        updated_at=_parse_ts(row['updated_at']),
    )


def _row_to_entry(row: sqlite3.Row) -> StockEntry:
    return StockEntry(
        id=row['id'],
        slug=row['slug'],
        display_name=row['display_name'],
        unit=Unit(row['unit']),
        quantity=row['quantity'],
        day_key=row['day_key'],
        note=row['note'] or "",
        created_at=_parse_ts(row['created_at']),
        updated_at=_parse_ts(row['updated_at']),
    )


def _row_to_movement(row: sqlite3.Row) -> Movement:
    return Movement(
        id=row['id'],
        type=MovementType(row['type']),
        sku=row['sku'],
        slug=row['slug'],
        unit=Unit(row['unit']),
        note=row['note'] or "",
        day_key=row['day_key'],
        created_at=_parse_ts(row['created_at']),
    )


# Catalog operations

def list_catalog_items(db_path: Optional[str] = None) -> List[CatalogItem]:
    """All catalog items sorted by kind, then name."""
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM catalog_items ORDER BY kind ASC, name ASC")
        return [_row_to_item(row) for row in cursor.fetchall()]

    finally:
        conn.close()


def get_catalog_item(item_id: str, db_path: Optional[str] = None) -> Optional[CatalogItem]:
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM catalog_items WHERE id = ?", (item_id,))
        row = cursor.fetchone()
        return _row_to_item(row) if row else None

    finally:
        conn.close()


def get_catalog_item_by_slug(slug: str, db_path: Optional[str] = None) -> Optional[CatalogItem]:
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM catalog_items WHERE slug = ?", (slug,))
        row = cursor.fetchone()
        return _row_to_item(row) if row else None

    finally:
        conn.close()


def insert_catalog_item(
    name: str,
    slug: str,
    kind: Kind,
    unit: Unit,
    aliases: Iterable[str],
    now: datetime,
    db_path: Optional[str] = None,
) -> CatalogItem:
    """Insert a new item. Raises sqlite3.IntegrityError if the slug is taken."""
    conn = get_connection(db_path)

    try:
        item_id = new_id()
        conn.execute("""
            INSERT INTO catalog_items (id, name, slug, kind, unit, aliases, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            item_id,
            name,
            slug,
            kind.value,
            unit.value,
            json.dumps(list(aliases)),
            _ts(now),
            _ts(now),
        ))
        conn.commit()
        logger.info(f"Created catalog item {slug}")

        row = conn.execute("SELECT * FROM catalog_items WHERE id = ?", (item_id,)).fetchone()
        return _row_to_item(row)

    finally:
        conn.close()


def upsert_catalog_item(
    name: str,
    slug: str,
    kind: Kind,
    unit: Unit,
    aliases: Iterable[str],
    now: datetime,
    db_path: Optional[str] = None,
) -> Tuple[CatalogItem, bool]:
    """Create or overwrite the item owning slug. Returns (item, created)."""
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO catalog_items (id, name, slug, kind, unit, aliases, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(slug) DO NOTHING
        """, (
            new_id(),
            name,
            slug,
            kind.value,
            unit.value,
            json.dumps(list(aliases)),
            _ts(now),
            _ts(now),
        ))
        created = cursor.rowcount == 1

        if not created:
            cursor.execute("""
                UPDATE catalog_items
                SET name = ?, kind = ?, unit = ?, aliases = ?, updated_at = ?
                WHERE slug = ?
            """, (name, kind.value, unit.value, json.dumps(list(aliases)), _ts(now), slug))

        conn.commit()

        row = cursor.execute("SELECT * FROM catalog_items WHERE slug = ?", (slug,)).fetchone()
        return _row_to_item(row), created

    finally:
        conn.close()


def update_catalog_item(
    item: CatalogItem,
    previous_slug: str,
    now: datetime,
    day_key: Optional[str] = None,
    db_path: Optional[str] = None,
) -> CatalogItem:
    """
    Save an edited item. When the slug changed, stock entries move to the
    new slug and display name in the same transaction, and so does the
    day's low_stock movement so a rename can't alert twice.

    Raises sqlite3.IntegrityError if the new slug is taken.
    """
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()
        cursor.execute("""
            UPDATE catalog_items
            SET name = ?, slug = ?, kind = ?, unit = ?, aliases = ?, updated_at = ?
            WHERE id = ?
        """, (
            item.name,
            item.slug,
            item.kind.value,
            item.unit.value,
            json.dumps(item.aliases),
            _ts(now),
            item.id,
        ))

        if item.slug != previous_slug:
            cursor.execute("""
                UPDATE stock_entries SET slug = ?, display_name = ?
                WHERE slug = ?
            """, (item.slug, item.name, previous_slug))
            logger.info(f"Moved {cursor.rowcount} stock entries {previous_slug} -> {item.slug}")

            if day_key is not None:
                # OR IGNORE: the new slug may already hold the day's alert
                cursor.execute("""
                    UPDATE OR IGNORE movements SET slug = ?, sku = ?
                    WHERE slug = ? AND type = ? AND day_key = ?
                """, (item.slug, item.name, previous_slug, MovementType.LOW_STOCK.value, day_key))

        conn.commit()

        row = cursor.execute("SELECT * FROM catalog_items WHERE id = ?", (item.id,)).fetchone()
        return _row_to_item(row)

    except sqlite3.IntegrityError:
        conn.rollback()
        raise

    finally:
        conn.close()


def delete_catalog_item(item: CatalogItem, db_path: Optional[str] = None) -> int:
    """Delete an item and all of its stock entries. Returns entries removed."""
    conn = get_connection(db_path)

    try:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM catalog_items WHERE id = ?", (item.id,))
        cursor.execute("DELETE FROM stock_entries WHERE slug = ?", (item.slug,))
        removed = cursor.rowcount
        conn.commit()
        logger.info(f"Deleted catalog item {item.slug} and {removed} stock entries")
        return removed

    finally:
        conn.close()


# Stock operations

def insert_stock_entry(
    slug: str,
    display_name: str,
    unit: Unit,
    quantity: float,
    day_key: str,
    note: str,
    now: datetime,
    db_path: Optional[str] = None,
) -> StockEntry:
    conn = get_connection(db_path)

    try:
        entry_id = new_id()
        conn.execute("""
            INSERT INTO stock_entries
            (id, slug, display_name, unit, quantity, day_key, note, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            entry_id,
            slug,
            display_name,
            unit.value,
            quantity,
            day_key,
            note or "",
            _ts(now),
            _ts(now),
        ))
        conn.commit()

        row = conn.execute("SELECT * FROM stock_entries WHERE id = ?", (entry_id,)).fetchone()
        return _row_to_entry(row)

    finally:
        conn.close()


def get_stock_entry(entry_id: str, db_path: Optional[str] = None) -> Optional[StockEntry]:
    conn = get_connection(db_path)

    try:
        row = conn.execute("SELECT * FROM stock_entries WHERE id = ?", (entry_id,)).fetchone()
        return _row_to_entry(row) if row else None

    finally:
        conn.close()


def update_stock_entry(
    entry_id: str,
    quantity: float,
    note: str,
    now: datetime,
    db_path: Optional[str] = None,
) -> Optional[StockEntry]:
    conn = get_connection(db_path)

    try:
        conn.execute("""
            UPDATE stock_entries SET quantity = ?, note = ?, updated_at = ?
            WHERE id = ?
        """, (quantity, note or "", _ts(now), entry_id))
        conn.commit()

        row = conn.execute("SELECT * FROM stock_entries WHERE id = ?", (entry_id,)).fetchone()
        return _row_to_entry(row) if row else None

    finally:
        conn.close()


def delete_stock_entry(entry_id: str, db_path: Optional[str] = None) -> bool:
    conn = get_connection(db_path)

    try:
        cursor = conn.execute("DELETE FROM stock_entries WHERE id = ?", (entry_id,))
        conn.commit()
        return cursor.rowcount > 0

    finally:
        conn.close()


def list_stock_entries(
    day_key: Optional[str] = None,
    slug: Optional[str] = None,
    db_path: Optional[str] = None,
) -> List[StockEntry]:
    """Stock entries newest first, optionally for one day and/or slug."""
    conn = get_connection(db_path)

    try:
        clauses = []
        params: list = []
        if day_key is not None:
            clauses.append("day_key = ?")
            params.append(day_key)
        if slug is not None:
            clauses.append("slug = ?")
            params.append(slug)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        cursor = conn.execute(
            f"SELECT * FROM stock_entries {where} ORDER BY created_at DESC, rowid DESC",
            params,
        )
        return [_row_to_entry(row) for row in cursor.fetchall()]

    finally:
        conn.close()


def delete_stock_entries_for_day(day_key: str, db_path: Optional[str] = None) -> int:
    conn = get_connection(db_path)

    try:
        cursor = conn.execute("DELETE FROM stock_entries WHERE day_key = ?", (day_key,))
        conn.commit()
        return cursor.rowcount

    finally:
        conn.close()


# Movement operations

def insert_movement(
    movement_type: MovementType,
    sku: str,
    slug: str,
    unit: Unit,
    note: str,
    day_key: str,
    now: datetime,
    db_path: Optional[str] = None,
) -> Movement:
    """
    Append a movement.

    Raises sqlite3.IntegrityError for a second low_stock movement for the
    same slug and day.
    """
    conn = get_connection(db_path)

    try:
        movement_id = new_id()
        conn.execute("""
            INSERT INTO movements (id, type, sku, slug, unit, note, day_key, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """, (
            movement_id,
            movement_type.value,
            sku,
            slug,
            unit.value,
            note or "",
            day_key,
            _ts(now),
        ))
        conn.commit()

        row = conn.execute("SELECT * FROM movements WHERE id = ?", (movement_id,)).fetchone()
        return _row_to_movement(row)

    finally:
        conn.close()


def has_movement(
    slug: str,
    movement_type: MovementType,
    day_key: Optional[str] = None,
    db_path: Optional[str] = None,
) -> bool:
    conn = get_connection(db_path)

    try:
        sql = "SELECT 1 FROM movements WHERE slug = ? AND type = ?"
        params: list = [slug, movement_type.value]
        if day_key is not None:
            sql += " AND day_key = ?"
            params.append(day_key)
        return conn.execute(sql + " LIMIT 1", params).fetchone() is not None

    finally:
        conn.close()


def list_movements(
    day_key: Optional[str] = None,
    types: Optional[Iterable[MovementType]] = None,
    limit: int = 50,
    db_path: Optional[str] = None,
) -> List[Movement]:
    """Movements newest first."""
    conn = get_connection(db_path)

    try:
        clauses = []
        params: list = []
        if day_key is not None:
            clauses.append("day_key = ?")
            params.append(day_key)
        if types:
            type_values = [t.value for t in types]
            clauses.append(f"type IN ({', '.join('?' for _ in type_values)})")
            params.extend(type_values)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(limit)

        cursor = conn.execute(
            f"SELECT * FROM movements {where} ORDER BY created_at DESC, rowid DESC LIMIT ?",
            params,
        )
        return [_row_to_movement(row) for row in cursor.fetchall()]

    finally:
        conn.close()


# Order operations (written by the intake side, read here)

def save_order(order: Order, db_path: Optional[str] = None):
    conn = get_connection(db_path)

    try:
        conn.execute("""
            INSERT OR REPLACE INTO orders (order_id, channel, created_at, items)
            VALUES (?, ?, ?, ?)
        """, (
            order.order_id,
            order.channel.value,
            _ts(order.created_at),
            json.dumps([li.model_dump() for li in order.items]),
        ))
        conn.commit()

    finally:
        conn.close()


def list_orders_between(
    start: datetime,
    end: datetime,
    db_path: Optional[str] = None,
) -> List[Order]:
    """Orders created in [start, end)."""
    conn = get_connection(db_path)

    try:
        cursor = conn.execute("""
            SELECT * FROM orders WHERE created_at >= ? AND created_at < ?
            ORDER BY created_at ASC
        """, (_ts(start), _ts(end)))

        return [
            Order(
                order_id=row['order_id'],
                channel=row['channel'],
                created_at=_parse_ts(row['created_at']),
                items=json.loads(row['items']) if row['items'] else [],
            )
            for row in cursor.fetchall()
        ]

    finally:
        conn.close()

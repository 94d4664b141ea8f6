"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, List

import pytest
from fastapi.testclient import TestClient

# Set test environment before importing app
_TEST_DIR = tempfile.mkdtemp(prefix="kitchencogs-tests-")
os.environ["DEBUG"] = "true"
os.environ["DATABASE_PATH"] = os.path.join(_TEST_DIR, "app.db")
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASSWORD"] = ""
os.environ["SHOP_TIMEZONE"] = "Africa/Lagos"

from kitchencogs.models.common import Kind, OrderChannel, Unit  # noqa: E402
from kitchencogs.models.inventory import CatalogItem  # noqa: E402
from kitchencogs.models.orders import Order, OrderLineItem  # noqa: E402
from kitchencogs.services.clock import ShopClock  # noqa: E402
from kitchencogs.services.inventory_service import InventoryService  # noqa: E402
from kitchencogs.services.notifier import RecordingNotifier  # noqa: E402
from kitchencogs.storage import init_database, save_order  # noqa: E402

# 10:00 in Lagos (UTC+1)
TEST_NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class MutableNow:
    """Time source the tests can move forward."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def now() -> MutableNow:
    return MutableNow(TEST_NOW)


@pytest.fixture
def clock(now: MutableNow) -> ShopClock:
    return ShopClock("Africa/Lagos", now_fn=now)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> str:
    path = str(temp_dir / "kitchencogs.db")
    init_database(path)
    return path


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def service(db_path: str, clock: ShopClock, notifier: RecordingNotifier) -> InventoryService:
    return InventoryService(db_path=db_path, clock=clock, notifier=notifier)


@pytest.fixture
def place_order(db_path: str, now: MutableNow) -> Callable[..., Order]:
    """Save an order as the intake side would, timestamped at the test clock."""
    counter = {"n": 0}

    def _place(*lines, channel: OrderChannel = OrderChannel.ONLINE, created_at: datetime = None) -> Order:
        counter["n"] += 1
        order = Order(
            order_id=f"order-{counter['n']}",
            channel=channel,
            created_at=created_at or now(),
            items=[OrderLineItem(name=name, quantity=qty, price=0) for name, qty in lines],
        )
        save_order(order, db_path=db_path)
        return order

    return _place


@pytest.fixture
def api_client(service: InventoryService) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client backed by the per-test service."""
    from api.dependencies import get_inventory_service
    from api.main import app

    app.dependency_overrides[get_inventory_service] = lambda: service
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def make_item(
    name: str,
    slug: str,
    kind: Kind = Kind.FOOD,
    unit: Unit = Unit.GRAM,
    aliases: List[str] = None,
    item_id: str = None,
) -> CatalogItem:
    return CatalogItem(
        id=item_id or f"id-{slug}",
        name=name,
        slug=slug,
        kind=kind,
        unit=unit,
        aliases=aliases or [],
    )


@pytest.fixture
def sample_catalog() -> List[CatalogItem]:
    """A small kitchen catalog."""
    return [
        make_item("Fried Rice", "friedrice"),
        make_item("Jollof Rice", "jollofrice"),
        make_item("Moi Moi", "moimoi", unit=Unit.PIECE),
        make_item("Chicken", "chicken", kind=Kind.PROTEIN, unit=Unit.PIECE, aliases=["chikin", "Chicken Lap"]),
        make_item("Coca Cola", "cocacola", kind=Kind.DRINK, unit=Unit.PIECE, aliases=["Coke 50cl"]),
    ]

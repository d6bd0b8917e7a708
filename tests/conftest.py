"""
Test configuration for pytest
"""

import pytest
import os
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session
from typing import Generator
from fastapi.testclient import TestClient

# Test environment variables
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["DEFAULT_BRAND_KEY"] = "saffron"

from kitchenflow.core.config import get_settings  # noqa: E402
from kitchenflow.core.database import get_session  # noqa: E402
from kitchenflow.core.events import EventBus  # noqa: E402
from kitchenflow.core.store import RecordStore  # noqa: E402
from kitchenflow.models import (  # noqa: E402
    MenuCategory, MenuItem, Order, OrderItem, OrderStatus, Tenant,
)
from kitchenflow.services.handlers import register_handlers  # noqa: E402


# Create test engine using in-memory SQLite; StaticPool lets handler sessions
# see the same database as the test session
test_engine = create_engine(
    "sqlite:///:memory:",
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def open_test_session() -> Session:
    return Session(test_engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a clean database session for each test"""
    # Create all tables
    SQLModel.metadata.create_all(test_engine)

    # Create session
    with Session(test_engine) as session:
        yield session

    # Cleanup
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def session_factory(db: Session):
    """Opens extra sessions on the test database, like event handlers do"""
    return open_test_session


@pytest.fixture
def store(db: Session) -> RecordStore:
    return RecordStore(db)


@pytest.fixture
def bus() -> EventBus:
    """Event bus without retry delays"""
    return EventBus(max_attempts=3, retry_backoff_base=0)


@pytest.fixture
def wired_bus(bus: EventBus, db: Session) -> EventBus:
    """Event bus with the order pipeline handlers subscribed"""
    register_handlers(bus, open_test_session, get_settings())
    return bus


@pytest.fixture
def test_tenant(db: Session) -> Tenant:
    """Create a test tenant"""
    tenant = Tenant(
        name="Saffron Kitchen",
        slug="saffron",
        email="owner@saffron.example.com",
        is_active=True
    )
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def other_tenant(db: Session) -> Tenant:
    """Create a second tenant for isolation checks"""
    tenant = Tenant(name="Basil House", slug="basil", is_active=True)
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    return tenant


@pytest.fixture
def menu(db: Session, test_tenant: Tenant) -> dict:
    """Create one menu item per station, keyed by station name"""
    categories = {
        "hot": MenuCategory(tenant_id=test_tenant.id, name="Hot Mains", display_order=1),
        "cold": MenuCategory(tenant_id=test_tenant.id, name="Cold Appetizers", display_order=2),
        "bar": MenuCategory(tenant_id=test_tenant.id, name="Beverages", display_order=3),
        "default": MenuCategory(tenant_id=test_tenant.id, name="Chef Specials", display_order=4),
    }
    for category in categories.values():
        db.add(category)
    db.commit()

    items = {
        "hot": MenuItem(
            tenant_id=test_tenant.id, category_id=categories["hot"].id,
            name="Butter Chicken", price=Decimal("14.50")
        ),
        "cold": MenuItem(
            tenant_id=test_tenant.id, category_id=categories["cold"].id,
            name="Papdi Chaat", price=Decimal("6.00")
        ),
        "bar": MenuItem(
            tenant_id=test_tenant.id, category_id=categories["bar"].id,
            name="Mango Lassi", price=Decimal("4.25")
        ),
        "default": MenuItem(
            tenant_id=test_tenant.id, category_id=categories["default"].id,
            name="Tasting Plate", price=Decimal("22.00")
        ),
    }
    for item in items.values():
        db.add(item)
    db.commit()
    for item in items.values():
        db.refresh(item)
    return items


@pytest.fixture
def make_order(db: Session, test_tenant: Tenant):
    """Factory creating an order with one line item per menu item given"""

    def _make_order(menu_items=(), status=OrderStatus.PLACED, tenant=None, timestamps=None):
        tenant = tenant or test_tenant
        order = Order(
            tenant_id=tenant.id,
            status=status,
            timestamps=timestamps or {"placedAt": "2026-01-10T12:00:00"},
            total_amount=sum((item.price for item in menu_items), Decimal("0.00")),
        )
        db.add(order)
        db.commit()

        for position, menu_item in enumerate(menu_items):
            db.add(OrderItem(
                tenant_id=tenant.id,
                order_id=order.id,
                menu_item_id=menu_item.id,
                name_snapshot=menu_item.name,
                quantity=position + 1,
                unit_price=menu_item.price,
                options_snapshot=[{"name": "Spice", "value": "medium"}],
                comment=" no onions " if position == 0 else None,
                sort_order=position,
            ))
        db.commit()
        db.refresh(order)
        return order

    return _make_order


@pytest.fixture
def client(db: Session) -> Generator[TestClient, None, None]:
    """Test client wired to the test database"""
    from kitchenflow.main import create_app

    app = create_app(session_factory=open_test_session)

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

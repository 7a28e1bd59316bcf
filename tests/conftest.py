# tests/conftest.py
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.core.config import Settings, clear_settings_cache, get_settings
from storefront.core.enums import InventoryReason
from storefront.database import Database
from storefront.main import app, create_app
from storefront.models import InventoryEvent, Product

SQLITE_MEMORY_URL = "sqlite+aiosqlite:///:memory:"
ADMIN_API_KEY = "test-admin-key"
OWNER_PASSWORD = "owner-pass"


@pytest.fixture
def settings():
    """Provide test settings"""
    return Settings(
        DATABASE_URL=SQLITE_MEMORY_URL,
        SECRET_KEY="test-secret",
        ADMIN_PASSWORD=OWNER_PASSWORD,
        ADMIN_API_KEY=ADMIN_API_KEY,
        ENVIRONMENT="test",
    )


@pytest.fixture
async def database():
    """A fresh in-memory SQLite store with all tables created."""
    db = Database(SQLITE_MEMORY_URL).open()
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
async def db_session(database):
    """Provide a database session for tests"""
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def seed_product(database):
    """Insert a product with its opening ledger entry, the way product creation does."""
    async def _seed(product_id, stock_qty, price="1.50", name=None, is_active=True):
        async with database.session() as session:
            async with session.begin():
                product = Product(
                    id=product_id,
                    name=name or product_id,
                    price=Decimal(price),
                    stock_qty=stock_qty,
                    is_active=is_active,
                    meta={},
                )
                if stock_qty:
                    product.inventory_events.append(
                        InventoryEvent(delta=stock_qty, reason=InventoryReason.INITIAL.value)
                    )
                session.add(product)
        return product_id

    return _seed


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_API_KEY}


@pytest.fixture
def test_client(settings):
    """
    Client for route tests that override the service dependencies with mocks.
    The lifespan is not run, so no database is opened.
    """
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def app_client(monkeypatch):
    """Full application on an in-memory SQLite store, tables created at startup."""
    monkeypatch.setenv("DATABASE_URL", SQLITE_MEMORY_URL)
    monkeypatch.setenv("CREATE_TABLES_ON_STARTUP", "true")
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("ADMIN_PASSWORD", OWNER_PASSWORD)
    monkeypatch.setenv("ADMIN_API_KEY", ADMIN_API_KEY)
    monkeypatch.setenv("ENVIRONMENT", "test")
    clear_settings_cache()

    with TestClient(create_app()) as client:
        yield client

    clear_settings_cache()

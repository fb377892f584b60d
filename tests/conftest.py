"""Pytest configuration and fixtures."""

import os
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import src.services.realtime as realtime_module
from src.database import Base, get_db
from src.main import app
from src.models.batch import Batch
from src.models.enums import Importance
from src.models.product import Product, normalize_name
from src.models.shopping_entry import ShoppingListEntry

HOUSEHOLD_ID = 1

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace("/pantry_stock", "/pantry_stock_test")
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(autouse=True)
def no_event_publishing(monkeypatch):
    """Keep tests from talking to Redis."""
    monkeypatch.setattr(realtime_module.settings, "publish_events", False)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with database override."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def session_factory():
    """Session factory bound to the test database, for code that opens its own sessions."""
    return TestingSessionLocal


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def make_product(db):
    """Create a product with batches given as (quantity, expiry_date) pairs."""

    def _make(
        name: str,
        importance: Importance = Importance.NORMAL,
        batches: list[tuple[float, date | None]] | None = None,
        min_quantity: float | None = None,
        is_ghost: bool = False,
        household_id: int = HOUSEHOLD_ID,
        location: str = "Pantry",
    ) -> Product:
        product = Product(
            household_id=household_id,
            name=name,
            normalized_name=normalize_name(name),
            category="Pantry",
            unit="units",
            importance=(Importance.GHOST if is_ghost else importance).value,
            min_quantity=min_quantity,
            is_ghost=is_ghost,
        )
        db.add(product)
        db.flush()
        for quantity, expiry in batches or []:
            db.add(
                Batch(
                    product_id=product.id,
                    household_id=household_id,
                    quantity=quantity,
                    location=location,
                    expiry_date=expiry,
                )
            )
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def make_entry(db):
    """Create a shopping list entry."""

    def _make(
        item_name: str,
        status: str = "active",
        is_manual: bool = True,
        quantity: float | None = None,
        household_id: int = HOUSEHOLD_ID,
    ) -> ShoppingListEntry:
        entry = ShoppingListEntry(
            household_id=household_id,
            item_name=item_name,
            normalized_name=normalize_name(item_name),
            category="Pantry",
            priority="normal",
            status=status,
            quantity=quantity,
            is_manual=is_manual,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    return _make

"""
Shared test fixtures for MillStock tests

Provides database setup, the API test client and reference-data fixtures
"""
import os

# Must be set before millstock is imported: settings are read once
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["AUTO_CREATE_TABLES"] = "false"
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from millstock.main import app
from millstock.db.base import Base
from millstock.db.session import get_db

from tests.factories import (
    reset_sequences,
    create_test_client,
    create_test_product,
    create_test_warehouse,
)


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Create all tables for testing using SQLAlchemy metadata"""
    # Import all models to ensure they're registered with Base
    import millstock.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine):
    """Drop all tables after testing"""
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Create a fresh database session for each test"""
    create_tables(engine)
    reset_sequences()

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(engine)


@pytest.fixture
def client(db_session):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def supplier(db_session):
    """A supplier with a zero balance"""
    return create_test_client(db_session, client_type="supplier", company_name="Grain Supplier Ltd")


@pytest.fixture
def customer(db_session):
    """A customer with a zero balance"""
    return create_test_client(db_session, client_type="customer", company_name="Retail Customer Ltd")


@pytest.fixture
def trader(db_session):
    """A client that is both customer and supplier"""
    return create_test_client(db_session, client_type="both", company_name="Two-Way Traders")


@pytest.fixture
def warehouse(db_session):
    return create_test_warehouse(db_session, name="Main Warehouse", code="MAIN")


@pytest.fixture
def second_warehouse(db_session):
    return create_test_warehouse(db_session, name="Overflow Warehouse", code="OVF")


@pytest.fixture
def product(db_session):
    """A raw/finished commodity tracked in kg"""
    return create_test_product(db_session, sku="RICE-001", name="Basmati Rice")


@pytest.fixture
def second_product(db_session):
    return create_test_product(db_session, sku="WHEAT-001", name="Wheat")

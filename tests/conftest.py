"""
Pytest fixtures for the scanstock test suite.

Provides:
- a fresh in-memory SQLite database per test (``engine`` / ``db``)
- a FastAPI TestClient bound to that database (``client``)
- a ScanSession talking to the app through the TestClient (``scan``)
- ``make_item`` for catalog rows
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_FILE"] = ""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from scanstock import database
from scanstock.catalog import service as catalog_service
from scanstock.catalog.schemas import ItemCreate
from scanstock.main import app
from scanstock.scanner.client import InventoryClient
from scanstock.scanner.session import ScanSession

FIXED_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)

ADD_CODE = "##ADD##"
REMOVE_CODE = "##REMOVE##"
SEARCH_CODE = "##SEARCH##"


@pytest.fixture
def engine():
    engine = database.init_engine("sqlite://")
    database.create_tables()
    yield engine
    database.dispose_engine()


@pytest.fixture
def db(engine):
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    # No lifespan: the engine fixture owns the database
    return TestClient(app)


@pytest.fixture
def scan(client):
    return ScanSession(
        InventoryClient(http=client),
        add_code=ADD_CODE,
        remove_code=REMOVE_CODE,
        search_code=SEARCH_CODE,
    )


@pytest.fixture
def make_item(db):
    """
    Upsert a catalog item. Extra fields use attribute names
    (brand=..., sold_order=...).
    """
    def _make(code, model="Widget", **fields):
        fields.setdefault("inventory_date", FIXED_DATE)
        return catalog_service.upsert_item(
            db, ItemCreate(scanned_code=code, model=model, **fields)
        )

    return _make

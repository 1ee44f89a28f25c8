"""
Test configuration and fixtures.
"""
import os
from decimal import Decimal
from typing import Dict, Generator

import pytest

# Configure settings before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEFAULTS"] = "false"

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pantry_pos.core.deps import get_register
from pantry_pos.core.exceptions import StorageError
from pantry_pos.db.session import init_db, make_engine
from pantry_pos.main import app
from pantry_pos.schemas.catalog import Product
from pantry_pos.services.persistence import InMemoryKeyValueStore
from pantry_pos.services.register import Register


class FlakyStore(InMemoryKeyValueStore):
    """In-memory store whose writes can be switched off to simulate a full disk."""

    def __init__(self):
        super().__init__()
        self.fail_writes = False
        self.write_batches = 0

    def set_items(self, items: Dict[str, str]) -> None:
        if self.fail_writes:
            raise StorageError("Storage quota exceeded")
        self.write_batches += 1
        super().set_items(items)


@pytest.fixture
def store() -> FlakyStore:
    return FlakyStore()


@pytest.fixture
def register(store: FlakyStore) -> Register:
    """A register over an in-memory store, seeded with the starter pizza catalog."""
    return Register.open(store, seed_defaults=True)


@pytest.fixture
def sql_session_factory() -> Generator[sessionmaker, None, None]:
    """Session factory over a private in-memory SQLite database."""
    engine = make_engine("sqlite://")
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def client(register: Register) -> Generator[TestClient, None, None]:
    """Create test client with the register dependency overridden."""
    app.dependency_overrides[get_register] = lambda: register

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


def product_named(register: Register, name: str) -> Product:
    for product in register.catalog.products:
        if product.name == name:
            return product
    raise AssertionError(f"No product named {name!r}")


def stock_of(register: Register, name: str) -> Decimal:
    ingredient = register.catalog.get_ingredient(name)
    assert ingredient is not None, f"No ingredient named {name!r}"
    return ingredient.available_quantity


def stock_levels(register: Register) -> Dict[str, Decimal]:
    return {i.name: i.available_quantity for i in register.catalog.ingredients}

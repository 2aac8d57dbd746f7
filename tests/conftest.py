"""
Test configuration and fixtures for the property catalog.
Provides one storage fixture per backend, test data factories and common test utilities.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Iterable, List

from catalog.schemas import PropertyRecord, UserRecord
from catalog.storage import DatabaseStorage, InMemoryStorage, JsonFileStorage, StorageBackend
from catalog.storage import selector


BACKENDS = ["memory", "json", "database"]


def build_backend(name: str, tmp_path: Path) -> StorageBackend:
    """Create an uninitialized backend rooted in a temporary directory."""
    if name == "memory":
        return InMemoryStorage()
    if name == "json":
        return JsonFileStorage(tmp_path / "data")
    if name == "database":
        return DatabaseStorage(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    raise ValueError(f"Unknown backend {name}")


@pytest.fixture(params=BACKENDS)
async def storage(request, tmp_path) -> AsyncGenerator[StorageBackend, None]:
    """Initialized storage backend; the contract tests run once per backend."""
    backend = build_backend(request.param, tmp_path)
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
async def json_storage(tmp_path) -> AsyncGenerator[JsonFileStorage, None]:
    backend = JsonFileStorage(tmp_path / "data")
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
async def database_storage(tmp_path) -> AsyncGenerator[DatabaseStorage, None]:
    backend = DatabaseStorage(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    await backend.initialize()
    yield backend
    await backend.close()


@pytest.fixture
def frozen_clock(monkeypatch) -> datetime:
    """Give every write the same timestamp so ordering falls back to the id tie-break."""
    fixed = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    monkeypatch.setattr("catalog.storage.memory.utcnow", lambda: fixed)
    monkeypatch.setattr("catalog.storage.database.utcnow", lambda: fixed)
    return fixed


@pytest.fixture(autouse=True)
def clean_selector():
    """Never leak a configured process-wide backend between tests."""
    selector.reset_storage()
    yield
    selector.reset_storage()


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        username: str = "operator",
        password: str = "secret123",
        role: str = "user",
        **overrides
    ) -> dict:
        """Create user data dictionary."""
        return {"username": username, "password": password, "role": role, **overrides}

    @staticmethod
    async def create_user(storage: StorageBackend, **kwargs) -> UserRecord:
        """Create a test user in the given storage."""
        return await storage.create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        title: str = "Test Property",
        price: str = "1000.00",
        city: str = "Test City",
        state: str = "TS",
        property_type: str = "house",
        listing_type: str = "sale",
        bedrooms: int = 2,
        bathrooms: int = 1,
        sqft: int = 1000,
        **overrides
    ) -> dict:
        """Create property data dictionary."""
        return {
            "title": title,
            "description": "A beautiful test property",
            "price": price,
            "location": f"{city}, {state}",
            "city": city,
            "state": state,
            "property_type": property_type,
            "listing_type": listing_type,
            "bedrooms": bedrooms,
            "bathrooms": bathrooms,
            "sqft": sqft,
            **overrides,
        }

    @staticmethod
    async def create_property(storage: StorageBackend, **kwargs) -> PropertyRecord:
        """Create a test property in the given storage."""
        return await storage.create_property(PropertyFactory.create_property_data(**kwargs))


# A small catalog with a spread of types, prices, places and statuses
CATALOG_SEED: List[dict] = [
    dict(title="Casa Azul", price="450000.00", city="Rio de Janeiro", state="RJ", bedrooms=3, bathrooms=2,
         property_type="house", listing_type="sale", amenities=["Swimming Pool", "Garden"]),
    dict(title="Casa Verde", price="900000.00", city="Niteroi", state="RJ", bedrooms=4, bathrooms=3,
         property_type="villa", listing_type="sale", status="sold"),
    dict(title="Studio Centro", price="2500.00", city="São Paulo", state="SP", bedrooms=1, bathrooms=1,
         property_type="apartment", listing_type="rent", featured=True, strong_points=["Perto do metrô"]),
    dict(title="Cobertura Leblon", price="3200000.00", city="Rio de Janeiro", state="RJ", bedrooms=5, bathrooms=5,
         property_type="condo", listing_type="sale", featured=True, amenities=["Área gourmet", "pool"]),
    dict(title="Sobrado Jardins", price="1750000.50", city="São Paulo", state="SP", bedrooms=4, bathrooms=3,
         property_type="townhouse", listing_type="sale", status="pending"),
    dict(title="Apartamento Savassi", price="4800.00", city="Belo Horizonte", state="MG", bedrooms=2, bathrooms=2,
         property_type="apartment", listing_type="rent"),
    dict(title="Chalé na Serra", price="610000.00", city="Petrópolis", state="RJ", bedrooms=3, bathrooms=2,
         property_type="house", listing_type="sale", description="Vista para a serra e lareira",
         strong_points=['Vista "serra"', "Lareira"]),
    dict(title="Loft Pinheiros", price="3900.00", city="São Paulo", state="SP", bedrooms=1, bathrooms=1,
         property_type="apartment", listing_type="rent", status="inactive"),
]


async def seed_catalog(storage: StorageBackend, seed: Iterable[dict] = CATALOG_SEED) -> List[PropertyRecord]:
    """Create every seed property in order."""
    created = []
    for entry in seed:
        created.append(await PropertyFactory.create_property(storage, **entry))
    return created


# Utility functions for tests
def titles(records: Iterable[PropertyRecord]) -> List[str]:
    return [record.title for record in records]


def prices(records: Iterable[PropertyRecord]) -> List[Decimal]:
    return [Decimal(record.price) for record in records]


def assert_property_equal(prop1: PropertyRecord, prop2: PropertyRecord, ignore=("updated_at",)):
    """Assert that two property records match, optionally ignoring some fields."""
    assert prop1.model_dump(exclude=set(ignore)) == prop2.model_dump(exclude=set(ignore))

"""
Pytest configuration and fixtures for PyCatalog tests.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import pycatalog.models  # noqa: F401  registers tables on Base.metadata
from pycatalog.api.deps import get_formula_store, get_record_store
from pycatalog.db.base import Base
from pycatalog.main import app
from pycatalog.services.formula_registry import FormulaRegistry
from pycatalog.stores.memory import InMemoryFormulaStore, InMemoryRecordStore

# Three actuators as entered through the catalog form
ACTUATOR_RECORDS = {
    "act-1": {"model": "RA-100", "rated_torque_nm": 40, "weight_kg": 2.0, "gear_ratio": 10},
    "act-2": {"model": "RA-200", "rated_torque_nm": 90, "weight_kg": 4.5, "gear_ratio": 50},
    "act-3": {"model": "RA-300", "rated_torque_nm": 150, "weight_kg": 6.0, "gear_ratio": 100},
}


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    """Record store seeded with three actuators."""
    return InMemoryRecordStore(ACTUATOR_RECORDS)


@pytest.fixture
def formula_store() -> InMemoryFormulaStore:
    return InMemoryFormulaStore()


@pytest.fixture
def registry(formula_store: InMemoryFormulaStore) -> FormulaRegistry:
    return FormulaRegistry(formula_store, reject_duplicates=False)


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """SQLite database file per test function."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def client(
    record_store: InMemoryRecordStore,
    formula_store: InMemoryFormulaStore,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client backed by the in-memory stores."""
    app.dependency_overrides[get_record_store] = lambda: record_store
    app.dependency_overrides[get_formula_store] = lambda: formula_store

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()

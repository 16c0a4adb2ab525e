"""Tests for record endpoints."""

import pytest
from httpx import AsyncClient

from pycatalog.api.deps import get_record_store
from pycatalog.core.config import settings
from pycatalog.core.exceptions import StoreError
from pycatalog.main import app
from pycatalog.stores.memory import InMemoryRecordStore

RECORDS_URL = f"{settings.api_v1_prefix}/records"


@pytest.mark.asyncio
async def test_create_record_computes_derived(client: AsyncClient, registry, record_store):
    await registry.add("area", "width*height")
    await registry.add("volume", "area*depth")

    response = await client.post(
        RECORDS_URL, json={"data": {"width": "2", "height": 3, "depth": 4, "notes": ""}}
    )

    assert response.status_code == 201
    data = response.json()
    assert data["derived"] == {"area": 6, "volume": 24}
    assert data["data"]["notes"] is None

    stored = await record_store.get(data["id"])
    assert stored.data["volume"] == 24


@pytest.mark.asyncio
async def test_create_record_with_failing_formula(client: AsyncClient, registry):
    await registry.add("torque_density", "rated_torque_nm / weight_kg")

    response = await client.post(RECORDS_URL, json={"data": {"rated_torque_nm": 40}})

    assert response.status_code == 201
    assert response.json()["derived"] == {"torque_density": None}


@pytest.mark.asyncio
async def test_preview_record(client: AsyncClient, registry, record_store):
    await registry.add("area", "width*height")

    response = await client.post(f"{RECORDS_URL}/preview", json={"data": {"width": 2, "height": 5}})

    assert response.status_code == 200
    data = response.json()
    assert data["id"] is None
    assert data["data"]["area"] == 10
    assert len(await record_store.list_all()) == 3


class UnavailableRecordStore(InMemoryRecordStore):
    async def insert(self, values):
        raise StoreError("database unavailable")


@pytest.mark.asyncio
async def test_create_record_store_failure(client: AsyncClient, registry):
    await registry.add("area", "width*height")
    app.dependency_overrides[get_record_store] = lambda: UnavailableRecordStore()

    response = await client.post(RECORDS_URL, json={"data": {"width": 2, "height": 5}})

    assert response.status_code == 503
    error = response.json()["error"]
    assert error["code"] == "STORE_ERROR"
    assert error["message"] == "database unavailable"


@pytest.mark.asyncio
async def test_create_record_with_overlong_formula(client: AsyncClient, registry):
    await registry.add("long", "+".join(["width"] * 1500))
    await registry.add("area", "width*height")

    response = await client.post(RECORDS_URL, json={"data": {"width": 2, "height": 5}})

    assert response.status_code == 201
    assert response.json()["derived"] == {"long": None, "area": 10}

"""Unit tests for RecordService."""

import pytest

from pycatalog.services.record import RecordService, clean_form_values
from pycatalog.stores.memory import InMemoryRecordStore


@pytest.fixture
def record_service(registry) -> RecordService:
    return RecordService(InMemoryRecordStore(), registry)


class TestCleanFormValues:
    """Tests for clean_form_values."""

    def test_blank_text_becomes_none(self):
        cleaned = clean_form_values(
            {"model": " RA-400 ", "notes": "", "weight_kg": "  ", "rated_torque_nm": 40}
        )
        assert cleaned == {"model": "RA-400", "notes": None, "weight_kg": None, "rated_torque_nm": 40}

    def test_non_text_untouched(self):
        assert clean_form_values({"a": 0, "b": False, "c": None}) == {"a": 0, "b": False, "c": None}


class TestRecordService:
    """Tests for RecordService class."""

    @pytest.mark.asyncio
    async def test_create_record_stores_derived_values(self, record_service, registry):
        await registry.add("area", "width*height")
        await registry.add("volume", "area*depth")

        response = await record_service.create_record({"width": 2, "height": 3, "depth": 4})

        assert response.id is not None
        assert response.derived == {"area": 6, "volume": 24}
        stored = await record_service.record_store.get(response.id)
        assert stored.data == {"width": 2, "height": 3, "depth": 4, "area": 6, "volume": 24}

    @pytest.mark.asyncio
    async def test_failed_formula_stores_none(self, record_service, registry):
        await registry.add("torque_density", "rated_torque_nm / weight_kg")
        await registry.add("output_torque", "rated_torque_nm * gear_ratio")

        response = await record_service.create_record(
            {"rated_torque_nm": "40", "weight_kg": "0", "gear_ratio": "10"}
        )

        stored = await record_service.record_store.get(response.id)
        assert stored.data["torque_density"] is None
        assert stored.data["output_torque"] == 400

    @pytest.mark.asyncio
    async def test_blank_values_stored_as_none(self, record_service, registry):
        await registry.add("double_length", "length_mm * 2")

        response = await record_service.create_record({"length_mm": "", "model": "RA-1"})

        stored = await record_service.record_store.get(response.id)
        assert stored.data["length_mm"] is None
        assert stored.data["double_length"] == 0

    @pytest.mark.asyncio
    async def test_inactive_formulas_skipped(self, record_service, registry):
        await registry.add("area", "width*height", is_active=False)
        response = await record_service.create_record({"width": 2, "height": 3})
        assert response.derived == {}

    @pytest.mark.asyncio
    async def test_preview_does_not_persist(self, record_service, registry):
        await registry.add("area", "width*height")

        preview = await record_service.preview_record({"width": 2, "height": 3})

        assert preview.id is None
        assert preview.data["area"] == 6
        assert await record_service.record_store.list_all() == []

"""Integration tests for the SQLAlchemy stores against SQLite."""

import pytest

from pycatalog.core.exceptions import FormulaNotFoundError, RecordNotFoundError, StoreError
from pycatalog.models.record import CatalogRecord
from pycatalog.schemas.formula import FormulaCreate
from pycatalog.services.formula import FormulaService
from pycatalog.services.formula_registry import FormulaRegistry
from pycatalog.services.recompute import RecomputeCoordinator
from pycatalog.stores.sql import SqlFormulaStore, SqlRecordStore


class TestSqlRecordStore:
    """Tests for SqlRecordStore."""

    @pytest.mark.asyncio
    async def test_insert_and_get(self, session_factory):
        store = SqlRecordStore(session_factory)
        record_id = await store.insert({"model": "RA-100", "rated_torque_nm": 40})

        record = await store.get(record_id)
        assert record.id == record_id
        assert record.data == {"model": "RA-100", "rated_torque_nm": 40}

    @pytest.mark.asyncio
    async def test_update_fields_merges(self, session_factory):
        store = SqlRecordStore(session_factory)
        record_id = await store.insert({"model": "RA-100", "rated_torque_nm": 40})

        await store.update_fields(record_id, {"torque_density": 20.0, "output_torque": None})

        record = await store.get(record_id)
        assert record.data == {
            "model": "RA-100",
            "rated_torque_nm": 40,
            "torque_density": 20.0,
            "output_torque": None,
        }

    @pytest.mark.asyncio
    async def test_list_all(self, session_factory):
        store = SqlRecordStore(session_factory)
        ids = {await store.insert({"n": i}) for i in range(3)}
        assert {r.id for r in await store.list_all()} == ids

    @pytest.mark.asyncio
    async def test_unknown_record(self, session_factory):
        store = SqlRecordStore(session_factory)
        with pytest.raises(RecordNotFoundError):
            await store.get("missing")
        with pytest.raises(RecordNotFoundError):
            await store.update_fields("missing", {"a": 1})

    @pytest.mark.asyncio
    async def test_update_fields_keeps_corrupt_row(self, session_factory):
        """Unreadable stored JSON is reported, not overwritten with derived fields only."""
        store = SqlRecordStore(session_factory)
        record_id = await store.insert({"model": "RA-100"})
        async with session_factory() as session:
            row = await session.get(CatalogRecord, record_id)
            row.data = "{bad"
            await session.commit()

        with pytest.raises(StoreError) as exc_info:
            await store.update_fields(record_id, {"torque_density": 20.0})
        assert exc_info.value.record_id == record_id
        assert not isinstance(exc_info.value, RecordNotFoundError)

        async with session_factory() as session:
            row = await session.get(CatalogRecord, record_id)
            assert row.data == "{bad"

    @pytest.mark.asyncio
    async def test_update_fields_rejects_non_object_json(self, session_factory):
        store = SqlRecordStore(session_factory)
        record_id = await store.insert({})
        async with session_factory() as session:
            row = await session.get(CatalogRecord, record_id)
            row.data = "[1, 2]"
            await session.commit()

        with pytest.raises(StoreError):
            await store.update_fields(record_id, {"a": 1})


class TestSqlFormulaStore:
    """Tests for SqlFormulaStore."""

    @pytest.mark.asyncio
    async def test_positions_follow_creation_order(self, session_factory):
        store = SqlFormulaStore(session_factory)
        for name in ("zeta", "alpha", "mid"):
            await store.insert_formula(name, "1")

        formulas = await store.list_formulas()
        assert [f.field_name for f in formulas] == ["zeta", "alpha", "mid"]
        assert [f.position for f in formulas] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_update_formula(self, session_factory):
        store = SqlFormulaStore(session_factory)
        formula = await store.insert_formula("area", "width * height", units="mm2")

        updated = await store.update_formula(formula.id, expression="width * height / 2")
        assert updated.expression == "width * height / 2"
        assert updated.units == "mm2"
        assert updated.position == formula.position

        toggled = await store.update_formula(formula.id, is_active=False)
        assert toggled.is_active is False

    @pytest.mark.asyncio
    async def test_update_rejects_store_owned_columns(self, session_factory):
        store = SqlFormulaStore(session_factory)
        formula = await store.insert_formula("area", "1")
        with pytest.raises(ValueError):
            await store.update_formula(formula.id, position=99)

    @pytest.mark.asyncio
    async def test_delete_formula(self, session_factory):
        store = SqlFormulaStore(session_factory)
        formula = await store.insert_formula("area", "1")
        await store.delete_formula(formula.id)

        assert await store.list_formulas() == []
        with pytest.raises(FormulaNotFoundError):
            await store.get_formula(formula.id)
        with pytest.raises(FormulaNotFoundError):
            await store.delete_formula(formula.id)


class TestSqlRecompute:
    """End-to-end formula save and recomputation over SQL stores."""

    @pytest.mark.asyncio
    async def test_save_then_recompute(self, session_factory):
        record_store = SqlRecordStore(session_factory)
        ids = [
            await record_store.insert({"width": 2, "height": 3, "depth": 4}),
            await record_store.insert({"width": 1, "height": 1, "depth": 10}),
            await record_store.insert({"width": 5, "height": 2}),
        ]
        service = FormulaService(
            FormulaRegistry(SqlFormulaStore(session_factory), reject_duplicates=False),
            record_store,
            RecomputeCoordinator(record_store, concurrency=1),
        )

        await service.add_formula(FormulaCreate(field_name="area", expression="width*height"))
        response = await service.add_formula(
            FormulaCreate(field_name="volume", expression="area*depth")
        )

        assert response.recompute.total == 3
        assert response.recompute.all_succeeded
        first, second, third = [(await record_store.get(i)).data for i in ids]
        assert (first["area"], first["volume"]) == (6, 24)
        assert (second["area"], second["volume"]) == (1, 10)
        assert (third["area"], third["volume"]) == (10, None)

"""SQLAlchemy-backed stores.

Each call opens its own session from the factory, so concurrent record
writes during a bulk recomputation never share a session.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pycatalog.core.exceptions import FormulaNotFoundError, RecordNotFoundError, StoreError
from pycatalog.core.logging import get_logger
from pycatalog.models.formula import Formula
from pycatalog.models.record import CatalogRecord
from pycatalog.schemas.formula import FormulaDefinition
from pycatalog.schemas.record import Record
from pycatalog.stores.base import FormulaStore, RecordStore

logger = get_logger(__name__)

# Columns an admin action may change; id and position are store-owned
_UPDATABLE_FORMULA_COLUMNS = frozenset({"field_name", "expression", "units", "is_active"})


class SqlRecordStore(RecordStore):
    """Record store over the ``records`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_all(self) -> list[Record]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(CatalogRecord).order_by(CatalogRecord.created_at, CatalogRecord.id)
                )
                return [Record(id=row.id, data=row.get_data()) for row in result.scalars()]
        except SQLAlchemyError as e:
            raise StoreError("Failed to list records", original_error=e) from e

    async def get(self, record_id: str) -> Record:
        try:
            async with self._session_factory() as session:
                row = await session.get(CatalogRecord, record_id)
        except SQLAlchemyError as e:
            raise StoreError("Failed to load record", record_id=record_id, original_error=e) from e
        if row is None:
            raise RecordNotFoundError(record_id)
        return Record(id=row.id, data=row.get_data())

    async def update_fields(self, record_id: str, values: Mapping[str, Any]) -> None:
        try:
            async with self._session_factory() as session:
                row = await session.get(CatalogRecord, record_id)
                if row is None:
                    raise RecordNotFoundError(record_id)
                try:
                    data = row.load_data()
                except ValueError as e:
                    # Rewriting would drop the raw attributes
                    raise StoreError(
                        "Stored attributes are not valid JSON",
                        record_id=record_id,
                        original_error=e,
                    ) from e
                data.update(values)
                row.set_data(data)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(
                "Failed to update record", record_id=record_id, original_error=e
            ) from e

    async def insert(self, values: Mapping[str, Any]) -> str:
        try:
            async with self._session_factory() as session:
                row = CatalogRecord()
                row.set_data(dict(values))
                session.add(row)
                await session.commit()
                logger.debug(f"Inserted record {row.id}")
                return row.id
        except SQLAlchemyError as e:
            raise StoreError("Failed to insert record", original_error=e) from e


class SqlFormulaStore(FormulaStore):
    """Formula store over the ``formulas`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_formulas(self) -> list[FormulaDefinition]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Formula).order_by(Formula.position, Formula.created_at)
                )
                return [FormulaDefinition.model_validate(row) for row in result.scalars()]
        except SQLAlchemyError as e:
            raise StoreError("Failed to list formulas", original_error=e) from e

    async def get_formula(self, formula_id: str) -> FormulaDefinition:
        try:
            async with self._session_factory() as session:
                row = await session.get(Formula, formula_id)
        except SQLAlchemyError as e:
            raise StoreError("Failed to load formula", original_error=e) from e
        if row is None:
            raise FormulaNotFoundError(formula_id)
        return FormulaDefinition.model_validate(row)

    async def insert_formula(
        self,
        field_name: str,
        expression: str,
        units: str | None = None,
        is_active: bool = True,
    ) -> FormulaDefinition:
        try:
            async with self._session_factory() as session:
                last_position = await session.scalar(select(func.max(Formula.position)))
                row = Formula(
                    field_name=field_name,
                    expression=expression,
                    units=units,
                    is_active=is_active,
                    position=(last_position or 0) + 1,
                )
                session.add(row)
                await session.commit()
                await session.refresh(row)
                return FormulaDefinition.model_validate(row)
        except SQLAlchemyError as e:
            raise StoreError("Failed to insert formula", original_error=e) from e

    async def update_formula(self, formula_id: str, **changes: Any) -> FormulaDefinition:
        unknown = set(changes) - _UPDATABLE_FORMULA_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update formula columns: {sorted(unknown)}")
        try:
            async with self._session_factory() as session:
                row = await session.get(Formula, formula_id)
                if row is None:
                    raise FormulaNotFoundError(formula_id)
                for key, value in changes.items():
                    setattr(row, key, value)
                await session.commit()
                await session.refresh(row)
                return FormulaDefinition.model_validate(row)
        except SQLAlchemyError as e:
            raise StoreError("Failed to update formula", original_error=e) from e

    async def delete_formula(self, formula_id: str) -> None:
        try:
            async with self._session_factory() as session:
                row = await session.get(Formula, formula_id)
                if row is None:
                    raise FormulaNotFoundError(formula_id)
                await session.delete(row)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError("Failed to delete formula", original_error=e) from e

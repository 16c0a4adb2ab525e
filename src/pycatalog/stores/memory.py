"""In-process stores.

Used by tests and for local development without a database. Records are
deep-copied on the way in and out so callers can never mutate stored state
by holding on to a returned dict.
"""

import copy
from collections.abc import Mapping
from typing import Any

from pycatalog.core.exceptions import FormulaNotFoundError, RecordNotFoundError
from pycatalog.db.base import generate_uuid
from pycatalog.schemas.formula import FormulaDefinition
from pycatalog.schemas.record import Record
from pycatalog.stores.base import FormulaStore, RecordStore


class InMemoryRecordStore(RecordStore):
    """Record store backed by a dict, in insertion order."""

    def __init__(self, records: Mapping[str, Mapping[str, Any]] | None = None):
        self._records: dict[str, dict[str, Any]] = {
            record_id: dict(data) for record_id, data in (records or {}).items()
        }

    async def list_all(self) -> list[Record]:
        return [
            Record(id=record_id, data=copy.deepcopy(data))
            for record_id, data in self._records.items()
        ]

    async def get(self, record_id: str) -> Record:
        if record_id not in self._records:
            raise RecordNotFoundError(record_id)
        return Record(id=record_id, data=copy.deepcopy(self._records[record_id]))

    async def update_fields(self, record_id: str, values: Mapping[str, Any]) -> None:
        if record_id not in self._records:
            raise RecordNotFoundError(record_id)
        self._records[record_id].update(copy.deepcopy(dict(values)))

    async def insert(self, values: Mapping[str, Any]) -> str:
        record_id = generate_uuid()
        self._records[record_id] = copy.deepcopy(dict(values))
        return record_id


class InMemoryFormulaStore(FormulaStore):
    """Formula store backed by a dict."""

    def __init__(self):
        self._formulas: dict[str, FormulaDefinition] = {}
        self._next_position = 1

    async def list_formulas(self) -> list[FormulaDefinition]:
        return sorted(self._formulas.values(), key=lambda f: f.position)

    async def get_formula(self, formula_id: str) -> FormulaDefinition:
        try:
            return self._formulas[formula_id]
        except KeyError:
            raise FormulaNotFoundError(formula_id) from None

    async def insert_formula(
        self,
        field_name: str,
        expression: str,
        units: str | None = None,
        is_active: bool = True,
    ) -> FormulaDefinition:
        formula = FormulaDefinition(
            id=generate_uuid(),
            field_name=field_name,
            expression=expression,
            units=units,
            is_active=is_active,
            position=self._next_position,
        )
        self._next_position += 1
        self._formulas[formula.id] = formula
        return formula

    async def update_formula(self, formula_id: str, **changes: Any) -> FormulaDefinition:
        formula = await self.get_formula(formula_id)
        updated = formula.model_copy(update=changes)
        self._formulas[formula_id] = updated
        return updated

    async def delete_formula(self, formula_id: str) -> None:
        if self._formulas.pop(formula_id, None) is None:
            raise FormulaNotFoundError(formula_id)

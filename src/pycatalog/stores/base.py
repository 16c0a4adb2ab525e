"""Store interfaces consumed by the formula engine.

The record and formula tables live in an external store. Every call may
fail, and the engine never assumes consistency beyond a single call.
Implementations raise ``StoreError`` (or a subclass) for failures and
``RecordNotFoundError`` / ``FormulaNotFoundError`` for unknown IDs.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from pycatalog.schemas.formula import FormulaDefinition
from pycatalog.schemas.record import Record


class RecordStore(ABC):
    """Catalog record table."""

    @abstractmethod
    async def list_all(self) -> list[Record]:
        """Return every record."""

    @abstractmethod
    async def get(self, record_id: str) -> Record:
        """Return one record by ID."""

    @abstractmethod
    async def update_fields(self, record_id: str, values: Mapping[str, Any]) -> None:
        """Overwrite the given attributes of one record, leaving the rest untouched."""

    @abstractmethod
    async def insert(self, values: Mapping[str, Any]) -> str:
        """Insert a record and return its new ID."""


class FormulaStore(ABC):
    """Formula definition table."""

    @abstractmethod
    async def list_formulas(self) -> list[FormulaDefinition]:
        """Return all formulas ordered by ``position``."""

    @abstractmethod
    async def get_formula(self, formula_id: str) -> FormulaDefinition:
        """Return one formula by ID."""

    @abstractmethod
    async def insert_formula(
        self,
        field_name: str,
        expression: str,
        units: str | None = None,
        is_active: bool = True,
    ) -> FormulaDefinition:
        """Insert a formula at the end of the creation order."""

    @abstractmethod
    async def update_formula(self, formula_id: str, **changes: Any) -> FormulaDefinition:
        """Apply column changes to one formula and return it."""

    @abstractmethod
    async def delete_formula(self, formula_id: str) -> None:
        """Delete one formula."""

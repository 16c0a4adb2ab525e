"""
FastAPI dependency injection functions.

Stores are built over the shared session factory; tests override
``get_record_store`` and ``get_formula_store`` with in-memory stores.
"""

from typing import Annotated

from fastapi import Depends

from pycatalog.db.session import get_session_factory
from pycatalog.services.formula import FormulaService
from pycatalog.services.formula_registry import FormulaRegistry
from pycatalog.services.record import RecordService
from pycatalog.stores.base import FormulaStore, RecordStore
from pycatalog.stores.sql import SqlFormulaStore, SqlRecordStore


def get_record_store() -> RecordStore:
    """Get the record store."""
    return SqlRecordStore(get_session_factory())


def get_formula_store() -> FormulaStore:
    """Get the formula store."""
    return SqlFormulaStore(get_session_factory())


def get_formula_registry(
    store: Annotated[FormulaStore, Depends(get_formula_store)],
) -> FormulaRegistry:
    return FormulaRegistry(store)


def get_formula_service(
    registry: Annotated[FormulaRegistry, Depends(get_formula_registry)],
    record_store: Annotated[RecordStore, Depends(get_record_store)],
) -> FormulaService:
    """Get formula service instance."""
    return FormulaService(registry, record_store)


def get_record_service(
    registry: Annotated[FormulaRegistry, Depends(get_formula_registry)],
    record_store: Annotated[RecordStore, Depends(get_record_store)],
) -> RecordService:
    """Get record service instance."""
    return RecordService(record_store, registry)


# Type aliases for common dependencies
FormulaServiceDep = Annotated[FormulaService, Depends(get_formula_service)]
RecordServiceDep = Annotated[RecordService, Depends(get_record_service)]

"""Pydantic schemas for PyCatalog."""

from pycatalog.schemas.formula import (
    FormulaCreate,
    FormulaDefinition,
    FormulaUpdate,
    RecomputeReport,
)
from pycatalog.schemas.record import Record, RecordCreate, RecordResponse

__all__ = [
    "FormulaCreate",
    "FormulaDefinition",
    "FormulaUpdate",
    "RecomputeReport",
    "Record",
    "RecordCreate",
    "RecordResponse",
]

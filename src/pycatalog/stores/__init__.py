"""Record and formula stores."""

from pycatalog.stores.base import FormulaStore, RecordStore
from pycatalog.stores.memory import InMemoryFormulaStore, InMemoryRecordStore
from pycatalog.stores.sql import SqlFormulaStore, SqlRecordStore

__all__ = [
    "FormulaStore",
    "RecordStore",
    "InMemoryFormulaStore",
    "InMemoryRecordStore",
    "SqlFormulaStore",
    "SqlRecordStore",
]

"""SQLAlchemy models for PyCatalog."""

from pycatalog.models.formula import Formula
from pycatalog.models.record import CatalogRecord

__all__ = [
    "Formula",
    "CatalogRecord",
]

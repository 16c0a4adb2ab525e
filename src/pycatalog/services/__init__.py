"""Service layer modules."""

from pycatalog.services.computation import ComputationPipeline, compute
from pycatalog.services.formula import FormulaService
from pycatalog.services.formula_registry import FormulaRegistry
from pycatalog.services.recompute import RecomputeCoordinator
from pycatalog.services.record import RecordService, clean_form_values

__all__ = [
    "ComputationPipeline",
    "FormulaRegistry",
    "FormulaService",
    "RecomputeCoordinator",
    "RecordService",
    "clean_form_values",
    "compute",
]

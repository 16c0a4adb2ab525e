"""Record creation with derived attributes computed up front."""

from collections.abc import Mapping
from typing import Any

from pycatalog.core.logging import get_logger
from pycatalog.schemas.record import RecordResponse
from pycatalog.services.computation import ComputationPipeline
from pycatalog.services.formula_registry import FormulaRegistry
from pycatalog.stores.base import RecordStore

logger = get_logger(__name__)


def clean_form_values(values: Mapping[str, Any]) -> dict[str, Any]:
    """
    Normalise raw form input before computation.

    Blank text becomes ``None`` so it is stored as a missing value rather
    than an empty string. Surrounding whitespace is stripped from text.
    """
    cleaned: dict[str, Any] = {}
    for name, value in values.items():
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[name] = value
    return cleaned


class RecordService:
    """Service for creating catalog records."""

    def __init__(
        self,
        record_store: RecordStore,
        registry: FormulaRegistry,
        pipeline: ComputationPipeline | None = None,
    ) -> None:
        self.record_store = record_store
        self.registry = registry
        self.pipeline = pipeline or ComputationPipeline()

    async def preview_record(self, values: Mapping[str, Any]) -> RecordResponse:
        """Compute derived attributes for form values without saving them."""
        data = clean_form_values(values)
        derived = self.pipeline.compute(data, await self.registry.list_active())
        return RecordResponse(data={**data, **derived}, derived=derived)

    async def create_record(self, values: Mapping[str, Any]) -> RecordResponse:
        """
        Create a record with its derived attributes filled in.

        Active formulas run once over the submitted values and the results
        are merged into the record before the single insert. A failed
        formula stores ``None`` for its field; the record is still created.

        Args:
            values: Raw attribute values from the creation form

        Returns:
            The created record with its new ID

        Raises:
            StoreError: If the insert fails
        """
        preview = await self.preview_record(values)
        record_id = await self.record_store.insert(preview.data)
        logger.info(
            f"Created record {record_id}",
            extra={
                "record_id": record_id,
                "failed_fields": [k for k, v in preview.derived.items() if v is None],
            },
        )
        return preview.model_copy(update={"id": record_id})

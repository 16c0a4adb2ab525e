"""Formula admin actions and the recomputation they trigger."""

import asyncio
from collections.abc import Mapping
from typing import Any

from pycatalog.core.exceptions import EvalError
from pycatalog.formula.parser import get_parser
from pycatalog.schemas.formula import (
    FormulaCreate,
    FormulaDefinition,
    FormulaDiagnostics,
    FormulaPreviewResponse,
    FormulaSaveResponse,
    ForwardReference,
    RecomputeReport,
)
from pycatalog.services.formula_registry import FormulaRegistry
from pycatalog.services.recompute import RecomputeCoordinator
from pycatalog.stores.base import RecordStore


class FormulaService:
    """Service for formula admin operations.

    Adding a formula, saving an edited expression and toggling a formula
    on or off each run a bulk recomputation so stored derived values
    follow the current formulas. Deleting does not.
    """

    def __init__(
        self,
        registry: FormulaRegistry,
        record_store: RecordStore,
        coordinator: RecomputeCoordinator | None = None,
    ) -> None:
        self.registry = registry
        self.record_store = record_store
        self.coordinator = coordinator or RecomputeCoordinator(record_store)

    async def list_formulas(self) -> list[FormulaDefinition]:
        return await self.registry.list_all()

    async def add_formula(self, formula_data: FormulaCreate) -> FormulaSaveResponse:
        """Add a formula, then recompute every record.

        Raises:
            RegistryError: If the registry rejects the formula
            StoreError: If records cannot be listed for recomputation
        """
        formula = await self.registry.add(
            field_name=formula_data.field_name,
            expression=formula_data.expression,
            units=formula_data.units,
            is_active=formula_data.is_active,
        )
        report = await self.recompute()
        return FormulaSaveResponse(formula=formula, recompute=report)

    async def save_expression(self, formula_id: str, expression: str) -> FormulaSaveResponse:
        """Save an edited expression, then recompute every record."""
        formula = await self.registry.update(formula_id, expression)
        report = await self.recompute()
        return FormulaSaveResponse(formula=formula, recompute=report)

    async def set_active(self, formula_id: str, is_active: bool) -> FormulaSaveResponse:
        """Toggle a formula; recompute only if the active set changed."""
        current = await self.registry.get(formula_id)
        if current.is_active == is_active:
            return FormulaSaveResponse(formula=current)

        formula = await self.registry.set_active(formula_id, is_active)
        report = await self.recompute()
        return FormulaSaveResponse(formula=formula, recompute=report)

    async def delete_formula(self, formula_id: str) -> None:
        await self.registry.delete(formula_id)

    async def recompute(
        self,
        record_ids: list[str] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RecomputeReport:
        """
        Recompute derived attributes with the current active formulas.

        The active formulas are read once here and used for the whole pass.

        Args:
            record_ids: Only these records (e.g. earlier failures); all if None
            cancel_event: Stops the pass from starting further records
        """
        formulas = await self.registry.list_active()
        if record_ids is not None:
            return await self.coordinator.recompute_records(
                formulas, record_ids, cancel_event=cancel_event
            )
        return await self.coordinator.recompute_all(formulas, cancel_event=cancel_event)

    async def diagnostics(self) -> FormulaDiagnostics:
        """Duplicate, ordering and syntax checks for the admin page."""
        duplicates = await self.registry.find_duplicate_fields()
        order = await self.registry.check_ordering()
        return FormulaDiagnostics(
            duplicate_fields=duplicates,
            forward_references=[
                ForwardReference(field_name=name, references=ref)
                for name, ref in order.forward_references
            ],
            circular_fields=order.circular_fields,
            malformed_fields=order.malformed_fields,
            suggested_order=order.suggested_order,
        )

    def preview_expression(
        self,
        expression: str,
        bindings: Mapping[str, Any],
    ) -> FormulaPreviewResponse:
        """Evaluate an expression against sample values without saving it."""
        response = FormulaPreviewResponse()
        try:
            response.identifiers = sorted(get_parser().get_identifiers(expression))
            response.value = self.coordinator.pipeline.evaluator.evaluate(expression, bindings)
        except EvalError as e:
            response.error_code = e.code
            response.error = e.error
        return response


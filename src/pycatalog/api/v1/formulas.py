"""
Formula endpoints.

Admin actions on formula definitions. Saving, adding and toggling a
formula recompute every record before the response is returned; the
response carries the recomputation report.
"""

from fastapi import APIRouter, status

from pycatalog.api.deps import FormulaServiceDep
from pycatalog.schemas.formula import (
    FormulaActiveUpdate,
    FormulaCreate,
    FormulaDefinition,
    FormulaDiagnostics,
    FormulaListResponse,
    FormulaPreviewRequest,
    FormulaPreviewResponse,
    FormulaSaveResponse,
    FormulaUpdate,
    RecomputeReport,
    RecomputeRequest,
)

router = APIRouter()


@router.get("", response_model=FormulaListResponse)
async def list_formulas(formula_service: FormulaServiceDep) -> FormulaListResponse:
    """
    List all formulas, active or not.

    Formulas are returned in the order a computation pass runs them.
    """
    formulas = await formula_service.list_formulas()
    return FormulaListResponse(items=formulas, total=len(formulas))


@router.post(
    "",
    response_model=FormulaSaveResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_formula(
    formula_data: FormulaCreate,
    formula_service: FormulaServiceDep,
) -> FormulaSaveResponse:
    """
    Add a formula and recompute every record.

    The new formula runs after all existing ones.
    """
    return await formula_service.add_formula(formula_data)


@router.get("/diagnostics", response_model=FormulaDiagnostics)
async def get_diagnostics(formula_service: FormulaServiceDep) -> FormulaDiagnostics:
    """
    Check the active formulas for problems.

    Reports duplicate field names, formulas that read a field computed
    later in the order, circular references and expressions that do not
    parse.
    """
    return await formula_service.diagnostics()


@router.post("/preview", response_model=FormulaPreviewResponse)
async def preview_formula(
    preview_data: FormulaPreviewRequest,
    formula_service: FormulaServiceDep,
) -> FormulaPreviewResponse:
    """Evaluate an expression against sample values without saving it."""
    return formula_service.preview_expression(preview_data.expression, preview_data.bindings)


@router.post("/recompute", response_model=RecomputeReport)
async def recompute(
    formula_service: FormulaServiceDep,
    recompute_data: RecomputeRequest | None = None,
) -> RecomputeReport:
    """
    Recompute derived attributes.

    Pass ``record_ids`` (e.g. ``failed_record_ids`` from an earlier report)
    to retry specific records; omit it to recompute all records.
    """
    record_ids = recompute_data.record_ids if recompute_data else None
    return await formula_service.recompute(record_ids=record_ids)


@router.get("/{formula_id}", response_model=FormulaDefinition)
async def get_formula(
    formula_id: str,
    formula_service: FormulaServiceDep,
) -> FormulaDefinition:
    return await formula_service.registry.get(formula_id)


@router.patch("/{formula_id}", response_model=FormulaSaveResponse)
async def update_formula(
    formula_id: str,
    formula_data: FormulaUpdate,
    formula_service: FormulaServiceDep,
) -> FormulaSaveResponse:
    """
    Save an edited expression and recompute every record.

    Records that could not be written are listed in
    ``recompute.failed_record_ids``.
    """
    return await formula_service.save_expression(formula_id, formula_data.expression)


@router.post("/{formula_id}/active", response_model=FormulaSaveResponse)
async def set_formula_active(
    formula_id: str,
    active_data: FormulaActiveUpdate,
    formula_service: FormulaServiceDep,
) -> FormulaSaveResponse:
    """
    Turn a formula on or off.

    Records are recomputed only when the flag actually changes.
    """
    return await formula_service.set_active(formula_id, active_data.is_active)


@router.delete("/{formula_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_formula(
    formula_id: str,
    formula_service: FormulaServiceDep,
) -> None:
    """
    Delete a formula.

    Values it computed earlier stay on the records.
    """
    await formula_service.delete_formula(formula_id)

"""Formula schemas for request/response validation."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class FormulaDefinition(BaseModel):
    """A named expression computing one derived attribute."""

    id: str
    field_name: str = Field(..., description="Attribute the formula computes")
    expression: str = Field(..., description="Arithmetic expression")
    units: Optional[str] = Field(None, description="Display units, e.g. Nm/kg")
    is_active: bool = Field(default=True, description="Whether the formula runs")
    position: int = Field(default=0, description="Creation sequence; formulas run in this order")

    model_config = ConfigDict(from_attributes=True, frozen=True)


class FormulaCreate(BaseModel):
    """Schema for adding a formula.

    Blank names and expressions are rejected by the registry, not here, so
    the administrator sees the registry's error.
    """

    field_name: str = Field(..., max_length=255, description="Attribute the formula computes")
    expression: str = Field(..., description="Arithmetic expression")
    units: Optional[str] = Field(None, max_length=64, description="Display units")
    is_active: bool = Field(default=True, description="Whether the formula runs")


class FormulaUpdate(BaseModel):
    """Schema for saving an edited expression."""

    expression: str = Field(..., description="New expression text")


class FormulaActiveUpdate(BaseModel):
    """Schema for toggling a formula on or off."""

    is_active: bool


class RecomputeReport(BaseModel):
    """Outcome of a bulk recomputation pass."""

    total: int = 0
    succeeded_count: int = 0
    failed_record_ids: list[str] = Field(default_factory=list)
    cancelled: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed_count(self) -> int:
        return len(self.failed_record_ids)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_succeeded(self) -> bool:
        return not self.failed_record_ids and not self.cancelled


class FormulaSaveResponse(BaseModel):
    """Formula after an admin action plus the recomputation it triggered."""

    formula: FormulaDefinition
    recompute: Optional[RecomputeReport] = None


class RecomputeRequest(BaseModel):
    """Retry recomputation for specific records, or all when omitted."""

    record_ids: Optional[list[str]] = Field(
        None, description="Record IDs to recompute (e.g. a previous failed_record_ids)"
    )


class FormulaListResponse(BaseModel):
    """Schema for formula list response."""

    items: list[FormulaDefinition]
    total: int


class ForwardReference(BaseModel):
    field_name: str
    references: str


class FormulaDiagnostics(BaseModel):
    """Ordering and duplicate checks over the active formulas."""

    duplicate_fields: list[str] = Field(default_factory=list)
    forward_references: list[ForwardReference] = Field(default_factory=list)
    circular_fields: list[str] = Field(default_factory=list)
    malformed_fields: list[str] = Field(default_factory=list)
    suggested_order: list[str] = Field(default_factory=list)


class FormulaPreviewRequest(BaseModel):
    """Evaluate an expression against sample values without saving it."""

    expression: str
    bindings: dict[str, Any] = Field(default_factory=dict)


class FormulaPreviewResponse(BaseModel):
    value: Optional[float] = None
    identifiers: list[str] = Field(default_factory=list)
    error_code: Optional[str] = None
    error: Optional[str] = None

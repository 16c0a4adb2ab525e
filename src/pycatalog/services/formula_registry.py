"""Formula registry: the named, active/inactive formula definitions."""

from collections import Counter

from pycatalog.core.config import settings
from pycatalog.core.exceptions import DuplicateFormulaFieldError, InvalidFormulaInputError
from pycatalog.core.logging import get_logger
from pycatalog.formula.dependencies import FormulaOrderReport, check_formula_order
from pycatalog.schemas.formula import FormulaDefinition
from pycatalog.stores.base import FormulaStore

logger = get_logger(__name__)


class FormulaRegistry:
    """
    Access to formula definitions.

    Formulas are listed in creation order (ascending ``position``), which
    is the order a computation pass runs them in. The registry does not
    check that expressions parse; bad expressions surface per record when
    the pipeline evaluates them.
    """

    def __init__(self, store: FormulaStore, reject_duplicates: bool | None = None):
        """
        Args:
            store: Formula store
            reject_duplicates: Refuse to add a formula for a field that
                already has one (defaults to settings)
        """
        self.store = store
        self.reject_duplicates = (
            settings.reject_duplicate_formula_fields
            if reject_duplicates is None
            else reject_duplicates
        )

    async def list_all(self) -> list[FormulaDefinition]:
        """All formulas, active or not, in creation order."""
        return await self.store.list_formulas()

    async def list_active(self) -> list[FormulaDefinition]:
        """Active formulas in creation order."""
        return [f for f in await self.store.list_formulas() if f.is_active]

    async def get(self, formula_id: str) -> FormulaDefinition:
        return await self.store.get_formula(formula_id)

    async def add(
        self,
        field_name: str,
        expression: str,
        units: str | None = None,
        is_active: bool = True,
    ) -> FormulaDefinition:
        """
        Add a formula at the end of the evaluation order.

        Args:
            field_name: Attribute the formula computes
            expression: Arithmetic expression text
            units: Optional display units
            is_active: Whether the formula takes part in computation

        Returns:
            The stored formula, including its new ID

        Raises:
            InvalidFormulaInputError: If field name or expression is blank
            DuplicateFormulaFieldError: If duplicates are rejected and the
                field already has a formula
        """
        field_name = (field_name or "").strip()
        if not field_name:
            raise InvalidFormulaInputError("field_name")
        _require_expression(expression)

        if self.reject_duplicates:
            existing = {f.field_name for f in await self.store.list_formulas()}
            if field_name in existing:
                raise DuplicateFormulaFieldError(field_name)

        formula = await self.store.insert_formula(
            field_name=field_name,
            expression=expression.strip(),
            units=(units or "").strip() or None,
            is_active=is_active,
        )
        logger.info(
            f"Added formula {formula.field_name} = {formula.expression}",
            extra={"formula_id": formula.id},
        )
        return formula

    async def update(self, formula_id: str, expression: str) -> FormulaDefinition:
        """
        Replace a formula's expression text.

        The field name and active flag are left as they are, and the previous
        expression is not kept.

        Raises:
            InvalidFormulaInputError: If the expression is blank
            FormulaNotFoundError: If no formula has this ID
        """
        _require_expression(expression)
        formula = await self.store.update_formula(formula_id, expression=expression.strip())
        logger.info(
            f"Updated formula {formula.field_name} = {formula.expression}",
            extra={"formula_id": formula_id},
        )
        return formula

    async def set_active(self, formula_id: str, is_active: bool) -> FormulaDefinition:
        """Turn a formula on or off without touching its expression."""
        return await self.store.update_formula(formula_id, is_active=is_active)

    async def delete(self, formula_id: str) -> None:
        """
        Delete a formula.

        Values it computed earlier stay on the records.

        Raises:
            FormulaNotFoundError: If no formula has this ID
        """
        await self.store.delete_formula(formula_id)
        logger.info("Deleted formula", extra={"formula_id": formula_id})

    async def find_duplicate_fields(self) -> list[str]:
        """Field names computed by more than one formula row.

        During a pass every row runs and the last one in order decides the
        stored value.
        """
        counts = Counter(f.field_name for f in await self.store.list_formulas())
        return sorted(name for name, count in counts.items() if count > 1)

    async def check_ordering(self) -> FormulaOrderReport:
        """Check the active formulas for forward and circular references."""
        return check_formula_order(await self.list_active())


def _require_expression(expression: str) -> None:
    if not (expression or "").strip():
        raise InvalidFormulaInputError("expression")

"""Computation pipeline: derived values for one record."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

from pycatalog.core.exceptions import EvalError
from pycatalog.core.logging import get_logger
from pycatalog.formula.evaluator import FormulaEvaluator

logger = get_logger(__name__)


class FormulaLike(Protocol):
    field_name: str
    expression: str


class ComputationPipeline:
    """
    Runs formulas over one record in a single sequential pass.

    Formulas are evaluated strictly in the order given. A formula can read
    a derived attribute only if a formula earlier in the list computed it
    in this pass; no dependency sorting happens here.

    The record's attributes are copied into a private context that grows as
    formulas succeed, so neither the caller's mapping nor any other
    record's computation is affected.
    """

    def __init__(self, evaluator: FormulaEvaluator | None = None):
        self.evaluator = evaluator or FormulaEvaluator()

    def compute(
        self,
        record_attributes: Mapping[str, Any],
        formulas: Sequence[FormulaLike],
        record_id: str | None = None,
    ) -> dict[str, float | None]:
        """
        Compute derived attributes for one record.

        Args:
            record_attributes: The record's current attribute values
            formulas: Active formulas in evaluation order
            record_id: Record ID, used only for log context

        Returns:
            Mapping of field name to result, ``None`` where a formula failed
        """
        context = dict(record_attributes)
        derived: dict[str, float | None] = {}

        for formula in formulas:
            try:
                value = self.evaluator.evaluate(formula.expression, context)
            except EvalError as e:
                derived[formula.field_name] = None
                # The stored value from a previous pass is stale now; later
                # formulas must not read it
                context.pop(formula.field_name, None)
                logger.warning(
                    f"Formula for '{formula.field_name}' failed: {e.error}",
                    extra={
                        "field_name": formula.field_name,
                        "expression": formula.expression,
                        "error_code": e.code,
                        "record_id": record_id,
                    },
                )
                continue

            derived[formula.field_name] = value
            context[formula.field_name] = value

        return derived


def compute(
    record_attributes: Mapping[str, Any],
    formulas: Sequence[FormulaLike],
) -> dict[str, float | None]:
    """Convenience wrapper around ``ComputationPipeline.compute``."""
    return ComputationPipeline().compute(record_attributes, formulas)

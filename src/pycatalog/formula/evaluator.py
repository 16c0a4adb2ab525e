"""Formula evaluator for PyCatalog.

Evaluates parsed formula ASTs against a record's attribute bindings.

Bound values are coerced permissively so catalog data entered as text or
left blank can still take part in formula math:

- ``int``, ``float`` and ``Decimal`` are used as-is
- ``True``/``False`` become ``1``/``0``
- ``None`` and blank text become ``0``
- numeric-looking text (``" 12.5 "``) is parsed

A blank attribute therefore computes as zero rather than failing, which can
hide missing data. An attribute that is absent from the bindings altogether
is an ``UnknownIdentifierError``.
"""

import math
from collections.abc import Mapping
from decimal import Decimal
from numbers import Real
from typing import Any

from pycatalog.core.config import settings
from pycatalog.core.exceptions import (
    EvalError,
    MalformedExpressionError,
    NonFiniteResultError,
    NonNumericValueError,
    UnknownIdentifierError,
)
from pycatalog.formula.functions import (
    get_constant,
    get_function,
    is_constant,
    round_half_away,
)
from pycatalog.formula.parser import (
    BinaryOpNode,
    FieldRefNode,
    FunctionCallNode,
    NameNode,
    NumberNode,
    UnaryOpNode,
    parse_cached,
)


def coerce_number(name: str, value: Any, expression: str = "") -> float:
    """
    Coerce a bound attribute value to a float.

    Args:
        name: Attribute name (for error reporting)
        value: Raw attribute value
        expression: Expression being evaluated (for error reporting)

    Returns:
        Numeric value

    Raises:
        NonNumericValueError: If the value cannot be read as a number
    """
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (Real, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            raise NonNumericValueError(expression, name, value) from None
    raise NonNumericValueError(expression, name, value)


class FormulaEvaluator:
    """
    Evaluates formula expressions against attribute bindings.

    The evaluator only walks the arithmetic AST produced by
    ``FormulaParser``; it never executes expression text as code and never
    writes to the bindings it is given.
    """

    def __init__(self, precision: int | None = None):
        """
        Initialize evaluator.

        Args:
            precision: Decimal places results are rounded to
                (defaults to ``settings.formula_precision``)
        """
        self.precision = settings.formula_precision if precision is None else precision

    def evaluate(self, expression: str, bindings: Mapping[str, Any]) -> float:
        """
        Evaluate an expression.

        Args:
            expression: Formula expression string
            bindings: Attribute values the expression can reference

        Returns:
            Finite result rounded to ``precision`` decimals

        Raises:
            MalformedExpressionError: Syntax error or bad function arguments
            UnknownIdentifierError: Unresolved attribute or function name
            NonNumericValueError: A referenced value is not numeric
            NonFiniteResultError: Result is NaN/infinite or undefined
        """
        ast = parse_cached(expression)
        return self.evaluate_ast(ast, bindings, expression)

    def evaluate_ast(
        self,
        ast: Any,
        bindings: Mapping[str, Any],
        expression: str = "",
    ) -> float:
        """Evaluate an already parsed AST."""
        try:
            result = self._eval(ast, bindings, expression)
        except EvalError:
            raise
        except RecursionError as e:
            raise MalformedExpressionError(expression, "Expression is nested too deeply") from e
        except (ZeroDivisionError, OverflowError, ValueError) as e:
            raise NonFiniteResultError(expression, str(e) or e.__class__.__name__) from e
        except TypeError as e:
            raise MalformedExpressionError(expression, str(e)) from e

        if not math.isfinite(result):
            raise NonFiniteResultError(expression)

        result = round_half_away(result, self.precision)
        # Normalise -0.0
        return result if result != 0 else 0.0

    def _eval(self, node: Any, bindings: Mapping[str, Any], expression: str) -> float:
        """Recursively evaluate an AST node."""
        if isinstance(node, NumberNode):
            return float(node.value)

        if isinstance(node, NameNode):
            if is_constant(node.name):
                return get_constant(node.name)
            return self._lookup(node.name, bindings, expression)

        if isinstance(node, FieldRefNode):
            return self._lookup(node.field_name, bindings, expression)

        if isinstance(node, FunctionCallNode):
            return self._eval_function(node, bindings, expression)

        if isinstance(node, BinaryOpNode):
            return self._eval_binary(node, bindings, expression)

        if isinstance(node, UnaryOpNode):
            operand = self._eval(node.operand, bindings, expression)
            if node.operator == "-":
                return -operand
            raise MalformedExpressionError(expression, f"Unknown unary operator: {node.operator}")

        raise MalformedExpressionError(expression, f"Unexpected node: {node!r}")

    def _lookup(self, name: str, bindings: Mapping[str, Any], expression: str) -> float:
        if name not in bindings:
            raise UnknownIdentifierError(expression, name)
        return coerce_number(name, bindings[name], expression)

    def _eval_function(
        self,
        node: FunctionCallNode,
        bindings: Mapping[str, Any],
        expression: str,
    ) -> float:
        """Evaluate a function call."""
        func = get_function(node.name)
        if func is None:
            raise UnknownIdentifierError(expression, node.name.lower(), kind="function")

        args = [self._eval(arg, bindings, expression) for arg in node.arguments]
        return float(func(*args))

    def _eval_binary(
        self,
        node: BinaryOpNode,
        bindings: Mapping[str, Any],
        expression: str,
    ) -> float:
        """Evaluate a binary operation."""
        left = self._eval(node.left, bindings, expression)
        right = self._eval(node.right, bindings, expression)
        op = node.operator

        if op == "+":
            return left + right
        if op == "-":
            return left - right
        if op == "*":
            return left * right
        if op == "/":
            return left / right
        if op == "%":
            return left % right
        if op == "^":
            return math.pow(left, right)

        raise MalformedExpressionError(expression, f"Unknown operator: {op}")


def evaluate(
    expression: str,
    bindings: Mapping[str, Any],
    precision: int | None = None,
) -> float:
    """
    Convenience function to evaluate a formula expression.

    Args:
        expression: Formula expression string
        bindings: Attribute values for the record
        precision: Decimal places to round to (defaults to settings)

    Returns:
        Evaluation result
    """
    return FormulaEvaluator(precision).evaluate(expression, bindings)

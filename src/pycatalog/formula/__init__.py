"""Formula engine for PyCatalog.

Derived attributes are computed from admin-entered arithmetic formulas:
- Arithmetic operations (+, -, *, /, %, ^)
- Unary minus and parentheses
- Math functions (sqrt, pow, min, max, abs, round, ...)
- Constants (pi, e, tau)
- Attribute references (rated_torque_nm or {Field Name})

Formulas are parsed with a restricted Lark grammar and evaluated by walking
the resulting AST; expression text is never executed as code.
"""

from pycatalog.formula.dependencies import (
    FormulaDependencyGraph,
    FormulaOrderReport,
    check_formula_order,
)
from pycatalog.formula.evaluator import FormulaEvaluator, coerce_number, evaluate
from pycatalog.formula.functions import FORMULA_CONSTANTS, FORMULA_FUNCTIONS, register_function
from pycatalog.formula.parser import FormulaParser, get_parser

__all__ = [
    "FormulaParser",
    "FormulaEvaluator",
    "FORMULA_FUNCTIONS",
    "FORMULA_CONSTANTS",
    "register_function",
    "FormulaDependencyGraph",
    "FormulaOrderReport",
    "check_formula_order",
    "coerce_number",
    "evaluate",
    "get_parser",
]

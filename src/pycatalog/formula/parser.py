"""Formula parser for PyCatalog.

Parses formula strings into an AST using the Lark LALR parser.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from lark import Lark, Transformer, v_args
from lark.exceptions import LarkError

from pycatalog.core.config import settings
from pycatalog.core.exceptions import MalformedExpressionError
from pycatalog.formula.functions import is_constant
from pycatalog.formula.grammar import FORMULA_GRAMMAR


# AST Node types
@dataclass(frozen=True)
class NumberNode:
    value: float | int


@dataclass(frozen=True)
class NameNode:
    """Bare identifier: a constant such as ``pi`` or an attribute name."""

    name: str


@dataclass(frozen=True)
class FieldRefNode:
    """Braced reference ``{Field Name}``; always resolved against bindings."""

    field_name: str


@dataclass(frozen=True)
class FunctionCallNode:
    name: str
    arguments: tuple[Any, ...]


@dataclass(frozen=True)
class BinaryOpNode:
    operator: str
    left: Any
    right: Any


@dataclass(frozen=True)
class UnaryOpNode:
    operator: str
    operand: Any


class FormulaTransformer(Transformer):
    """Transform Lark parse tree into AST nodes."""

    @v_args(inline=True)
    def number(self, token):
        value = float(token)
        # Keep as int if no decimal
        if value.is_integer() and abs(value) < 2**53:
            value = int(value)
        return NumberNode(value)

    @v_args(inline=True)
    def field_ref(self, token):
        return FieldRefNode(str(token)[1:-1].strip())

    @v_args(inline=True)
    def name(self, token):
        return NameNode(str(token))

    def function_call(self, items):
        name = str(items[0]).upper()
        args = tuple(items[1]) if len(items) > 1 and items[1] else ()
        return FunctionCallNode(name, args)

    def arguments(self, items):
        return list(items)

    # Binary operators
    @v_args(inline=True)
    def add(self, left, right):
        return BinaryOpNode("+", left, right)

    @v_args(inline=True)
    def sub(self, left, right):
        return BinaryOpNode("-", left, right)

    @v_args(inline=True)
    def mul(self, left, right):
        return BinaryOpNode("*", left, right)

    @v_args(inline=True)
    def div(self, left, right):
        return BinaryOpNode("/", left, right)

    @v_args(inline=True)
    def mod(self, left, right):
        return BinaryOpNode("%", left, right)

    @v_args(inline=True)
    def pow(self, left, right):
        return BinaryOpNode("^", left, right)

    # Unary operators
    @v_args(inline=True)
    def neg(self, operand):
        return UnaryOpNode("-", operand)

    @v_args(inline=True)
    def pos(self, operand):
        return operand  # Positive is a no-op


class FormulaParser:
    """
    Parser for derived-attribute formulas.

    Parses formula strings into an AST that can be evaluated. The parser
    only recognises the arithmetic grammar in ``FORMULA_GRAMMAR``; anything
    else is a syntax error.
    """

    def __init__(self, max_depth: int | None = None) -> None:
        self.max_depth = settings.formula_max_depth if max_depth is None else max_depth
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=FormulaTransformer(),
        )

    def parse(self, formula: str) -> Any:
        """
        Parse a formula string into an AST.

        Args:
            formula: Formula string to parse

        Returns:
            AST root node

        Raises:
            MalformedExpressionError: If formula syntax is invalid
        """
        if formula is None or not str(formula).strip():
            raise MalformedExpressionError(formula or "", "Expression is empty")
        try:
            ast = self._parser.parse(formula)
        except LarkError as e:
            raise MalformedExpressionError(formula, f"Invalid formula syntax: {e}") from e

        # The evaluator walks the tree recursively
        if tree_depth(ast) > self.max_depth:
            raise MalformedExpressionError(
                formula, f"Expression is nested more than {self.max_depth} levels deep"
            )
        return ast

    def validate(self, formula: str) -> tuple[bool, str | None]:
        """
        Validate formula syntax.

        Args:
            formula: Formula string to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        try:
            self.parse(formula)
            return True, None
        except MalformedExpressionError as e:
            return False, e.error

    def get_identifiers(self, formula: str) -> set[str]:
        """
        Extract the attribute names a formula reads from its bindings.

        Constants such as ``pi`` and function names are not included.

        Args:
            formula: Formula string

        Returns:
            Set of attribute names referenced in the formula
        """
        names: set[str] = set()
        _collect_identifiers(self.parse(formula), names)
        return names


def _collect_identifiers(node: Any, names: set[str]) -> None:
    """Recursively collect attribute references from an AST."""
    if isinstance(node, FieldRefNode):
        names.add(node.field_name)
    elif isinstance(node, NameNode):
        if not is_constant(node.name):
            names.add(node.name)
    elif isinstance(node, BinaryOpNode):
        _collect_identifiers(node.left, names)
        _collect_identifiers(node.right, names)
    elif isinstance(node, UnaryOpNode):
        _collect_identifiers(node.operand, names)
    elif isinstance(node, FunctionCallNode):
        for arg in node.arguments:
            _collect_identifiers(arg, names)


def _children(node: Any) -> tuple[Any, ...]:
    if isinstance(node, BinaryOpNode):
        return (node.left, node.right)
    if isinstance(node, UnaryOpNode):
        return (node.operand,)
    if isinstance(node, FunctionCallNode):
        return node.arguments
    return ()


def tree_depth(node: Any) -> int:
    """Depth of an AST, measured without recursion."""
    depth = 0
    stack = [(node, 1)]
    while stack:
        current, level = stack.pop()
        depth = max(depth, level)
        stack.extend((child, level + 1) for child in _children(current))
    return depth


_parser: FormulaParser | None = None


def get_parser() -> FormulaParser:
    """Return the shared parser, building the Lark tables on first use."""
    global _parser
    if _parser is None:
        _parser = FormulaParser()
    return _parser


@lru_cache(maxsize=settings.formula_cache_size)
def parse_cached(formula: str) -> Any:
    """Parse a formula, reusing the AST for expression text seen before.

    ASTs are immutable, so one tree can be shared by every record in a
    bulk pass. Syntax errors are not cached and are raised each time.
    """
    return get_parser().parse(formula)

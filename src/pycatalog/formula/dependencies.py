"""Formula dependency tracking for PyCatalog.

Formulas run in a single sequential pass in registry order, so a formula
can only consume a derived attribute computed by an earlier formula. The
graph here does not change that order. It backs the ordering diagnostics
shown to administrators: formulas that read a later formula's output,
circular references, and an order in which the active formulas would all
see fresh inputs.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from pycatalog.core.exceptions import MalformedExpressionError
from pycatalog.formula.parser import FormulaParser, get_parser


class FormulaDependencyGraph:
    """
    Track dependencies between derived attributes.

    Maintains a bidirectional graph keyed by field name:
    - dependencies: field -> set of fields that depend on this field
    - reverse: field -> set of fields this field depends on
    """

    def __init__(self):
        # If field A changes, every field in dependencies[A] is stale
        self.dependencies: dict[str, set[str]] = defaultdict(set)
        # To calculate field A, every field in reverse[A] is needed first
        self.reverse: dict[str, set[str]] = defaultdict(set)

    def add_formula_field(self, field_name: str, depends_on: set[str]) -> tuple[bool, str | None]:
        """
        Add a derived field to the dependency graph.

        A field that already exists (duplicate formula rows) accumulates the
        union of its dependencies.

        Args:
            field_name: Field the formula computes
            depends_on: Derived fields the formula references

        Returns:
            Tuple of (success, error_message)
        """
        if self.detect_circular_reference(field_name, depends_on):
            return False, "Circular reference detected in formula dependencies"

        self.reverse[field_name] |= depends_on
        for dep in depends_on:
            self.dependencies[dep].add(field_name)

        return True, None

    def get_evaluation_order(self, field_names: Sequence[str]) -> list[str]:
        """
        Get an order in which every field is computed after its inputs.

        Uses Kahn's algorithm. Among fields that are ready at the same time
        the order of ``field_names`` is kept, so an already valid order is
        returned unchanged.

        Args:
            field_names: Field names in their current order

        Returns:
            Ordered list of field names, or empty list if a cycle exists
        """
        ordered = list(dict.fromkeys(field_names))
        rank = {name: i for i, name in enumerate(ordered)}
        in_degree = {name: 0 for name in ordered}

        for name in ordered:
            for dep in self.reverse[name]:
                if dep in in_degree:
                    in_degree[name] += 1

        ready = [name for name in ordered if in_degree[name] == 0]
        result = []
        while ready:
            ready.sort(key=rank.__getitem__)
            name = ready.pop(0)
            result.append(name)

            for dependent in self.dependencies[name]:
                if dependent in in_degree:
                    in_degree[dependent] -= 1
                    if in_degree[dependent] == 0:
                        ready.append(dependent)

        if len(result) != len(ordered):
            return []

        return result

    def detect_circular_reference(self, field_name: str, depends_on: set[str]) -> bool:
        """
        Check if adding this dependency would create a cycle.

        Uses DFS over the existing reverse edges.

        Args:
            field_name: Field being added
            depends_on: Fields it references

        Returns:
            True if circular reference detected
        """
        if not depends_on:
            return False

        if field_name in depends_on:
            return True

        visited = set()
        to_check = list(depends_on)

        while to_check:
            current = to_check.pop()

            if current == field_name:
                return True

            if current in visited:
                continue
            visited.add(current)

            to_check.extend(self.reverse.get(current, set()))

        return False

    def get_dependencies(self, field_name: str) -> set[str]:
        """Get direct dependencies of a field."""
        return self.reverse.get(field_name, set()).copy()

    def __repr__(self) -> str:
        return (
            f"FormulaDependencyGraph("
            f"fields={len(self.reverse)}, "
            f"edges={sum(len(deps) for deps in self.dependencies.values())})"
        )


class _FormulaLike(Protocol):
    field_name: str
    expression: str


@dataclass
class FormulaOrderReport:
    """Result of checking a formula list against its sequential-pass order."""

    # (formula field, later field it reads)
    forward_references: list[tuple[str, str]] = field(default_factory=list)
    circular_fields: list[str] = field(default_factory=list)
    malformed_fields: list[str] = field(default_factory=list)
    suggested_order: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.forward_references or self.circular_fields or self.malformed_fields)


def check_formula_order(
    formulas: Iterable[_FormulaLike],
    parser: FormulaParser | None = None,
) -> FormulaOrderReport:
    """
    Check whether a formula list is safe to run as one sequential pass.

    A forward reference means the formula reads a derived attribute that is
    only computed later in the pass. During creation that attribute is
    missing; during bulk recomputation the formula reads the value stored by
    the previous pass instead of the fresh one.

    Args:
        formulas: Formulas in registry order
        parser: Parser to extract references with

    Returns:
        FormulaOrderReport
    """
    parser = parser or get_parser()
    formulas = list(formulas)
    derived = {f.field_name for f in formulas}
    report = FormulaOrderReport()
    graph = FormulaDependencyGraph()
    computed: set[str] = set()

    for formula in formulas:
        try:
            references = parser.get_identifiers(formula.expression)
        except MalformedExpressionError:
            report.malformed_fields.append(formula.field_name)
            computed.add(formula.field_name)
            continue

        derived_refs = references & derived
        for ref in sorted(derived_refs - computed - {formula.field_name}):
            report.forward_references.append((formula.field_name, ref))

        ok, _ = graph.add_formula_field(formula.field_name, derived_refs)
        if not ok:
            report.circular_fields.append(formula.field_name)
        computed.add(formula.field_name)

    if not report.circular_fields:
        report.suggested_order = graph.get_evaluation_order([f.field_name for f in formulas])

    return report

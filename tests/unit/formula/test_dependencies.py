"""Unit tests for FormulaDependencyGraph and formula ordering checks."""

from dataclasses import dataclass

from pycatalog.formula.dependencies import FormulaDependencyGraph, check_formula_order


@dataclass
class _Formula:
    field_name: str
    expression: str


class TestFormulaDependencyGraph:
    """Tests for FormulaDependencyGraph class."""

    def test_add_formula_field_with_deps(self):
        graph = FormulaDependencyGraph()
        success, error = graph.add_formula_field("volume", {"area"})
        assert success is True
        assert error is None
        assert graph.get_dependencies("volume") == {"area"}
        assert "volume" in graph.dependencies["area"]

    def test_self_circular_reference(self):
        graph = FormulaDependencyGraph()
        success, error = graph.add_formula_field("area", {"area"})
        assert success is False
        assert error == "Circular reference detected in formula dependencies"

    def test_indirect_circular_reference(self):
        graph = FormulaDependencyGraph()
        graph.add_formula_field("a", {"b"})
        graph.add_formula_field("b", {"c"})
        success, _ = graph.add_formula_field("c", {"a"})
        assert success is False

    def test_duplicate_field_unions_dependencies(self):
        graph = FormulaDependencyGraph()
        graph.add_formula_field("ratio", {"a"})
        graph.add_formula_field("ratio", {"b"})
        assert graph.get_dependencies("ratio") == {"a", "b"}

    def test_evaluation_order_keeps_valid_order(self):
        graph = FormulaDependencyGraph()
        graph.add_formula_field("area", set())
        graph.add_formula_field("volume", {"area"})
        graph.add_formula_field("density", set())
        assert graph.get_evaluation_order(["area", "volume", "density"]) == [
            "area",
            "volume",
            "density",
        ]

    def test_evaluation_order_moves_dependents_after_inputs(self):
        graph = FormulaDependencyGraph()
        graph.add_formula_field("volume", {"area"})
        graph.add_formula_field("density", set())
        graph.add_formula_field("area", set())
        assert graph.get_evaluation_order(["volume", "density", "area"]) == [
            "density",
            "area",
            "volume",
        ]


class TestCheckFormulaOrder:
    """Tests for check_formula_order."""

    def test_clean_order(self):
        report = check_formula_order(
            [_Formula("area", "width * height"), _Formula("volume", "area * depth")]
        )
        assert report.is_clean
        assert report.suggested_order == ["area", "volume"]

    def test_forward_reference(self):
        """A formula reading a field computed later is reported, not reordered."""
        report = check_formula_order(
            [_Formula("volume", "area * depth"), _Formula("area", "width * height")]
        )
        assert report.forward_references == [("volume", "area")]
        assert report.suggested_order == ["area", "volume"]
        assert not report.is_clean

    def test_circular_reference(self):
        report = check_formula_order([_Formula("a", "b + 1"), _Formula("b", "a * 2")])
        assert report.circular_fields == ["b"]
        assert report.suggested_order == []

    def test_malformed_expression(self):
        report = check_formula_order([_Formula("area", "width *")])
        assert report.malformed_fields == ["area"]
        assert not report.is_clean

    def test_raw_attributes_are_not_dependencies(self):
        report = check_formula_order([_Formula("torque_density", "rated_torque_nm / weight_kg")])
        assert report.is_clean
        assert report.suggested_order == ["torque_density"]

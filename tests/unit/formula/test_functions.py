"""Unit tests for formula functions."""

import math

import pytest

from pycatalog.formula.functions import (
    FORMULA_CONSTANTS,
    FORMULA_FUNCTIONS,
    func_abs,
    func_atan2,
    func_ceil,
    func_clamp,
    func_floor,
    func_hypot,
    func_log,
    func_max,
    func_min,
    func_pow,
    func_round,
    func_sign,
    func_sqrt,
    get_constant,
    get_function,
    is_constant,
    round_half_away,
)


class TestFunctionRegistry:
    """Tests for the function and constant registries."""

    def test_lookup_is_case_insensitive(self):
        assert get_function("sqrt") is func_sqrt
        assert get_function("Sqrt") is func_sqrt
        assert get_function("nope") is None

    def test_aliases(self):
        assert FORMULA_FUNCTIONS["POW"] is FORMULA_FUNCTIONS["POWER"]
        assert FORMULA_FUNCTIONS["CEIL"] is FORMULA_FUNCTIONS["CEILING"]

    def test_constants(self):
        assert set(FORMULA_CONSTANTS) == {"pi", "e", "tau"}
        assert is_constant("PI")
        assert not is_constant("width")
        assert get_constant("Tau") == math.tau


class TestNumericFunctions:
    """Tests for numeric functions."""

    def test_sqrt_and_pow(self):
        assert func_sqrt(16) == 4
        assert func_pow(2, 3) == 8
        with pytest.raises(ValueError):
            func_sqrt(-1)

    def test_min_max(self):
        assert func_min(3, 1, 2) == 1
        assert func_max(3, 1, 2) == 3
        with pytest.raises(TypeError):
            func_max()

    def test_abs_and_sign(self):
        assert func_abs(-2.5) == 2.5
        assert func_sign(-3) == -1
        assert func_sign(0) == 0
        assert func_sign(7) == 1

    def test_round_half_away_from_zero(self):
        assert func_round(2.5) == 3
        assert func_round(-2.5) == -3
        assert func_round(1.234, 2) == 1.23
        assert func_round(1.235, 1) == 1.2

    def test_round_rejects_out_of_range_decimals(self):
        with pytest.raises(TypeError):
            func_round(1.5, 300000000)
        with pytest.raises(TypeError):
            func_round(1.5, -16)

    def test_round_half_away_helper(self):
        assert round_half_away(0.125, 2) == 0.13
        assert round_half_away(-0.125, 2) == -0.13
        assert round_half_away(1e300, 2) == 1e300

    def test_floor_ceil(self):
        assert func_floor(2.7) == 2
        assert func_floor(-2.1) == -3
        assert func_ceil(2.1) == 3

    def test_log(self):
        assert func_log(1000) == pytest.approx(3)
        assert func_log(8, 2) == pytest.approx(3)

    def test_hypot(self):
        assert func_hypot(3, 4) == 5
        with pytest.raises(TypeError):
            func_hypot()

    def test_clamp(self):
        assert func_clamp(5, 0, 3) == 3
        assert func_clamp(-1, 0, 3) == 0
        assert func_clamp(2, 0, 3) == 2
        with pytest.raises(ValueError):
            func_clamp(1, 3, 0)

    def test_atan2(self):
        assert func_atan2(1, 1) == pytest.approx(math.pi / 4)

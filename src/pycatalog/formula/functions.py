"""Formula functions and constants for PyCatalog.

Implements the math functions available in formulas. Arguments arrive
already coerced to numbers by the evaluator.

Conventions the evaluator relies on:
- a function called with the wrong number of arguments raises ``TypeError``
  (reported as a malformed expression);
- a math domain problem raises ``ValueError``, ``OverflowError`` or
  ``ZeroDivisionError`` (reported as a non-finite result).
"""

import math
from typing import Callable

# Type alias for formula functions
FormulaFunction = Callable[..., float]

# Registry of formula functions, keyed by upper-case name
FORMULA_FUNCTIONS: dict[str, FormulaFunction] = {}

# Named constants, keyed by lower-case name
FORMULA_CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "e": math.e,
    "tau": math.tau,
}


def register_function(name: str) -> Callable[[FormulaFunction], FormulaFunction]:
    """Decorator to register a formula function."""

    def decorator(func: FormulaFunction) -> FormulaFunction:
        FORMULA_FUNCTIONS[name.upper()] = func
        return func

    return decorator


def get_function(name: str) -> FormulaFunction | None:
    """Look up a function by name, ignoring case."""
    return FORMULA_FUNCTIONS.get(name.upper())


def is_constant(name: str) -> bool:
    """Check whether a bare name refers to a constant."""
    return name.lower() in FORMULA_CONSTANTS


def get_constant(name: str) -> float:
    return FORMULA_CONSTANTS[name.lower()]


def _require_args(name: str, args: tuple[float, ...], minimum: int = 1) -> None:
    if len(args) < minimum:
        raise TypeError(f"{name} requires at least {minimum} argument(s)")


# =============================================================================
# Powers and roots
# =============================================================================


@register_function("SQRT")
def func_sqrt(value: float) -> float:
    """Square root."""
    return math.sqrt(value)


@register_function("POW")
@register_function("POWER")
def func_pow(base: float, exponent: float) -> float:
    """Raise base to exponent."""
    return math.pow(base, exponent)


@register_function("EXP")
def func_exp(value: float) -> float:
    """e raised to value."""
    return math.exp(value)


@register_function("LN")
def func_ln(value: float) -> float:
    """Natural logarithm."""
    return math.log(value)


@register_function("LOG")
def func_log(value: float, base: float = 10) -> float:
    """Logarithm, base 10 unless given."""
    return math.log(value, base)


@register_function("LOG10")
def func_log10(value: float) -> float:
    return math.log10(value)


@register_function("HYPOT")
def func_hypot(*args: float) -> float:
    """Euclidean norm of the arguments."""
    _require_args("HYPOT", args)
    return math.hypot(*args)


# =============================================================================
# Aggregates and rounding
# =============================================================================


@register_function("MIN")
def func_min(*args: float) -> float:
    """Minimum value."""
    _require_args("MIN", args)
    return min(args)


@register_function("MAX")
def func_max(*args: float) -> float:
    """Maximum value."""
    _require_args("MAX", args)
    return max(args)


@register_function("ABS")
def func_abs(value: float) -> float:
    """Absolute value."""
    return abs(value)


@register_function("SIGN")
def func_sign(value: float) -> float:
    """-1, 0 or 1 according to the sign of value."""
    if value > 0:
        return 1.0
    if value < 0:
        return -1.0
    return 0.0


# Beyond this a double has no digits left to round
MAX_ROUND_DECIMALS = 15


def round_half_away(value: float, decimals: int) -> float:
    """Round half away from zero, so 0.125 becomes 0.13 at two decimals."""
    multiplier = 10.0 ** decimals
    scaled = abs(value) * multiplier
    if not math.isfinite(scaled) or scaled >= 2**52:
        # Already integral at this precision
        return value
    return math.copysign(math.floor(scaled + 0.5) / multiplier, value)


@register_function("ROUND")
def func_round(value: float, decimals: float = 0) -> float:
    """Round half away from zero to the given number of decimals."""
    if abs(decimals) > MAX_ROUND_DECIMALS:
        raise TypeError(
            f"ROUND decimals must be between -{MAX_ROUND_DECIMALS} and {MAX_ROUND_DECIMALS}"
        )
    return round_half_away(value, int(decimals))


@register_function("FLOOR")
def func_floor(value: float) -> float:
    return float(math.floor(value))


@register_function("CEIL")
@register_function("CEILING")
def func_ceil(value: float) -> float:
    return float(math.ceil(value))


@register_function("CLAMP")
def func_clamp(value: float, low: float, high: float) -> float:
    """Limit value to the range [low, high]."""
    if low > high:
        raise ValueError("CLAMP lower bound exceeds upper bound")
    return max(low, min(value, high))


# =============================================================================
# Trigonometry (radians)
# =============================================================================


@register_function("SIN")
def func_sin(value: float) -> float:
    return math.sin(value)


@register_function("COS")
def func_cos(value: float) -> float:
    return math.cos(value)


@register_function("TAN")
def func_tan(value: float) -> float:
    return math.tan(value)


@register_function("ASIN")
def func_asin(value: float) -> float:
    return math.asin(value)


@register_function("ACOS")
def func_acos(value: float) -> float:
    return math.acos(value)


@register_function("ATAN")
def func_atan(value: float) -> float:
    return math.atan(value)


@register_function("ATAN2")
def func_atan2(y: float, x: float) -> float:
    return math.atan2(y, x)

"""Lark grammar definition for derived-attribute formulas.

The grammar is arithmetic only:
- Operators: +, -, *, /, % and ^ (power, right-associative)
- Unary minus and plus
- Numeric literals (integer, decimal, scientific notation)
- Bare attribute names: rated_torque_nm
- Braced attribute names: {Overall Length (mm)}
- Function calls: sqrt(x), pow(x, y), min(a, b, ...)

There are no strings, comparisons, assignments or attribute access, so a
formula can only ever compute a number from the values it is given.
"""

FORMULA_GRAMMAR = r"""
    ?start: expression

    ?expression: additive

    ?additive: multiplicative
        | additive "+" multiplicative -> add
        | additive "-" multiplicative -> sub

    ?multiplicative: unary
        | multiplicative "*" unary -> mul
        | multiplicative "/" unary -> div
        | multiplicative "%" unary -> mod

    // -x^2 is -(x^2); the exponent may itself carry a sign: 2^-1
    ?unary: power
        | "-" unary -> neg
        | "+" unary -> pos

    ?power: atom
        | atom "^" unary -> pow

    ?atom: NUMBER -> number
        | FIELD_REF -> field_ref
        | NAME -> name
        | function_call
        | "(" expression ")"

    function_call: NAME "(" [arguments] ")"

    arguments: expression ("," expression)*

    // Braced reference for names with spaces or punctuation
    FIELD_REF: "{" /[^{}]+/ "}"

    NAME: /[A-Za-z_][A-Za-z0-9_]*/

    // Sign is handled by the unary rules, not here
    NUMBER: /(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""

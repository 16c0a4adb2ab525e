"""
Custom exceptions for PyCatalog.

Provides a hierarchy of exceptions that map to HTTP status codes
and include structured error information.

Three families matter to the formula engine:

- ``EvalError``: an expression could not produce a finite number for one
  record. Always recoverable; the derived attribute resolves to ``None``.
- ``RegistryError``: an administrator action on a formula definition was
  rejected.
- ``StoreError``: the record or formula store failed. Fatal only for the
  single read or write it affects.
"""

from typing import Any


class PyCatalogException(Exception):
    """
    Base exception for all PyCatalog errors.

    All custom exceptions should inherit from this class.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
        """
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


# =============================================================================
# Expression evaluation errors (HTTP 422)
# =============================================================================


class EvalError(PyCatalogException):
    """Formula expression could not be evaluated."""

    status_code = 422

    def __init__(
        self,
        expression: str,
        error: str,
        code: str = "FORMULA_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Formula error: {error}",
            code=code,
            details={"expression": expression, "error": error, **(details or {})},
        )
        self.expression = expression
        self.error = error


class MalformedExpressionError(EvalError):
    """Expression has a syntax error or calls a function with bad arguments."""

    def __init__(self, expression: str, error: str) -> None:
        super().__init__(expression, error, code="MALFORMED_EXPRESSION")


class UnknownIdentifierError(EvalError):
    """Expression names a variable or function that cannot be resolved."""

    def __init__(self, expression: str, identifier: str, kind: str = "variable") -> None:
        super().__init__(
            expression,
            f"Unknown {kind} '{identifier}'",
            code="UNKNOWN_IDENTIFIER",
            details={"identifier": identifier, "kind": kind},
        )
        self.identifier = identifier


class NonFiniteResultError(EvalError):
    """Expression produced NaN, infinity or no real result."""

    def __init__(self, expression: str, error: str = "Result is not a finite number") -> None:
        super().__init__(expression, error, code="NON_FINITE_RESULT")


class NonNumericValueError(EvalError):
    """A bound value cannot be read as a number."""

    def __init__(self, expression: str, name: str, value: Any) -> None:
        super().__init__(
            expression,
            f"Value of '{name}' is not numeric",
            code="NON_NUMERIC_VALUE",
            details={"identifier": name, "value": str(value)[:100]},
        )
        self.identifier = name


# =============================================================================
# Formula registry errors
# =============================================================================


class RegistryError(PyCatalogException):
    """Formula registry rejected an administrator action."""

    status_code = 400


class InvalidFormulaInputError(RegistryError):
    """Field name or expression is missing."""

    def __init__(self, field: str) -> None:
        super().__init__(
            message=f"Formula {field} must not be empty",
            code="INVALID_FORMULA_INPUT",
            details={"field": field},
        )


class DuplicateFormulaFieldError(RegistryError):
    """Another formula already computes this field."""

    status_code = 409

    def __init__(self, field_name: str) -> None:
        super().__init__(
            message=f"A formula for field '{field_name}' already exists",
            code="DUPLICATE_FORMULA_FIELD",
            details={"field_name": field_name},
        )


class FormulaNotFoundError(RegistryError):
    """Formula definition not found."""

    status_code = 404

    def __init__(self, formula_id: str | None = None) -> None:
        message = "Formula not found"
        if formula_id:
            message = f"Formula with ID '{formula_id}' not found"
        super().__init__(
            message=message,
            code="NOT_FOUND",
            details={"resource": "Formula", "identifier": formula_id},
        )


# =============================================================================
# Store errors
# =============================================================================


class StoreError(PyCatalogException):
    """Record or formula store operation failed."""

    status_code = 503

    def __init__(
        self,
        message: str = "Store operation failed",
        record_id: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code="STORE_ERROR",
            details={"record_id": record_id},
        )
        self.record_id = record_id
        self.original_error = original_error


class RecordNotFoundError(StoreError):
    """Record not found."""

    status_code = 404

    def __init__(self, record_id: str | None = None) -> None:
        message = "Record not found"
        if record_id:
            message = f"Record with ID '{record_id}' not found"
        super().__init__(message=message, record_id=record_id)
        self.code = "NOT_FOUND"
        self.details["resource"] = "Record"


class StoreTimeoutError(StoreError):
    """Store call did not complete within its timeout."""

    status_code = 504

    def __init__(self, record_id: str | None, timeout: float) -> None:
        super().__init__(
            message=f"Store write timed out after {timeout}s",
            record_id=record_id,
        )
        self.code = "STORE_TIMEOUT"
        self.details["timeout"] = timeout

"""
Exception hierarchy for PyLM.

All exceptions inherit from PyLMError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""

from typing import Iterable


class PyLMError(Exception):
    """Base exception for all PyLM errors."""
    pass


class ValidationError(PyLMError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class UnknownColumnError(ValidationError, KeyError):
    """
    A model specification or prediction request names a missing column.

    Also a KeyError so that dict-style lookups on a DataSource behave
    like any other mapping.

    Attributes:
        column: The requested column name
        available: Column names that do exist
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        available: Iterable[str] | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.available = tuple(sorted(available)) if available is not None else ()

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0]) if self.args else ''


class UnseenLevelError(ValidationError):
    """
    A categorical value was not among the levels seen during fitting.

    Attributes:
        factor: Name of the categorical predictor
        level: The offending value
        known_levels: Levels recorded when the model was fit
    """

    def __init__(
        self,
        message: str,
        factor: str | None = None,
        level: str | None = None,
        known_levels: Iterable[str] | None = None,
    ):
        super().__init__(message)
        self.factor = factor
        self.level = level
        self.known_levels = tuple(known_levels) if known_levels is not None else ()


class NumericalError(PyLMError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a matrix operation requires invertibility but the matrix
    is singular or numerically rank-deficient. For regression this also
    covers underdetermined fits (fewer observations than coefficients).

    Attributes:
        matrix_name: Name/description of the problematic matrix
        condition_number: Estimated condition number, if available
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically p)
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        condition_number: float | None = None,
        rank: int | None = None,
        expected_rank: int | None = None
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.condition_number = condition_number
        self.rank = rank
        self.expected_rank = expected_rank

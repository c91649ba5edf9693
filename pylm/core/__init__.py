"""
Core infrastructure for PyLM.

Shared abstractions and utilities used by the regression and descriptive
submodules.

Key components:
    datasource: DataSource (named numeric / categorical columns)
    protocols: Backend protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing and linear algebra kernels
"""

from pylm.core.datasource import DataSource
from pylm.core.protocols import Backend
from pylm.core.result import Result
from pylm.core.exceptions import (
    PyLMError,
    ValidationError,
    DimensionError,
    UnknownColumnError,
    UnseenLevelError,
    NumericalError,
    SingularMatrixError,
)

__all__ = [
    "DataSource",
    "Backend",
    "Result",
    # Exceptions
    "PyLMError",
    "ValidationError",
    "DimensionError",
    "UnknownColumnError",
    "UnseenLevelError",
    "NumericalError",
    "SingularMatrixError",
]

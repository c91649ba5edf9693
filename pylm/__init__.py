"""
PyLM: linear regression exercises for Python.

Ordinary least squares with continuous and categorical predictors,
R-style summaries, confidence and prediction intervals, and residual
diagnostics, plus the datasets and runner for the practical.

Submodules:
    regression: fit(), intervals, prediction, diagnostics
    descriptive: Correlation coefficients and tests
    datasets: Simulated and file-backed practical data
    plotting: Fitted lines, confidence bands, diagnostic panels
    practicals: The three-part exercise runner (pylm-practicals)
"""

__version__ = "0.1.0"

from pylm import datasets
from pylm import descriptive
from pylm import regression
from pylm.core.datasource import DataSource
from pylm.core.exceptions import (
    PyLMError,
    ValidationError,
    DimensionError,
    UnknownColumnError,
    UnseenLevelError,
    NumericalError,
    SingularMatrixError,
)
from pylm.descriptive import cor, cor_test
from pylm.regression import fit

__all__ = [
    "__version__",
    "fit",
    "cor",
    "cor_test",
    "DataSource",
    "datasets",
    "descriptive",
    "regression",
    "PyLMError",
    "ValidationError",
    "DimensionError",
    "UnknownColumnError",
    "UnseenLevelError",
    "NumericalError",
    "SingularMatrixError",
]

"""
Linear models.

Ordinary least squares with continuous and categorical predictors,
coefficient inference, confidence/prediction intervals and residual
diagnostics.

Public API:
    fit(data, ...) -> LinearSolution

Example:
    >>> from pylm.regression import fit
    >>> result = fit(df, formula='longevity ~ thorax + type')
    >>> print(result.summary())
    >>> result.confint(level=0.97)
    >>> result.predict({'thorax': 0.8, 'type': 'many'}, interval='confidence')
    >>> for row in result.diagnostics():
    ...     print(row.leverage, row.cooks_distance)
"""

from pylm.regression.design import RegressionDesign
from pylm.regression.solution import LinearSolution, LinearParams, DEFAULT_CONF_LEVEL
from pylm.regression.solvers import fit
from pylm.regression._confint import ConfidenceIntervals
from pylm.regression._diagnostics import Diagnostics, DiagnosticRow
from pylm.regression._encoding import FactorEncoding, PredictorEncoder
from pylm.regression._formula import Formula, parse_formula
from pylm.regression._prediction import (
    Prediction,
    expand_grid,
    prediction_grid,
    seq_range,
)

__all__ = [
    "fit",
    "RegressionDesign",
    "LinearSolution",
    "LinearParams",
    "DEFAULT_CONF_LEVEL",
    "ConfidenceIntervals",
    "Diagnostics",
    "DiagnosticRow",
    "FactorEncoding",
    "PredictorEncoder",
    "Formula",
    "parse_formula",
    "Prediction",
    "expand_grid",
    "prediction_grid",
    "seq_range",
]

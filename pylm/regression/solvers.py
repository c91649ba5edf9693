"""
Solver dispatch for regression.

This module provides the fit() function (public API) and backend selection.
"""

from __future__ import annotations

from typing import Any, Literal, Mapping, Sequence
import warnings

from pylm.core.datasource import DataSource
from pylm.core.protocols import Backend
from pylm.regression.design import RegressionDesign
from pylm.regression.solution import LinearSolution, LinearParams
from pylm.regression.backends.cpu import CPUQRBackend


BackendChoice = Literal['auto', 'cpu', 'cpu_qr']


def fit(
    data: Any,
    y: Any = None,
    *,
    x: str | Sequence[str] | None = None,
    formula: str | None = None,
    intercept: bool = True,
    levels: Mapping[str, Sequence[Any]] | None = None,
    factors: Sequence[str] | None = None,
    backend: BackendChoice = 'auto',
) -> LinearSolution:
    """
    Fit a linear regression model by ordinary least squares.

    Solves:
        min_β ||y - Xβ||²

    Call forms:
        fit(X, y)                                   # X is the full design matrix
        fit(design)                                 # prebuilt RegressionDesign
        fit(df, y='height', x=['weight'])           # named columns, intercept added
        fit(df, formula='longevity ~ thorax + type')

    Args:
        data: Design matrix, RegressionDesign, DataSource, DataFrame, dict
            of columns, or a path to a CSV/TSV file
        y: Response vector (with a design matrix) or response column name
        x: Predictor column(s); defaults to every column except y
        formula: Additive formula 'y ~ a + b' (instead of y/x)
        intercept: Add an '(Intercept)' column (named-column forms only)
        levels: Explicit level order per categorical predictor; the
            first level is the reference
        factors: Numeric columns to treat as categorical
        backend: 'auto', 'cpu' or 'cpu_qr' (all use QR on the CPU)

    Returns:
        LinearSolution with coefficients, inference, prediction and
        diagnostics

    Raises:
        UnknownColumnError: If the response or a predictor does not exist
        ValidationError: If inputs are otherwise invalid
        SingularMatrixError: If n <= p or X is rank-deficient
        ValueError: On an unknown backend

    Example:
        >>> from pylm.regression import fit
        >>> from pylm.datasets import simulate_height_weight
        >>> result = fit(simulate_height_weight(), formula='height ~ weight')
        >>> print(result.summary())
    """
    backend_impl = _get_backend(backend)

    design = _build_design(
        data, y, x=x, formula=formula, intercept=intercept,
        levels=levels, factors=factors,
    )

    result = backend_impl.solve(design)
    for message in result.warnings:
        warnings.warn(message, UserWarning, stacklevel=2)

    return LinearSolution(_result=result, _design=design)


def _build_design(
    data: Any,
    y: Any,
    *,
    x: str | Sequence[str] | None,
    formula: str | None,
    intercept: bool,
    levels: Mapping[str, Sequence[Any]] | None,
    factors: Sequence[str] | None,
) -> RegressionDesign:
    if isinstance(data, RegressionDesign):
        if y is not None or x is not None or formula is not None:
            raise ValueError("y, x and formula must not be given with a RegressionDesign")
        return data

    if formula is not None:
        if y is not None or x is not None:
            raise ValueError("give either formula or y/x, not both")
        return RegressionDesign.from_formula(
            DataSource.build(data), formula, levels=levels, factors=factors,
        )

    if isinstance(y, str):
        return RegressionDesign.from_datasource(
            DataSource.build(data),
            y=y, x=x, intercept=intercept, levels=levels, factors=factors,
        )

    if y is None:
        raise ValueError("y required: pass a response vector, a column name or a formula")
    return RegressionDesign.from_arrays(data, y)


def _get_backend(choice: BackendChoice) -> Backend[RegressionDesign, LinearParams]:
    """
    Select and instantiate the appropriate backend.

    Raises:
        ValueError: If unknown backend specified
    """
    if choice in ('auto', 'cpu', 'cpu_qr'):
        return CPUQRBackend()
    raise ValueError(f"Unknown backend: {choice!r}")

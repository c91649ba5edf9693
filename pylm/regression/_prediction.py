"""
Predictions from a fitted linear model (R's predict.lm).

Also provides the grid helpers used to draw fitted lines and
confidence bands: an evenly spaced sequence over one predictor, and
the Cartesian product of several columns (R's expand.grid).
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Any, Literal, Mapping

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pylm.core.datasource import DataSource
from pylm.core.exceptions import ValidationError

IntervalKind = Literal['none', 'confidence', 'prediction']
VALID_INTERVALS = ('none', 'confidence', 'prediction')


@dataclass(frozen=True)
class Prediction:
    """
    Point predictions with optional interval bounds.

    Attributes:
        fit: Predicted mean response x₀ᵀβ̂
        se_fit: Standard error of the mean response
        lower, upper: Interval bounds (None when interval='none')
        interval: 'none', 'confidence' or 'prediction'
        level: Confidence level used for the bounds
        df: Residual degrees of freedom of the model
        residual_scale: σ̂ of the model
    """
    fit: NDArray[np.floating[Any]]
    se_fit: NDArray[np.floating[Any]]
    lower: NDArray[np.floating[Any]] | None
    upper: NDArray[np.floating[Any]] | None
    interval: str
    level: float
    df: int
    residual_scale: float

    def __len__(self) -> int:
        return len(self.fit)

    def to_frame(self, newdata: Any = None) -> pd.DataFrame:
        """
        Table of predictions, optionally alongside the request.

        Equivalent to R's cbind(newdata, predict(...)): columns fit,
        lwr, upr (bounds only when an interval was requested).
        """
        cols: dict[str, NDArray] = {'fit': self.fit}
        if self.lower is not None:
            cols['lwr'] = self.lower
            cols['upr'] = self.upper
        frame = pd.DataFrame(cols)
        if newdata is None:
            return frame
        left = DataSource.build(newdata).to_dataframe()
        return pd.concat([left.reset_index(drop=True), frame], axis=1)


def check_interval(interval: str) -> str:
    if interval not in VALID_INTERVALS:
        raise ValidationError(
            f"interval: must be one of {VALID_INTERVALS}, got {interval!r}"
        )
    return interval


def as_newdata(newdata: Any) -> DataSource:
    """
    Normalise a prediction request to a DataSource.

    Scalars are accepted as single-row columns: {'weight': 85}.
    """
    if isinstance(newdata, Mapping):
        newdata = {k: np.atleast_1d(np.asarray(v)) for k, v in newdata.items()}
    return DataSource.build(newdata)


def seq_range(values: NDArray, n: int = 10) -> NDArray[np.floating[Any]]:
    """Evenly spaced points from min(values) to max(values)."""
    if n < 2:
        raise ValidationError(f"n: need at least 2 grid points, got {n}")
    values = np.asarray(values, dtype=np.float64)
    return np.linspace(np.nanmin(values), np.nanmax(values), n)


def expand_grid(**columns: Any) -> pd.DataFrame:
    """
    Cartesian product of the given columns.

    The first column varies fastest, as in R's expand.grid.
    """
    if not columns:
        raise ValidationError("expand_grid: need at least one column")
    names = list(columns)
    values = [list(np.atleast_1d(columns[k])) for k in names]
    rows = [tuple(reversed(combo)) for combo in product(*reversed(values))]
    return pd.DataFrame(rows, columns=names)


def prediction_grid(
    data: Any,
    over: str,
    n: int = 10,
    **fixed: Any,
) -> pd.DataFrame:
    """
    Grid over one numeric column of `data`, other predictors held fixed.

    Args:
        data: Training data (anything DataSource.build accepts)
        over: Numeric column to sweep from its minimum to its maximum
        n: Number of grid points
        **fixed: Values (scalar or sequence) for the other predictors;
            sequences are crossed with the sweep

    Returns:
        DataFrame ready to pass to LinearSolution.predict()
    """
    source = DataSource.build(data)
    if source.is_categorical(over):
        raise ValidationError(f"{over}: cannot sweep a categorical column")
    return expand_grid(**{over: seq_range(source[over], n)}, **fixed)

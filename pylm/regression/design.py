"""
Regression Design.

Design wraps a DataSource and extracts X (design matrix) and y (response).
It knows it's building a regression; DataSource doesn't.

The design decides which columns become predictors and how labels turn
into dummy columns; the DataSource only stores them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from pylm.core.datasource import DataSource
from pylm.core.exceptions import SingularMatrixError, ValidationError
from pylm.core.validation import (
    check_array,
    check_finite,
    check_2d,
    check_1d,
    check_consistent_length,
    check_columns_exist,
)
from pylm.regression._encoding import PredictorEncoder
from pylm.regression._formula import parse_formula


@dataclass(frozen=True)
class RegressionDesign:
    """
    Regression design matrix specification.

    Holds X, y and, when built from named columns, the encoder that
    produced X so that new data can be encoded the same way.
    Immutable after construction.

    Construction:
        RegressionDesign.from_datasource(ds, y='height', x=['weight'])
        RegressionDesign.from_formula(ds, 'longevity ~ thorax + type')
        RegressionDesign.from_arrays(X, y)     # X used as-is
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _p: int
    _column_names: tuple[str, ...]
    _response: str = 'y'
    _encoder: PredictorEncoder | None = None
    _source: DataSource | None = None

    @classmethod
    def from_datasource(
        cls,
        source: DataSource,
        *,
        y: str,
        x: str | Sequence[str] | None = None,
        intercept: bool = True,
        levels: Mapping[str, Sequence[Any]] | None = None,
        factors: Sequence[str] | None = None,
    ) -> RegressionDesign:
        """
        Build a design from named columns.

        Args:
            source: The DataSource
            y: Response column (must be numeric)
            x: Predictor column(s). If None, uses all columns except y,
               in the source's column order.
            intercept: Prepend an '(Intercept)' column of ones
            levels: Explicit level order per categorical predictor;
               the first level is the reference
            factors: Numeric columns to treat as categorical

        Raises:
            UnknownColumnError: If y or any predictor is not in source
            ValidationError: If y is not numeric/finite
            SingularMatrixError: If n <= p or X is rank-deficient
        """
        check_columns_exist([y], source.keys(), 'data')
        if x is None:
            predictors = [c for c in source.columns if c != y]
        elif isinstance(x, str):
            predictors = [x]
        else:
            predictors = list(x)
        if y in predictors:
            raise ValidationError(f"response {y!r} cannot also be a predictor")

        if source.is_categorical(y):
            raise ValidationError(f"{y}: response must be numeric")
        y_arr = np.asarray(source[y], dtype=np.float64)

        encoder = PredictorEncoder.from_source(
            source, predictors,
            intercept=intercept, levels=levels, factors=factors,
        )
        X_arr = encoder.transform(source)

        return cls._build(
            X_arr, y_arr,
            column_names=encoder.column_names,
            response=y,
            encoder=encoder,
            source=source,
        )

    @classmethod
    def from_formula(
        cls,
        source: DataSource,
        formula: str,
        *,
        levels: Mapping[str, Sequence[Any]] | None = None,
        factors: Sequence[str] | None = None,
    ) -> RegressionDesign:
        """Build a design from an additive formula such as 'y ~ a + b'."""
        parsed = parse_formula(formula)
        return cls.from_datasource(
            source,
            y=parsed.response,
            x=list(parsed.predictors),
            intercept=parsed.intercept,
            levels=levels,
            factors=factors,
        )

    @classmethod
    def from_arrays(
        cls,
        X: Any,
        y: Any,
        *,
        column_names: Sequence[str] | None = None,
    ) -> RegressionDesign:
        """
        Build a design directly from arrays.

        X is used exactly as given: no intercept is added.
        """
        X_arr = check_array(X, 'X')
        y_arr = check_array(y, 'y')
        if X_arr.ndim == 1:
            X_arr = X_arr.reshape(-1, 1)
        if y_arr.ndim == 2 and y_arr.shape[1] == 1:
            y_arr = y_arr.ravel()
        if column_names is None:
            column_names = [f"x{j}" for j in range(X_arr.shape[1] if X_arr.ndim == 2 else 0)]
        return cls._build(X_arr, y_arr, column_names=column_names, response='y')

    @classmethod
    def _build(
        cls,
        X: NDArray,
        y: NDArray,
        *,
        column_names: Sequence[str],
        response: str,
        encoder: PredictorEncoder | None = None,
        source: DataSource | None = None,
    ) -> RegressionDesign:
        """Internal builder with validation."""
        check_2d(X, 'X')
        check_1d(y, 'y')
        check_finite(X, 'X')
        check_finite(y, response)
        check_consistent_length(X, y, names=('X', response))

        n, p = X.shape
        if len(column_names) != p:
            raise ValidationError(
                f"column_names: expected {p} names, got {len(column_names)}"
            )
        if p == 0:
            raise ValidationError("X: model has no coefficients to estimate")
        if n <= p:
            raise SingularMatrixError(
                f"Fit is underdetermined: {n} observations for {p} coefficients "
                f"(need n > p).",
                matrix_name='X',
                rank=min(n, p),
                expected_rank=p,
            )

        return cls(
            _X=X,
            _y=y,
            _n=n,
            _p=p,
            _column_names=tuple(column_names),
            _response=response,
            _encoder=encoder,
            _source=source,
        )

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p)."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,)."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of coefficients (columns of X)."""
        return self._p

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._column_names

    @property
    def response(self) -> str:
        return self._response

    @property
    def encoder(self) -> PredictorEncoder | None:
        """Encoder used to build X, or None for raw arrays."""
        return self._encoder

    @property
    def has_intercept(self) -> bool:
        if self._encoder is not None:
            return self._encoder.intercept
        return bool(np.any(np.all(self._X == 1.0, axis=0)))

    @property
    def source(self) -> DataSource | None:
        """Original DataSource, if available."""
        return self._source

    def encode(self, newdata: DataSource) -> NDArray[np.floating[Any]]:
        """
        Encode new observations with the training-time encoder.

        For designs built from raw arrays, newdata must carry the same
        column names (x0, x1, ... unless others were given).
        """
        if self._encoder is not None:
            return self._encoder.transform(newdata, name='newdata')
        check_columns_exist(self._column_names, newdata.keys(), 'newdata')
        cols = [check_array(newdata[c], c) for c in self._column_names]
        X_new = np.column_stack(cols)
        check_finite(X_new, 'newdata')
        return X_new

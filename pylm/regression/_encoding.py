"""
Predictor encoding for linear models.

Translates a list of named predictors into numeric design-matrix
columns. Continuous predictors pass through; categorical predictors are
treatment (dummy) coded against a reference level.

The level -> dummy-row table for each factor is built once from the
training data and is read-only afterwards. New data is encoded with the
same table, so a label that was never seen during fitting is an error
rather than a silent row of zeros.

Key concepts:
    - Treatment coding: k-1 indicator columns (reference = first level)
    - Column naming follows R: "(Intercept)", "weight", "typemany"
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Sequence

import numpy as np
from numpy.typing import NDArray

from pylm.core.datasource import DataSource, as_label
from pylm.core.exceptions import ValidationError, UnseenLevelError
from pylm.core.validation import check_columns_exist, check_finite

INTERCEPT_NAME = '(Intercept)'


def _level_sort_key(levels: Sequence[str]):
    """Numeric labels sort numerically, everything else lexically."""
    try:
        [float(v) for v in levels]
    except ValueError:
        return None
    return float


@dataclass(frozen=True)
class FactorEncoding:
    """
    Treatment coding for one categorical predictor.

    Attributes:
        name: Predictor name
        levels: All levels, reference first
        lookup: level -> dummy row (length k-1), read-only
    """
    name: str
    levels: tuple[str, ...]
    lookup: Mapping[str, tuple[float, ...]]

    @classmethod
    def from_values(
        cls,
        name: str,
        values: NDArray,
        levels: Sequence[Any] | None = None,
    ) -> FactorEncoding:
        """
        Build the encoding from training values.

        Args:
            name: Predictor name (used in column names and errors)
            values: Observed labels
            levels: Explicit level order; the first one is the reference.
                Defaults to the sorted unique observed labels.

        Raises:
            ValidationError: Fewer than 2 levels, duplicate levels, or an
                observed label missing from an explicit level list
        """
        observed = sorted(set(as_label(v) for v in values))
        if levels is None:
            level_list = sorted(observed, key=_level_sort_key(observed))
        else:
            level_list = [as_label(v) for v in levels]
            if len(set(level_list)) != len(level_list):
                raise ValidationError(f"{name}: duplicate entries in levels {level_list}")
            missing = [v for v in observed if v not in level_list]
            if missing:
                raise ValidationError(
                    f"{name}: observed values {missing} are not in levels {level_list}"
                )

        if len(level_list) < 2:
            raise ValidationError(
                f"{name}: need at least 2 levels, got {len(level_list)}"
            )

        k = len(level_list)
        table = {}
        for i, level in enumerate(level_list):
            row = [0.0] * (k - 1)
            if i > 0:
                row[i - 1] = 1.0
            table[level] = tuple(row)

        return cls(
            name=name,
            levels=tuple(level_list),
            lookup=MappingProxyType(table),
        )

    @property
    def reference(self) -> str:
        """The level absorbed into the intercept."""
        return self.levels[0]

    @property
    def column_names(self) -> list[str]:
        return [f"{self.name}{level}" for level in self.levels[1:]]

    def encode(self, values: NDArray) -> NDArray[np.floating[Any]]:
        """
        Encode labels as an (n, k-1) indicator matrix.

        Raises:
            UnseenLevelError: If any label is not a known level
        """
        rows = []
        for v in values:
            label = as_label(v)
            try:
                rows.append(self.lookup[label])
            except KeyError:
                raise UnseenLevelError(
                    f"factor {self.name!r} has new level {label!r}; "
                    f"known levels are {list(self.levels)}",
                    factor=self.name,
                    level=label,
                    known_levels=self.levels,
                ) from None
        return np.array(rows, dtype=np.float64).reshape(len(rows), len(self.levels) - 1)


@dataclass(frozen=True)
class Term:
    """One predictor and how it is turned into columns."""
    name: str
    factor: FactorEncoding | None = None

    @property
    def is_categorical(self) -> bool:
        return self.factor is not None

    @property
    def column_names(self) -> list[str]:
        if self.factor is None:
            return [self.name]
        return self.factor.column_names


@dataclass(frozen=True)
class PredictorEncoder:
    """
    Maps named predictor columns to a design matrix.

    Built once from the training data via from_source(); transform() is
    then used for both the training data and any prediction request.
    """
    terms: tuple[Term, ...]
    intercept: bool

    @classmethod
    def from_source(
        cls,
        source: DataSource,
        predictors: Sequence[str],
        *,
        intercept: bool = True,
        levels: Mapping[str, Sequence[Any]] | None = None,
        factors: Sequence[str] | None = None,
    ) -> PredictorEncoder:
        """
        Decide how each predictor is encoded.

        A predictor is categorical if its column holds labels, if it is
        listed in `factors`, or if explicit `levels` are given for it.
        Level order comes from `levels`, then from a pandas Categorical
        dtype recorded by the source, then from sorting.

        Raises:
            UnknownColumnError: If a predictor (or a levels/factors key)
                is not a column of `source`
        """
        levels = dict(levels or {})
        forced = set(factors or ())
        check_columns_exist(predictors, source.keys(), 'data')
        check_columns_exist(sorted(forced | set(levels)), predictors, 'predictors')

        terms = []
        for name in predictors:
            if source.is_categorical(name) or name in forced or name in levels:
                order = levels.get(name)
                if order is None:
                    order = source.levels(name)
                if not source.is_categorical(name):
                    check_finite(source[name], name)
                enc = FactorEncoding.from_values(name, source[name], order)
                terms.append(Term(name=name, factor=enc))
            else:
                terms.append(Term(name=name))
        return cls(terms=tuple(terms), intercept=intercept)

    @property
    def predictors(self) -> list[str]:
        return [t.name for t in self.terms]

    @property
    def factors(self) -> dict[str, FactorEncoding]:
        return {t.name: t.factor for t in self.terms if t.factor is not None}

    @property
    def column_names(self) -> list[str]:
        names = [INTERCEPT_NAME] if self.intercept else []
        for term in self.terms:
            names.extend(term.column_names)
        return names

    def transform(self, source: DataSource, name: str = 'data') -> NDArray[np.floating[Any]]:
        """
        Build the design matrix for `source`.

        Args:
            source: Data holding every predictor column
            name: How to refer to `source` in error messages

        Raises:
            UnknownColumnError: If a predictor column is missing
            UnseenLevelError: If a categorical label was not seen at fit time
            ValidationError: If a continuous predictor is not numeric/finite
        """
        check_columns_exist(self.predictors, source.keys(), name)
        n = source.n_observations
        blocks = [np.ones((n, 1))] if self.intercept else []

        for term in self.terms:
            values = source[term.name]
            if term.factor is not None:
                blocks.append(term.factor.encode(values))
                continue
            if values.dtype.kind in ('U', 'S', 'O'):
                raise ValidationError(
                    f"{name}: predictor {term.name!r} was numeric when the model "
                    f"was fit but holds labels here"
                )
            check_finite(values, term.name)
            blocks.append(values.reshape(-1, 1))

        if not blocks:
            return np.empty((n, 0), dtype=np.float64)
        return np.hstack(blocks).astype(np.float64)

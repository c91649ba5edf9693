"""
Regression diagnostics.

Per-observation quantities behind R's plot.lm():
    - leverage h_i (hat-matrix diagonal)
    - standardized residuals r_i = e_i / (σ̂ √(1 - h_i))
    - studentized (leave-one-out) residuals
    - Cook's distance D_i = (r_i² / p) · h_i / (1 - h_i)

Diagnostics is a lazy, finite, restartable sequence: every iteration
builds rows on the fly from the immutable fit, and nothing is computed
until it is asked for.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, Iterator

import numpy as np
from numpy.typing import NDArray
from scipy import stats as sp_stats


@dataclass(frozen=True)
class DiagnosticRow:
    """Diagnostics for a single observation."""
    index: int
    fitted: float
    residual: float
    standardized_residual: float
    studentized_residual: float
    leverage: float
    cooks_distance: float


class Diagnostics:
    """
    Sequence of DiagnosticRow over the observations of a fit.

    Iterating twice yields the same rows; the underlying arrays are read
    only and never modified.
    """

    def __init__(
        self,
        fitted: NDArray[np.floating[Any]],
        residuals: NDArray[np.floating[Any]],
        leverage: NDArray[np.floating[Any]],
        sigma: float,
        p: int,
    ):
        self._fitted = fitted
        self._residuals = residuals
        self._leverage = leverage
        self._sigma = sigma
        self._p = p

    def __len__(self) -> int:
        return len(self._residuals)

    def __iter__(self) -> Iterator[DiagnosticRow]:
        for i in range(len(self)):
            yield self._row(i)

    def __getitem__(self, i: int) -> DiagnosticRow:
        n = len(self)
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError(f"observation index {i} out of range for {n} observations")
        return self._row(i)

    def _row(self, i: int) -> DiagnosticRow:
        return DiagnosticRow(
            index=i,
            fitted=float(self._fitted[i]),
            residual=float(self._residuals[i]),
            standardized_residual=float(self.standardized_residuals[i]),
            studentized_residual=float(self.studentized_residuals[i]),
            leverage=float(self._leverage[i]),
            cooks_distance=float(self.cooks_distance[i]),
        )

    # === Whole-series accessors ===

    @property
    def fitted(self) -> NDArray[np.floating[Any]]:
        return self._fitted

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._residuals

    @property
    def leverage(self) -> NDArray[np.floating[Any]]:
        return self._leverage

    @property
    def p(self) -> int:
        return self._p

    @cached_property
    def _one_minus_h(self) -> NDArray[np.floating[Any]]:
        one_minus_h = 1.0 - self._leverage
        # h_i == 1 makes r_i and D_i undefined
        return np.where(one_minus_h > 1e-12, one_minus_h, np.nan)

    @cached_property
    def standardized_residuals(self) -> NDArray[np.floating[Any]]:
        with np.errstate(divide='ignore', invalid='ignore'):
            return self._residuals / (self._sigma * np.sqrt(self._one_minus_h))

    @cached_property
    def studentized_residuals(self) -> NDArray[np.floating[Any]]:
        """Externally studentized: σ̂ re-estimated without observation i."""
        n = len(self)
        df = n - self._p - 1
        r = self.standardized_residuals
        if df <= 0:
            return np.full(n, np.nan)
        with np.errstate(divide='ignore', invalid='ignore'):
            sigma_i_sq = self._sigma ** 2 * (n - self._p - r ** 2) / df
            return self._residuals / np.sqrt(sigma_i_sq * self._one_minus_h)

    @cached_property
    def cooks_distance(self) -> NDArray[np.floating[Any]]:
        r = self.standardized_residuals
        with np.errstate(divide='ignore', invalid='ignore'):
            return (r ** 2 / self._p) * (self._leverage / self._one_minus_h)

    @property
    def sqrt_abs_standardized(self) -> NDArray[np.floating[Any]]:
        """√|r_i|, the y-axis of the scale-location plot."""
        return np.sqrt(np.abs(self.standardized_residuals))

    def normal_quantiles(self) -> tuple[NDArray, NDArray]:
        """
        Points of a normal Q-Q plot of the standardized residuals.

        Returns:
            (theoretical, sample): theoretical quantiles at R's ppoints(n)
            and the sorted standardized residuals
        """
        sample = np.sort(self.standardized_residuals)
        n = len(sample)
        a = 3.0 / 8.0 if n <= 10 else 0.5
        probs = (np.arange(1, n + 1) - a) / (n + 1 - 2 * a)
        return sp_stats.norm.ppf(probs), sample

    def influential(self, threshold: float | None = None) -> list[int]:
        """Indices with Cook's distance above threshold (default 4/n)."""
        if threshold is None:
            threshold = 4.0 / len(self)
        return [int(i) for i in np.flatnonzero(self.cooks_distance > threshold)]

    def high_leverage(self, threshold: float | None = None) -> list[int]:
        """Indices with leverage above threshold (default 2p/n)."""
        if threshold is None:
            threshold = 2.0 * self._p / len(self)
        return [int(i) for i in np.flatnonzero(self._leverage > threshold)]

    def __repr__(self) -> str:
        return f"Diagnostics(n={len(self)}, p={self._p})"

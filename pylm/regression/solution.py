"""
Regression solution types.

Contains the parameter payload and user-facing solution wrapper.
The wrapper is immutable: confidence intervals, predictions and
diagnostics are all derived on demand without touching the fit.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Any, TYPE_CHECKING
import warnings

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats as sp_stats

from pylm.core.result import Result
from pylm.core.validation import check_level
from pylm.regression._confint import ConfidenceIntervals, t_quantile
from pylm.regression._diagnostics import Diagnostics
from pylm.regression._prediction import (
    IntervalKind,
    Prediction,
    as_newdata,
    check_interval,
)

if TYPE_CHECKING:
    from pylm.regression.design import RegressionDesign

DEFAULT_CONF_LEVEL = 0.95


@dataclass(frozen=True)
class LinearParams:
    """
    Parameter payload for linear regression.

    This is the immutable data computed by backends.

    Attributes:
        xtx_inv: Unscaled covariance (X'X)⁻¹; multiply by σ̂² for vcov
        leverage: Hat-matrix diagonal
    """
    coefficients: NDArray[np.floating[Any]]
    residuals: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    rss: float
    tss: float
    rank: int
    df_residual: int
    xtx_inv: NDArray[np.floating[Any]]
    leverage: NDArray[np.floating[Any]]


@dataclass(frozen=True)
class LinearSolution:
    """
    User-facing regression results.

    Wraps the backend Result and provides convenient accessors
    for all regression outputs including standard errors, p-values,
    confidence intervals, predictions and diagnostics.
    """
    _result: Result[LinearParams]
    _design: 'RegressionDesign'

    # === Fit ===

    @property
    def design(self) -> 'RegressionDesign':
        return self._design

    @property
    def names(self) -> tuple[str, ...]:
        """Coefficient names, e.g. ('(Intercept)', 'weight')."""
        return self._design.column_names

    @property
    def response(self) -> str:
        return self._design.response

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    def coef(self) -> dict[str, float]:
        """Coefficients keyed by name."""
        return {name: float(b) for name, b in zip(self.names, self.coefficients)}

    @property
    def residuals(self) -> NDArray[np.floating[Any]]:
        return self._result.params.residuals

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def rss(self) -> float:
        return self._result.params.rss

    @property
    def tss(self) -> float:
        return self._result.params.tss

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def n(self) -> int:
        return self._design.n

    @property
    def p(self) -> int:
        return self._design.p

    # === Goodness of fit ===

    @property
    def r_squared(self) -> float:
        if self.tss == 0:
            return 1.0 if self.rss == 0 else 0.0
        return 1.0 - (self.rss / self.tss)

    @property
    def adjusted_r_squared(self) -> float:
        n, p = self.n, self.rank
        df_int = 1 if self._design.has_intercept else 0
        if n - p <= 0 or self.tss == 0:
            return self.r_squared
        return 1.0 - (1.0 - self.r_squared) * (n - df_int) / (n - p)

    @property
    def residual_std_error(self) -> float:
        """σ̂ = sqrt(RSS / (n - p))."""
        return float(np.sqrt(self.rss / self.df_residual))

    @property
    def f_statistic(self) -> tuple[float, int, int] | None:
        """
        Overall F test against the intercept-only model.

        Returns:
            (F, numerator df, denominator df), or None when the model
            has no intercept or no other terms
        """
        df_int = 1 if self._design.has_intercept else 0
        num_df = self.rank - df_int
        if num_df <= 0 or not self._design.has_intercept:
            return None
        mss = self.tss - self.rss
        with np.errstate(divide='ignore'):
            f = (mss / num_df) / (self.rss / self.df_residual)
        return float(f), num_df, self.df_residual

    @property
    def f_p_value(self) -> float | None:
        f = self.f_statistic
        if f is None:
            return None
        return float(sp_stats.f.sf(f[0], f[1], f[2]))

    # === Inference ===

    @property
    def vcov(self) -> NDArray[np.floating[Any]]:
        """Coefficient covariance matrix σ̂²(X'X)⁻¹."""
        return self.residual_std_error ** 2 * self._result.params.xtx_inv

    @cached_property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """
        Standard errors of coefficients.

        Computed as SE(β) = sqrt(diag(σ² (X'X)⁻¹))
        """
        return np.sqrt(np.diag(self.vcov))

    @cached_property
    def t_statistics(self) -> NDArray[np.floating[Any]]:
        """t-statistics for coefficients (NaN where SE is zero)."""
        with np.errstate(divide='ignore', invalid='ignore'):
            t = self.coefficients / self.standard_errors
        return np.where(np.isfinite(t), t, np.nan)

    @cached_property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided p-values against t(n - p)."""
        return 2.0 * sp_stats.t.sf(np.abs(self.t_statistics), self.df_residual)

    def confint(self, level: float = DEFAULT_CONF_LEVEL) -> ConfidenceIntervals:
        """
        Confidence intervals for the coefficients.

        estimate ± t_(1-α/2, n-p) · SE

        Raises:
            ValidationError: If level is not in (0, 1)
        """
        return ConfidenceIntervals.compute(
            self.names,
            self.coefficients,
            self.standard_errors,
            self.df_residual,
            level,
        )

    # === Prediction ===

    def predict(
        self,
        newdata: Any = None,
        *,
        interval: IntervalKind = 'none',
        level: float = DEFAULT_CONF_LEVEL,
    ) -> Prediction:
        """
        Predict the response at new covariate values.

        Args:
            newdata: Mapping, DataFrame or DataSource supplying every
                predictor. None predicts at the training observations.
            interval: 'none', 'confidence' (mean response) or
                'prediction' (a new observation)
            level: Confidence level for the bounds

        Returns:
            Prediction with fit, se_fit and (optionally) lower/upper

        Raises:
            UnknownColumnError: If a predictor is missing from newdata
            UnseenLevelError: If a categorical value was not seen at fit time
            ValidationError: On a bad interval kind or level
        """
        interval = check_interval(interval)
        level = check_level(level)

        if newdata is None:
            X0 = self._design.X
        else:
            X0 = self._design.encode(as_newdata(newdata))

        fit = X0 @ self.coefficients
        sigma = self.residual_std_error
        xtx_inv = self._result.params.xtx_inv
        # x₀ᵀ(X'X)⁻¹x₀ for every row
        quad = np.einsum('ij,jk,ik->i', X0, xtx_inv, X0)
        se_fit = np.sqrt(quad) * sigma

        lower = upper = None
        if interval != 'none':
            q = t_quantile(level, self.df_residual)
            if interval == 'confidence':
                half = q * se_fit
            else:
                half = q * np.sqrt(se_fit ** 2 + sigma ** 2)
            lower, upper = fit - half, fit + half

        return Prediction(
            fit=fit,
            se_fit=se_fit,
            lower=lower,
            upper=upper,
            interval=interval,
            level=level,
            df=self.df_residual,
            residual_scale=sigma,
        )

    # === Diagnostics ===

    def diagnostics(self) -> Diagnostics:
        """
        Per-observation residual diagnostics.

        Warns if any observation has leverage 1, for which standardized
        residuals and Cook's distance are undefined (NaN).
        """
        leverage = self._result.params.leverage
        if np.any(leverage >= 1.0 - 1e-10):
            warnings.warn(
                "observations with leverage one: standardized residuals "
                "and Cook's distance are NaN for them",
                UserWarning,
                stacklevel=2,
            )
        return Diagnostics(
            fitted=self.fitted_values,
            residuals=self.residuals,
            leverage=leverage,
            sigma=self.residual_std_error,
            p=self.rank,
        )

    # === Metadata ===

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # === Reporting ===

    def coefficient_table(self) -> pd.DataFrame:
        """Estimate, Std. Error, t value and Pr(>|t|) per coefficient."""
        return pd.DataFrame(
            {
                'Estimate': self.coefficients,
                'Std. Error': self.standard_errors,
                't value': self.t_statistics,
                'Pr(>|t|)': self.p_values,
            },
            index=list(self.names),
        )

    def summary(self) -> str:
        """Generate R-style summary output."""
        width = max([len(n) for n in self.names] + [12])
        res = self.residuals
        q = np.quantile(res, [0.0, 0.25, 0.5, 0.75, 1.0])
        lines = [
            f"Linear Regression: {self._formula_text()}",
            "=" * 72,
            "Residuals:",
            f"{'Min':>10} {'1Q':>10} {'Median':>10} {'3Q':>10} {'Max':>10}",
            " ".join(f"{v:>10.4f}" for v in q),
            "",
            "Coefficients:",
            f"{'':<{width}} {'Estimate':>12} {'Std. Error':>12} {'t value':>9} {'Pr(>|t|)':>11}",
            "-" * 72,
        ]

        for name, coef, se, t, pv in zip(
            self.names, self.coefficients, self.standard_errors,
            self.t_statistics, self.p_values,
        ):
            t_str = f"{t:9.3f}" if not np.isnan(t) else f"{'NA':>9}"
            p_str = f"{pv:11.4g}" if not np.isnan(pv) else f"{'NA':>11}"
            lines.append(
                f"{name:<{width}} {coef:12.5g} {se:12.5g} {t_str} {p_str} "
                f"{_significance_stars(pv)}"
            )

        lines.append("-" * 72)
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        lines.append("")
        lines.append(
            f"Residual standard error: {self.residual_std_error:.4g} "
            f"on {self.df_residual} degrees of freedom"
        )
        lines.append(
            f"Multiple R-squared: {self.r_squared:.4f},  "
            f"Adjusted R-squared: {self.adjusted_r_squared:.4f}"
        )
        f = self.f_statistic
        if f is not None:
            lines.append(
                f"F-statistic: {f[0]:.4g} on {f[1]} and {f[2]} DF,  "
                f"p-value: {self.f_p_value:.4g}"
            )
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")

        return "\n".join(lines)

    def _formula_text(self) -> str:
        encoder = self._design.encoder
        if encoder is None:
            rhs = ' + '.join(self.names) or '1'
            return f"{self.response} ~ {rhs} - 1"
        rhs = ' + '.join(encoder.predictors) or '1'
        if not encoder.intercept:
            rhs += ' - 1'
        return f"{self.response} ~ {rhs}"

    def __repr__(self) -> str:
        return (
            f"LinearSolution(n={self.n}, p={self.p}, "
            f"rank={self.rank}, r_squared={self.r_squared:.4f})"
        )


def _significance_stars(p: float | None) -> str:
    """Return significance stars for a p-value."""
    if p is None or np.isnan(p):
        return ""
    if p < 0.001:
        return "***"
    if p < 0.01:
        return "**"
    if p < 0.05:
        return "*"
    if p < 0.1:
        return "."
    return ""

"""
Plots for fitted linear models.

Every function builds and returns a matplotlib Figure and never calls
show(); the caller decides whether to display or save it. Figures are
created through matplotlib's object API, so no pyplot state is touched.

    plot_fit                 scatter of the data with the fitted line
    plot_confidence_band     prediction line with a confidence ribbon
    plot_by_group            scatter coloured by a categorical column
    plot_residual_histogram  histogram of raw residuals
    plot_diagnostics         R's plot.lm() 2x2 panel
    qq_line                  intercept and slope of the Q-Q reference line
"""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd
from matplotlib.figure import Figure
from scipy import stats as sp_stats

from pylm.core.datasource import DataSource
from pylm.core.exceptions import ValidationError
from pylm.regression._prediction import prediction_grid
from pylm.regression.solution import LinearSolution

POINT_STYLE = {'s': 18, 'color': 'darkgrey', 'alpha': 0.9}
COOK_LEVELS = (0.5, 1.0)


def plot_fit(
    solution: LinearSolution,
    data: Any,
    x: str,
    *,
    n: int = 50,
    xlabel: str | None = None,
    ylabel: str | None = None,
    **fixed: Any,
) -> Figure:
    """
    Scatter of response against `x` with the fitted line.

    Other predictors of a multiple regression must be held at values
    given in `fixed`, e.g. plot_fit(sol, df, 'thorax', type='many').
    """
    source = DataSource.build(data)
    grid = prediction_grid(source, over=x, n=n, **fixed)
    pred = solution.predict(grid)

    fig = Figure(figsize=(6, 4.5))
    ax = fig.add_subplot()
    ax.scatter(source[x], source[solution.response], **POINT_STYLE)
    ax.plot(grid[x], pred.fit, color='black', linewidth=2.5)
    ax.set_xlabel(xlabel or x)
    ax.set_ylabel(ylabel or solution.response)
    fig.tight_layout()
    return fig


def plot_confidence_band(
    frame: pd.DataFrame,
    x: str,
    *,
    group: str | None = None,
    xlabel: str | None = None,
    ylabel: str = 'fit',
) -> Figure:
    """
    Prediction line with a shaded interval.

    `frame` is the output of Prediction.to_frame(newdata) with an
    interval, i.e. it has columns fit, lwr and upr.
    """
    missing = [c for c in (x, 'fit', 'lwr', 'upr') if c not in frame.columns]
    if missing:
        raise ValidationError(
            f"frame: missing columns {missing}; predict with an interval "
            f"and use Prediction.to_frame(newdata)"
        )

    fig = Figure(figsize=(6, 4.5))
    ax = fig.add_subplot()
    groups = [(None, frame)] if group is None else list(frame.groupby(group, observed=True, sort=False))
    for label, part in groups:
        part = part.sort_values(x)
        line, = ax.plot(part[x], part['fit'], label=label)
        ax.fill_between(part[x], part['lwr'], part['upr'], alpha=0.3, color=line.get_color())
    if group is not None:
        ax.legend(title=group)
    ax.set_xlabel(xlabel or x)
    ax.set_ylabel(ylabel)
    fig.tight_layout()
    return fig


def plot_by_group(
    data: Any,
    x: str,
    y: str,
    group: str,
    *,
    lines: pd.DataFrame | None = None,
    line_column: str | None = None,
) -> Figure:
    """
    Scatter of y against x coloured by a categorical column.

    If `lines` is given (e.g. a prediction grid with predictions
    attached), one line per group is drawn from its `line_column`
    (default: y) against x.
    """
    source = DataSource.build(data)
    labels = source[group]
    levels = source.levels(group) or sorted(set(labels))

    fig = Figure(figsize=(6.5, 4.5))
    ax = fig.add_subplot()
    colours = {}
    for level in levels:
        mask = labels == level
        pts = ax.scatter(source[x][mask], source[y][mask], s=18, label=level)
        colours[level] = pts.get_facecolor()[0]

    if lines is not None:
        column = line_column or y
        for level, part in lines.groupby(group, observed=True, sort=False):
            part = part.sort_values(x)
            ax.plot(part[x], part[column], color=colours.get(str(level)))

    ax.legend(title=group)
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    fig.tight_layout()
    return fig


def plot_residual_histogram(solution: LinearSolution, *, bins: int | str = 'auto') -> Figure:
    """Histogram of the raw residuals."""
    fig = Figure(figsize=(5, 4))
    ax = fig.add_subplot()
    ax.hist(solution.residuals, bins=bins, color='lightgrey', edgecolor='black')
    ax.set_xlabel('Residuals')
    ax.set_ylabel('Frequency')
    ax.set_title('Histogram of residuals')
    fig.tight_layout()
    return fig


def plot_diagnostics(solution: LinearSolution) -> Figure:
    """
    The four standard diagnostic panels.

    1. Residuals vs fitted: constant spread, no pattern
    2. Normal Q-Q: standardized residuals against normal quantiles
    3. Scale-location: √|standardized residuals| vs fitted
    4. Residuals vs leverage, with Cook's distance contours
    """
    diag = solution.diagnostics()
    fitted = diag.fitted

    fig = Figure(figsize=(10, 8))
    axes = fig.subplots(2, 2)

    ax = axes[0, 0]
    ax.scatter(fitted, diag.residuals, **POINT_STYLE)
    ax.axhline(0.0, color='grey', linestyle=':')
    _add_trend(ax, fitted, diag.residuals)
    ax.set_xlabel('Fitted values')
    ax.set_ylabel('Residuals')
    ax.set_title('Residuals vs Fitted')

    ax = axes[0, 1]
    theoretical, sample = diag.normal_quantiles()
    ax.scatter(theoretical, sample, **POINT_STYLE)
    line = qq_line(sample)
    if line is not None:
        ax.axline((0.0, line[0]), slope=line[1], color='grey', linestyle='--')
    ax.set_xlabel('Theoretical Quantiles')
    ax.set_ylabel('Standardized residuals')
    ax.set_title('Normal Q-Q')

    ax = axes[1, 0]
    ax.scatter(fitted, diag.sqrt_abs_standardized, **POINT_STYLE)
    _add_trend(ax, fitted, diag.sqrt_abs_standardized)
    ax.set_xlabel('Fitted values')
    ax.set_ylabel(r'$\sqrt{|\mathrm{Standardized\ residuals}|}$')
    ax.set_title('Scale-Location')

    ax = axes[1, 1]
    lev = diag.leverage
    ax.scatter(lev, diag.standardized_residuals, **POINT_STYLE)
    ax.axhline(0.0, color='grey', linestyle=':')
    h = np.linspace(max(lev.min(), 1e-3), min(lev.max() * 1.05, 0.999), 100)
    for d in COOK_LEVELS:
        bound = np.sqrt(d * diag.p * (1 - h) / h)
        ax.plot(h, bound, color='red', linestyle='--', linewidth=0.8)
        ax.plot(h, -bound, color='red', linestyle='--', linewidth=0.8)
    r = diag.standardized_residuals[np.isfinite(diag.standardized_residuals)]
    if r.size:
        pad = 0.5
        ax.set_ylim(r.min() - pad, r.max() + pad)
    ax.set_xlabel('Leverage')
    ax.set_ylabel('Standardized residuals')
    ax.set_title("Residuals vs Leverage (Cook's distance 0.5, 1)")

    fig.tight_layout()
    return fig


def _add_trend(ax, x: np.ndarray, y: np.ndarray, window: float = 0.3) -> None:
    """Running-mean smoother, standing in for R's lowess line."""
    ok = np.isfinite(x) & np.isfinite(y)
    x, y = x[ok], y[ok]
    if x.size < 5:
        return
    order = np.argsort(x)
    xs, ys = x[order], y[order]
    k = max(3, int(window * xs.size))
    kernel = np.ones(k) / k
    smooth = np.convolve(ys, kernel, mode='valid')
    centres = np.convolve(xs, kernel, mode='valid')
    ax.plot(centres, smooth, color='red', linewidth=1)


def qq_line(sample: np.ndarray) -> tuple[float, float] | None:
    """
    Intercept and slope of the normal Q-Q reference line (R's qqline).

    The line passes through the first and third quartiles of the sample,
    plotted against the standard normal quartiles. None when fewer than
    two finite values remain.
    """
    sample = np.asarray(sample, dtype=np.float64)
    sample = sample[np.isfinite(sample)]
    if sample.size < 2:
        return None
    q1, q3 = np.quantile(sample, [0.25, 0.75])
    t1, t3 = sp_stats.norm.ppf([0.25, 0.75])
    slope = (q3 - q1) / (t3 - t1)
    return float(q1 - slope * t1), float(slope)

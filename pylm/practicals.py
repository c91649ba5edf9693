"""
Linear models practical.

Runs the three parts of the course practical end to end and collects
the output as text (and, optionally, figures):

    Part 1  Simple regression: height ~ weight on simulated data
    Part 2  Categorical predictors: fruitfly longevity ~ type (+ thorax)
    Part 3  Multiple regression: height ~ weight + heightParents,
            then longevity ~ thorax + sleep

Usage:
    pylm-practicals all
    pylm-practicals 2 --data fruitfly.csv --level 0.97 --plots figures/
    python -m pylm 1 --seed 7
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import pandas as pd
from matplotlib.figure import Figure

from pylm.core.exceptions import PyLMError, UnseenLevelError
from pylm.datasets import (
    load_fruitfly,
    simulate_fruitfly,
    simulate_height_parents,
    simulate_height_weight,
)
from pylm.descriptive import cor_test
from pylm.plotting import (
    plot_by_group,
    plot_confidence_band,
    plot_diagnostics,
    plot_fit,
    plot_residual_histogram,
)
from pylm.regression import expand_grid, fit, prediction_grid, seq_range

DEFAULT_LEVEL = 0.97


@dataclass
class PracticalReport:
    """Titled text sections plus any figures produced along the way."""
    title: str
    sections: list[tuple[str, str]] = field(default_factory=list)
    figures: dict[str, Figure] = field(default_factory=dict)

    def add(self, heading: str, body: Any) -> None:
        self.sections.append((heading, str(body)))

    def add_figure(self, name: str, fig: Figure) -> None:
        self.figures[name] = fig

    def render(self) -> str:
        lines = [self.title, "#" * len(self.title), ""]
        for heading, body in self.sections:
            lines.append(f"## {heading}")
            lines.append(body.rstrip())
            lines.append("")
        return "\n".join(lines)

    def save_figures(self, directory: str | Path) -> list[Path]:
        """Write every figure as <directory>/<name>.png."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        paths = []
        for name, fig in self.figures.items():
            path = directory / f"{name}.png"
            fig.savefig(path, dpi=100)
            paths.append(path)
        return paths

    def __str__(self) -> str:
        return self.render()


def part1_simple_regression(
    seed: int = 1453,
    level: float = DEFAULT_LEVEL,
    plots: bool = False,
) -> PracticalReport:
    """Correlation, simple regression, intervals and model checking."""
    report = PracticalReport("Part 1 - Simple regression")
    df = simulate_height_weight(seed=seed)
    report.add("Data (first rows)", df.head().to_string())

    ct = cor_test(df['weight'], df['height'], data_name='weight and height')
    report.add("Task 1. Correlation coefficient", ct.summary())

    model = fit(df, formula='height ~ weight')
    report.add("Task 2. Linear model fit", model.summary())

    report.add(f"Task 4. Coefficient intervals ({level:g})", model.confint(level))

    point = {'weight': [85.0]}
    pr = model.predict(point, interval='confidence', level=level)
    report.add("Prediction at weight = 85", pr.to_frame(point).to_string())

    grid = prediction_grid(df, over='weight', n=10)
    combo = model.predict(grid, interval='confidence').to_frame(grid)
    report.add("Predictions over the observed weight range", combo.to_string())

    report.add("Task 5. Model checking", _diagnostics_text(model))

    if plots:
        report.add_figure('part1_fit', plot_fit(
            model, df, 'weight', xlabel='Weight (kg)', ylabel='Height (cm)'))
        report.add_figure('part1_band', plot_confidence_band(
            combo, 'weight', xlabel='Weight (kg)', ylabel='Height (cm)'))
        report.add_figure('part1_residual_hist', plot_residual_histogram(model))
        report.add_figure('part1_diagnostics', plot_diagnostics(model))
    return report


def part2_categorical(
    data: pd.DataFrame | None = None,
    seed: int = 2022,
    level: float = DEFAULT_LEVEL,
    plots: bool = False,
) -> PracticalReport:
    """Regression on the fruitfly companion type, alone and with thorax."""
    report = PracticalReport("Part 2 - Categorical explanatory variables")
    ff = data if data is not None else simulate_fruitfly(seed=seed)
    report.add("Data (first rows)", ff.head().to_string())

    thorax_only = fit(ff, formula='longevity ~ thorax')
    report.add("Simple model: longevity ~ thorax", thorax_only.summary())
    report.add(f"Intervals ({level:g})", thorax_only.confint(level))
    at_08 = thorax_only.predict({'thorax': 0.8}, interval='confidence', level=level)
    report.add("Predicted longevity at thorax = 0.8 mm",
               at_08.to_frame({'thorax': [0.8]}).to_string())

    by_type = fit(ff, formula='longevity ~ type')
    report.add("Task 3. longevity ~ type", by_type.summary())

    enc = by_type.design.encoder.factors['type']
    coding = pd.DataFrame(
        [enc.lookup[level_] for level_ in enc.levels],
        index=list(enc.levels),
        columns=enc.column_names,
    )
    report.add(
        "Task 4. Dummy coding of 'type'",
        f"reference level: {enc.reference}\n{coding.to_string()}",
    )

    try:
        by_type.predict({'type': 'Other'}, interval='confidence', level=level)
    except UnseenLevelError as e:
        report.add("Task 5. Predicting an unseen category", f"Error: {e}")

    levels_frame = pd.DataFrame({'type': list(enc.levels)})
    type_means = by_type.predict(levels_frame, interval='confidence', level=level)
    report.add(f"Task 6. Mean longevity per type ({level:g} intervals)",
               type_means.to_frame(levels_frame).to_string())

    both = fit(ff, formula='longevity ~ thorax + type')
    report.add("Task 7. longevity ~ thorax + type", both.summary())
    report.add(
        "Thorax slope with and without type",
        f"thorax only:   {thorax_only.coef()['thorax']:.3f}  (R² = {thorax_only.r_squared:.3f})\n"
        f"thorax + type: {both.coef()['thorax']:.3f}  (R² = {both.r_squared:.3f})",
    )

    if plots:
        grid = expand_grid(thorax=seq_range(ff['thorax'], 50), type=list(enc.levels))
        band = both.predict(grid, interval='confidence', level=level).to_frame(grid)
        report.add_figure('part2_by_type', plot_by_group(ff, 'thorax', 'longevity', 'type'))
        report.add_figure('part2_bands', plot_confidence_band(
            band, 'thorax', group='type', ylabel='longevity'))
        sweep = prediction_grid(ff, over='thorax', n=50)
        simple_band = thorax_only.predict(
            sweep, interval='confidence', level=level).to_frame(sweep)
        report.add_figure('part2_thorax_band', plot_confidence_band(
            simple_band, 'thorax', ylabel='longevity'))
    return report


def part3_multiple_regression(
    data: pd.DataFrame | None = None,
    seed: int = 451,
    level: float = DEFAULT_LEVEL,
    plots: bool = False,
) -> PracticalReport:
    """Two continuous predictors, then the fruitfly exercises."""
    report = PracticalReport("Part 3 - Multiple regression")
    df = simulate_height_parents(seed=seed)

    model = fit(df, formula='height ~ weight + heightParents')
    report.add("Task 1. height ~ weight + heightParents", model.summary())
    coefs = model.coef()
    report.add(
        "Interpretation",
        f"(Intercept) = {coefs['(Intercept)']:.4g} cm, "
        f"weight = {coefs['weight']:.4g} cm/kg, "
        f"heightParents = {coefs['heightParents']:.4g} cm/cm",
    )

    ff = data if data is not None else simulate_fruitfly(seed=seed)
    if 'sleep' in ff.columns:
        ff_fit = fit(ff, formula='longevity ~ thorax + sleep')
        report.add("Exercise 1. longevity ~ thorax + sleep", ff_fit.summary())
        report.add(f"Exercise 2. Intervals ({level:g})", ff_fit.confint(level))
        report.add("Exercise 5. Model checking", _diagnostics_text(ff_fit))
        report.add(
            "Exercise 6. Variation explained",
            f"R² = {ff_fit.r_squared:.3f} (adjusted {ff_fit.adjusted_r_squared:.3f})",
        )
        if plots:
            report.add_figure('part3_fruitfly_diagnostics', plot_diagnostics(ff_fit))
    else:
        report.add("Exercises", "no 'sleep' column in the fruitfly data; skipped")

    by_type = fit(ff, formula='longevity ~ thorax + type')
    newdata = expand_grid(
        thorax=seq_range(ff['thorax'], 50),
        type=list(by_type.design.encoder.factors['type'].levels),
    )
    newdata['longevity'] = by_type.predict(newdata).fit
    report.add("Exercise 4. Mean lines per type (first rows)", newdata.head(10).to_string())

    if plots:
        report.add_figure('part3_diagnostics', plot_diagnostics(model))
        report.add_figure('part3_lines_by_type', plot_by_group(
            ff, 'thorax', 'longevity', 'type', lines=newdata))
    return report


def _diagnostics_text(model) -> str:
    diag = model.diagnostics()
    table = pd.DataFrame({
        'leverage': diag.leverage,
        'std. residual': diag.standardized_residuals,
        "Cook's D": diag.cooks_distance,
    })
    worst = table.sort_values("Cook's D", ascending=False).head(5)
    return "\n".join([
        f"sum of residuals: {model.residuals.sum():.3e}",
        f"sum of leverages: {diag.leverage.sum():.4f} (p = {diag.p})",
        f"high leverage (> 2p/n): {diag.high_leverage()}",
        f"influential (Cook's D > 4/n): {diag.influential()}",
        "largest Cook's distances:",
        worst.to_string(),
    ])


PARTS = ('1', '2', '3', 'all')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pylm-practicals',
        description='Run the linear models practical and print the results',
    )
    parser.add_argument('part', choices=PARTS, help='Which part to run')
    parser.add_argument(
        '--data', type=Path, default=None,
        help='Fruitfly CSV/TSV (longevity, thorax, type[, sleep]); simulated if omitted',
    )
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for all simulated data (default: per-part seeds)')
    parser.add_argument('--level', type=float, default=DEFAULT_LEVEL,
                        help=f'Confidence level (default: {DEFAULT_LEVEL})')
    parser.add_argument('--plots', type=Path, default=None, metavar='DIR',
                        help='Save figures as PNG files in DIR')
    return parser


def run(args: argparse.Namespace) -> list[PracticalReport]:
    seeds: dict[str, Any] = {} if args.seed is None else {'seed': args.seed}
    plots = args.plots is not None
    data = load_fruitfly(args.data) if args.data is not None else None

    parts = ('1', '2', '3') if args.part == 'all' else (args.part,)
    reports = []
    for part in parts:
        if part == '1':
            reports.append(part1_simple_regression(level=args.level, plots=plots, **seeds))
        elif part == '2':
            reports.append(part2_categorical(data, level=args.level, plots=plots, **seeds))
        else:
            reports.append(part3_multiple_regression(data, level=args.level, plots=plots, **seeds))
    return reports


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        reports = run(args)
    except (PyLMError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    for report in reports:
        print(report.render())
        if args.plots is not None:
            for path in report.save_figures(args.plots):
                print(f"  Wrote {path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())

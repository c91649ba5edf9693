"""
Correlation test solution type.

CorTestSolution wraps Result[CorTestParams] and prints like R's print.htest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray

from pylm.core.result import Result
from pylm.descriptive._common import CorTestParams

_TITLES = {
    'pearson': "Pearson's product-moment correlation",
    'spearman': "Spearman's rank correlation rho",
    'kendall': "Kendall's rank correlation tau",
}
_ESTIMATE_NAMES = {'pearson': 'cor', 'spearman': 'rho', 'kendall': 'tau'}
_PARAMETER_NAMES = {'pearson': 'correlation', 'spearman': 'rho', 'kendall': 'tau'}


@dataclass
class CorTestSolution:
    """User-facing correlation test results."""
    _result: Result[CorTestParams]

    @property
    def estimate(self) -> float:
        return self._result.params.estimate

    @property
    def statistic(self) -> float:
        return self._result.params.statistic

    @property
    def df(self) -> int | None:
        return self._result.params.df

    @property
    def p_value(self) -> float:
        return self._result.params.p_value

    @property
    def conf_int(self) -> NDArray[np.floating[Any]] | None:
        return self._result.params.conf_int

    @property
    def conf_level(self) -> float:
        return self._result.params.conf_level

    @property
    def method(self) -> str:
        return self._result.params.method

    @property
    def n(self) -> int:
        return self._result.params.n

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    def summary(self) -> str:
        """
        Format as R's print.htest output, e.g.:

            Pearson's product-moment correlation

        data:  weight and height
        t = 24.65, df = 98, p-value < 2.2e-16
        alternative hypothesis: true correlation is not equal to 0
        95 percent confidence interval:
         0.8930312  0.9505618
        sample estimates:
              cor
        0.9276453
        """
        p = self._result.params
        lines = [f"\t{_TITLES[p.method]}", "", f"data:  {p.data_name}"]

        parts = [f"{p.statistic_name} = {p.statistic:.5g}"]
        if p.df is not None:
            parts.append(f"df = {p.df}")
        parts.append(f"p-value {_format_pvalue(p.p_value)}")
        lines.append(", ".join(parts))

        lines.append(
            f"alternative hypothesis: true {_PARAMETER_NAMES[p.method]} is not equal to 0"
        )
        if p.conf_int is not None:
            lines.append(f"{p.conf_level * 100:g} percent confidence interval:")
            lo, hi = p.conf_int
            lines.append(f" {lo:.7g}  {hi:.7g}")

        lines.append("sample estimates:")
        lines.append(f"{_ESTIMATE_NAMES[p.method]:>14s}")
        lines.append(f"{p.estimate:14.7g}")
        lines.append("")
        return "\n".join(lines)

    def __repr__(self) -> str:
        p = self._result.params
        return (
            f"CorTestSolution(method={p.method!r}, estimate={p.estimate:.4g}, "
            f"p_value={p.p_value:.4g})"
        )


def _format_pvalue(p: float) -> str:
    """Format p-value like R does."""
    if p < 2.2e-16:
        return "< 2.2e-16"
    if p < 0.001:
        return f"= {p:.4e}"
    return f"= {p:.4g}"

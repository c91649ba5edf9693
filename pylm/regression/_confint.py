"""
Coefficient confidence intervals (R's confint.lm).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from scipy import stats as sp_stats

from pylm.core.validation import check_level


def t_quantile(level: float, df: int) -> float:
    """Two-sided critical value t_(1-α/2, df) for a confidence level."""
    level = check_level(level)
    return float(sp_stats.t.ppf(0.5 + level / 2.0, df))


def _pct_label(q: float) -> str:
    # R formats the bounds as e.g. "1.5 %" / "98.5 %"
    return f"{100 * q:.3g} %"


@dataclass(frozen=True)
class ConfidenceIntervals:
    """
    Confidence intervals for every coefficient.

    Attributes:
        names: Coefficient names
        estimates: Point estimates
        lower, upper: Interval bounds
        level: Confidence level
    """
    names: tuple[str, ...]
    estimates: NDArray[np.floating[Any]]
    lower: NDArray[np.floating[Any]]
    upper: NDArray[np.floating[Any]]
    level: float

    @classmethod
    def compute(
        cls,
        names: tuple[str, ...],
        estimates: NDArray,
        standard_errors: NDArray,
        df: int,
        level: float,
    ) -> ConfidenceIntervals:
        q = t_quantile(level, df)
        half = q * standard_errors
        return cls(
            names=tuple(names),
            estimates=estimates,
            lower=estimates - half,
            upper=estimates + half,
            level=float(level),
        )

    @property
    def width(self) -> NDArray[np.floating[Any]]:
        return self.upper - self.lower

    def __getitem__(self, name: str) -> tuple[float, float]:
        i = self.names.index(name)
        return float(self.lower[i]), float(self.upper[i])

    def as_dict(self) -> dict[str, tuple[float, float]]:
        return {name: self[name] for name in self.names}

    def to_frame(self) -> pd.DataFrame:
        """R-style table with percentage column labels."""
        alpha = 1.0 - self.level
        return pd.DataFrame(
            {
                _pct_label(alpha / 2): self.lower,
                _pct_label(1 - alpha / 2): self.upper,
            },
            index=list(self.names),
        )

    def __str__(self) -> str:
        return self.to_frame().to_string()

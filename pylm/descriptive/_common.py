"""
Common types for correlation analysis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import NDArray


VALID_METHODS = ("pearson", "spearman", "kendall")


@dataclass(frozen=True)
class CorTestParams:
    """
    Parameter payload for a correlation test (R's cor.test).

    Attributes
    ----------
    estimate : float
        Sample correlation (r, rho or tau).
    statistic : float
        Test statistic ("t" for Pearson, "S" for Spearman, "tau" for Kendall).
    statistic_name : str
    df : int or None
        Degrees of freedom (Pearson only).
    p_value : float
        Two-sided p-value for H0: correlation = 0.
    conf_int : ndarray or None
        Fisher-z confidence interval, shape (2,). Pearson with n > 3 only.
    conf_level : float
    method : str
        'pearson', 'spearman' or 'kendall'.
    n : int
        Number of pairs.
    data_name : str
    """
    estimate: float
    statistic: float
    statistic_name: str
    df: int | None
    p_value: float
    conf_int: NDArray[np.floating[Any]] | None
    conf_level: float
    method: str
    n: int
    data_name: str

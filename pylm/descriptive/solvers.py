"""
Correlation between two variables.

Public API:
    cor(x, y, method='pearson') -> float                 (R's cor)
    cor_test(x, y, method='pearson', conf_level=0.95)    (R's cor.test)
"""

from __future__ import annotations

from typing import Any, Literal

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy import stats as sp_stats

from pylm.core.compute.timing import timed
from pylm.core.exceptions import ValidationError
from pylm.core.result import Result
from pylm.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_finite,
    check_level,
    check_min_samples,
)
from pylm.descriptive._common import CorTestParams, VALID_METHODS
from pylm.descriptive.solution import CorTestSolution

CorMethod = Literal['pearson', 'spearman', 'kendall']


def _prepare(x: ArrayLike, y: ArrayLike, method: str) -> tuple[NDArray, NDArray]:
    if method not in VALID_METHODS:
        raise ValidationError(
            f"Unknown correlation method: {method!r}. "
            f"Must be 'pearson', 'spearman', or 'kendall'."
        )
    x_arr = check_array(x, 'x')
    y_arr = check_array(y, 'y')
    for arr, name in ((x_arr, 'x'), (y_arr, 'y')):
        check_1d(arr, name)
        check_finite(arr, name)
    check_consistent_length(x_arr, y_arr, names=('x', 'y'))
    check_min_samples(x_arr, 3, 'x')
    for arr, name in ((x_arr, 'x'), (y_arr, 'y')):
        if np.all(arr == arr[0]):
            raise ValidationError(
                f"{name}: is constant, so its correlation is undefined"
            )
    return x_arr.astype(np.float64), y_arr.astype(np.float64)


def _estimate(x: NDArray, y: NDArray, method: str) -> float:
    if method == 'pearson':
        return float(np.corrcoef(x, y)[0, 1])
    if method == 'spearman':
        return float(sp_stats.spearmanr(x, y)[0])
    return float(sp_stats.kendalltau(x, y)[0])


def cor(
    x: ArrayLike,
    y: ArrayLike,
    *,
    method: CorMethod = 'pearson',
) -> float:
    """
    Correlation coefficient between x and y. Matches R cor(x, y).

    Raises:
        ValidationError: Unknown method, fewer than 3 pairs, non-finite
            or constant input
    """
    x_arr, y_arr = _prepare(x, y, method)
    return _estimate(x_arr, y_arr, method)


def cor_test(
    x: ArrayLike,
    y: ArrayLike,
    *,
    method: CorMethod = 'pearson',
    conf_level: float = 0.95,
    data_name: str | None = None,
) -> CorTestSolution:
    """
    Test for association between paired samples. Matches R cor.test().

    Pearson: t = r √((n-2)/(1-r²)) on n-2 df, with a Fisher-z
    confidence interval when n > 3. Spearman and Kendall use scipy's
    p-values and report no interval.

    Parameters
    ----------
    x, y : array-like
        Paired 1D samples.
    method : str
        'pearson', 'spearman' or 'kendall'.
    conf_level : float
        Confidence level for the Pearson interval.
    data_name : str, optional
        Label for the summary, defaults to "x and y".

    Returns
    -------
    CorTestSolution
    """
    conf_level = check_level(conf_level, 'conf_level')
    x_arr, y_arr = _prepare(x, y, method)
    n = len(x_arr)

    df: int | None = None
    conf_int: NDArray[np.floating[Any]] | None = None

    with timed() as timer, timer.section(method):
        if method == 'pearson':
            r = _estimate(x_arr, y_arr, method)
            df = n - 2
            r_c = min(max(r, -1.0), 1.0)
            with np.errstate(divide='ignore'):
                statistic = r_c * np.sqrt(df / (1.0 - r_c ** 2))
            p_value = float(2.0 * sp_stats.t.sf(abs(statistic), df))
            statistic_name = 't'
            if n > 3:
                z = np.arctanh(r_c)
                half = sp_stats.norm.ppf(0.5 + conf_level / 2.0) / np.sqrt(n - 3)
                conf_int = np.tanh(np.array([z - half, z + half]))
        elif method == 'spearman':
            res = sp_stats.spearmanr(x_arr, y_arr)
            r = float(res[0])
            p_value = float(res[1])
            statistic = (n ** 3 - n) * (1.0 - r) / 6.0
            statistic_name = 'S'
        else:
            res = sp_stats.kendalltau(x_arr, y_arr)
            r = float(res[0])
            p_value = float(res[1])
            statistic = r
            statistic_name = 'tau'

    params = CorTestParams(
        estimate=r,
        statistic=float(statistic),
        statistic_name=statistic_name,
        df=df,
        p_value=p_value,
        conf_int=conf_int,
        conf_level=conf_level,
        method=method,
        n=n,
        data_name=data_name or "x and y",
    )
    result = Result(
        params=params,
        info={'method': method, 'n': n},
        timing=timer.result(),
        backend_name='cpu',
    )
    return CorTestSolution(_result=result)

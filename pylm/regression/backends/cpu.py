"""
CPU reference backend for linear regression.

Uses QR decomposition via LAPACK (through NumPy/SciPy) to solve the
least squares problem. Replicates R's lm() for full-rank designs.
"""

from typing import Any
import numpy as np

from pylm.core.result import Result
from pylm.core.compute.timing import Timer
from pylm.core.compute.linalg.qr import (
    qr_cpu,
    qr_solve_cpu,
    check_full_rank,
    unscaled_covariance,
    hat_diagonal,
)
from pylm.regression.design import RegressionDesign
from pylm.regression.solution import LinearParams


class CPUQRBackend:
    """
    CPU backend using QR decomposition.

    Implements the Backend protocol for RegressionDesign -> LinearParams.
    Rank-deficient designs are rejected rather than aliased.
    """

    @property
    def name(self) -> str:
        return 'cpu_qr'

    def solve(self, design: RegressionDesign) -> Result[LinearParams]:
        """
        Solve OLS via QR decomposition.

        Algorithm:
            1. Compute QR decomposition: X = QR
            2. Solve: β = R⁻¹ Q'y
            3. (X'X)⁻¹ = R⁻¹R⁻ᵀ, leverages h = rowsum(Q²)
            4. Residuals, fitted values, sums of squares

        Raises:
            SingularMatrixError: If X is rank-deficient
        """
        timer = Timer()
        timer.start()

        X = design.X
        y = design.y
        n, p = design.n, design.p

        with timer.section('qr_decomposition'):
            qr_result = qr_cpu(X, mode='reduced')
            check_full_rank(qr_result, p)

        with timer.section('solve'):
            coefficients = qr_solve_cpu(X, y, check_rank=False, qr_result=qr_result)
            xtx_inv = unscaled_covariance(qr_result)
            leverage = hat_diagonal(qr_result)

        with timer.section('residuals'):
            fitted_values = X @ coefficients
            residuals = y - fitted_values

        with timer.section('statistics'):
            rss = float(residuals @ residuals)
            if design.has_intercept:
                tss = float(np.sum((y - np.mean(y)) ** 2))
            else:
                # R uses the uncentred total for no-intercept models
                tss = float(y @ y)

        timer.stop()

        warnings: list[str] = []
        if rss <= np.finfo(np.float64).eps * max(tss, 1.0):
            warnings.append(
                "essentially perfect fit: summary statistics may be unreliable"
            )

        params = LinearParams(
            coefficients=coefficients,
            residuals=residuals,
            fitted_values=fitted_values,
            rss=rss,
            tss=tss,
            rank=qr_result.rank,
            df_residual=n - qr_result.rank,
            xtx_inv=xtx_inv,
            leverage=leverage,
        )

        info: dict[str, Any] = {
            'method': 'qr',
            'rank': qr_result.rank,
            'has_intercept': design.has_intercept,
        }

        return Result(
            params=params,
            info=info,
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings),
        )

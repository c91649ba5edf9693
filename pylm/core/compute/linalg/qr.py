"""
QR decomposition kernels.

Provides the QR-based least squares pieces a linear model needs:
the decomposition itself, the coefficient solve, the unscaled
covariance (X'X)⁻¹ and the hat-matrix diagonal. All of them work
from the same factorisation so X'X is never formed explicitly.
"""

from dataclasses import dataclass
from typing import Literal, Any

import numpy as np
from numpy.typing import NDArray
from scipy.linalg import solve_triangular

from pylm.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """
    Result of QR decomposition.

    Attributes:
        Q: Orthogonal matrix (n x k where k = min(n, p) for reduced mode)
        R: Upper triangular matrix (k x p)
        rank: Numerical rank determined from R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    rank: int


def qr_cpu(
    X: NDArray[np.floating[Any]],
    mode: Literal['reduced', 'complete'] = 'reduced'
) -> QRResult:
    """
    QR decomposition using LAPACK (via NumPy).

    Computes X = QR where Q is orthogonal and R is upper triangular.

    Args:
        X: Matrix to decompose (n x p)
        mode: 'reduced' for economy QR, 'complete' for full QR

    Returns:
        QRResult with Q, R, and numerical rank
    """
    Q, R = np.linalg.qr(X, mode=mode)

    # Rank from the R diagonal, LAPACK-style tolerance
    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R.max() > 0:
        tol = max(X.shape) * np.finfo(X.dtype).eps * diag_R.max()
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, rank=rank)


def check_full_rank(qr_result: QRResult, p: int, matrix_name: str = 'X') -> None:
    """
    Raise if the factorised matrix is not of full column rank.

    Raises:
        SingularMatrixError: If rank < p
    """
    if qr_result.rank < p:
        raise SingularMatrixError(
            f"Design matrix is rank-deficient: rank={qr_result.rank}, expected={p}. "
            f"This indicates perfect multicollinearity or a constant column.",
            matrix_name=matrix_name,
            rank=qr_result.rank,
            expected_rank=p
        )


def qr_solve_cpu(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
    check_rank: bool,
    qr_result: QRResult | None = None,
) -> NDArray[np.floating[Any]]:
    """
    Solve least squares via QR decomposition (CPU).

    Solves min_β ||y - Xβ||² as:
        X = QR
        β = R⁻¹ Q'y

    Args:
        X: Design matrix (n x p), must have n >= p
        y: Response vector (n,)
        check_rank: If True, raise SingularMatrixError on rank-deficient X
        qr_result: Reuse an existing factorisation of X

    Returns:
        Coefficient vector β (p,)

    Raises:
        SingularMatrixError: If X is rank-deficient and check_rank=True
    """
    n, p = X.shape
    if qr_result is None:
        qr_result = qr_cpu(X, mode='reduced')

    if check_rank:
        check_full_rank(qr_result, p)

    Qty = qr_result.Q.T @ y
    return solve_triangular(qr_result.R[:p, :p], Qty[:p], lower=False)


def unscaled_covariance(qr_result: QRResult) -> NDArray[np.floating[Any]]:
    """
    (X'X)⁻¹ from the R factor.

    Since X'X = R'R, (X'X)⁻¹ = R⁻¹R⁻ᵀ. Multiply by σ² to get the
    coefficient covariance matrix.
    """
    R = qr_result.R
    p = R.shape[1]
    R_inv = solve_triangular(R[:p, :p], np.eye(p), lower=False)
    return R_inv @ R_inv.T


def hat_diagonal(qr_result: QRResult) -> NDArray[np.floating[Any]]:
    """
    Diagonal of the hat matrix H = X(X'X)⁻¹X' = QQ'.

    h_i is the squared norm of row i of the reduced Q.
    """
    Q = qr_result.Q
    return np.einsum('ij,ij->i', Q, Q)

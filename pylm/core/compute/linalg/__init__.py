"""
Linear algebra kernels for PyLM.

CPU functions use NumPy/SciPy (LAPACK under the hood). Each decomposition
returns a structured result dataclass and errors are raised immediately.
"""

from pylm.core.compute.linalg.qr import (
    QRResult,
    qr_cpu,
    qr_solve_cpu,
    unscaled_covariance,
    hat_diagonal,
)

__all__ = [
    "QRResult",
    "qr_cpu",
    "qr_solve_cpu",
    "unscaled_covariance",
    "hat_diagonal",
]

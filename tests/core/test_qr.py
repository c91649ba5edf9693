"""
Tests for the QR kernels.

Validates the factorisation-derived quantities against direct
computations on small matrices.
"""

import numpy as np
import pytest

from pylm.core.compute.linalg import (
    hat_diagonal,
    qr_cpu,
    qr_solve_cpu,
    unscaled_covariance,
)
from pylm.core.compute.linalg.qr import check_full_rank
from pylm.core.exceptions import SingularMatrixError


@pytest.fixture
def design(rng):
    n = 30
    return np.column_stack([np.ones(n), rng.standard_normal(n), rng.uniform(0, 5, n)])


class TestQR:

    def test_full_rank(self, design):
        qr = qr_cpu(design)
        assert qr.rank == 3
        np.testing.assert_allclose(qr.Q @ qr.R, design, atol=1e-12)

    def test_rank_deficient_detected(self, design):
        X = np.column_stack([design, design[:, 1] + design[:, 2]])
        qr = qr_cpu(X)
        assert qr.rank == 3
        with pytest.raises(SingularMatrixError) as excinfo:
            check_full_rank(qr, 4)
        assert excinfo.value.rank == 3
        assert excinfo.value.expected_rank == 4

    def test_zero_matrix_rank(self):
        assert qr_cpu(np.zeros((5, 2))).rank == 0


class TestSolve:

    def test_matches_lstsq(self, design, rng):
        y = rng.standard_normal(design.shape[0])
        beta = qr_solve_cpu(design, y, check_rank=True)
        expected, *_ = np.linalg.lstsq(design, y, rcond=None)
        np.testing.assert_allclose(beta, expected, rtol=1e-10)

    def test_reuses_factorisation(self, design, rng):
        y = rng.standard_normal(design.shape[0])
        qr = qr_cpu(design)
        np.testing.assert_allclose(
            qr_solve_cpu(design, y, check_rank=False, qr_result=qr),
            qr_solve_cpu(design, y, check_rank=False),
        )

    def test_check_rank(self, design, rng):
        X = np.column_stack([design, 2 * design[:, 1]])
        with pytest.raises(SingularMatrixError):
            qr_solve_cpu(X, rng.standard_normal(X.shape[0]), check_rank=True)


class TestDerivedQuantities:

    def test_unscaled_covariance(self, design):
        qr = qr_cpu(design)
        np.testing.assert_allclose(
            unscaled_covariance(qr), np.linalg.inv(design.T @ design), rtol=1e-10,
        )

    def test_hat_diagonal(self, design):
        H = design @ np.linalg.inv(design.T @ design) @ design.T
        np.testing.assert_allclose(hat_diagonal(qr_cpu(design)), np.diag(H), atol=1e-12)

    def test_leverages_sum_to_p(self, design):
        h = hat_diagonal(qr_cpu(design))
        assert h.sum() == pytest.approx(3.0)
        assert np.all((h >= 0) & (h <= 1))

"""
Tests for regression diagnostics.

Validates leverage, standardized/studentized residuals and Cook's
distance against direct computations, and the sequence behaviour of
Diagnostics (lazy, finite, restartable).
"""

import numpy as np
import pytest

from pylm.regression import DiagnosticRow, Diagnostics, fit


@pytest.fixture
def model(height_parents):
    return fit(height_parents, formula='height ~ weight + heightParents')


@pytest.fixture
def diag(model):
    return model.diagnostics()


class TestLeverage:

    def test_in_unit_interval(self, diag):
        assert np.all(diag.leverage >= 0.0)
        assert np.all(diag.leverage <= 1.0)

    def test_sums_to_p(self, diag, model):
        assert diag.leverage.sum() == pytest.approx(model.p)

    def test_matches_hat_matrix(self, diag, model):
        X = model.design.X
        H = X @ np.linalg.inv(X.T @ X) @ X.T
        np.testing.assert_allclose(diag.leverage, np.diag(H), atol=1e-12)

    def test_factor_leverages(self, fruitfly):
        """With only a factor, leverage is 1 / (group size)."""
        d = fit(fruitfly, formula='longevity ~ type').diagnostics()
        np.testing.assert_allclose(d.leverage, 1.0 / 25)


class TestResiduals:

    def test_standardized(self, diag, model):
        expected = model.residuals / (model.residual_std_error * np.sqrt(1 - diag.leverage))
        np.testing.assert_allclose(diag.standardized_residuals, expected)

    def test_studentized_matches_deletion(self, diag, height_parents):
        """Externally studentized residual uses σ̂ from the fit without i."""
        i = 7
        reduced = fit(height_parents.drop(index=i), formula='height ~ weight + heightParents')
        e_i = diag.residuals[i]
        expected = e_i / (reduced.residual_std_error * np.sqrt(1 - diag.leverage[i]))
        assert diag.studentized_residuals[i] == pytest.approx(expected)

    def test_residuals_sum_to_zero(self, diag):
        assert abs(diag.residuals.sum()) < 1e-8


class TestCooksDistance:

    def test_formula(self, diag, model):
        r = diag.standardized_residuals
        h = diag.leverage
        np.testing.assert_allclose(diag.cooks_distance, r ** 2 / model.p * h / (1 - h))

    def test_matches_deletion(self, diag, model, height_parents):
        """D_i = ||ŷ - ŷ₍ᵢ₎||² / (p σ̂²)."""
        i = 3
        reduced = fit(height_parents.drop(index=i), formula='height ~ weight + heightParents')
        shift = model.fitted_values - model.design.X @ reduced.coefficients
        expected = shift @ shift / (model.p * model.residual_std_error ** 2)
        assert diag.cooks_distance[i] == pytest.approx(expected)

    def test_non_negative(self, diag):
        assert np.all(diag.cooks_distance >= 0)

    def test_influential_detects_outlier(self, height_weight):
        df = height_weight.copy()
        df.loc[0, 'height'] += 200.0
        d = fit(df, formula='height ~ weight').diagnostics()
        assert 0 in d.influential()
        assert d.influential(threshold=np.inf) == []

    def test_high_leverage_detects_extreme_x(self, height_weight):
        df = height_weight.copy()
        df.loc[0, 'weight'] = 300.0
        d = fit(df, formula='height ~ weight').diagnostics()
        assert 0 in d.high_leverage()


class TestSequence:

    def test_length(self, diag, model):
        assert len(diag) == model.n

    def test_rows(self, diag):
        row = diag[5]
        assert isinstance(row, DiagnosticRow)
        assert row.index == 5
        assert row.leverage == diag.leverage[5]
        assert row.cooks_distance == diag.cooks_distance[5]
        assert row.fitted + row.residual == pytest.approx(diag.fitted[5] + diag.residuals[5])

    def test_negative_index(self, diag):
        assert diag[-1].index == len(diag) - 1

    def test_index_out_of_range(self, diag):
        with pytest.raises(IndexError):
            diag[len(diag)]

    def test_restartable(self, diag):
        first = list(diag)
        second = list(diag)
        assert len(first) == len(diag)
        assert first == second

    def test_lazy_iteration(self, diag):
        it = iter(diag)
        assert next(it).index == 0
        assert next(it).index == 1
        # a fresh iterator starts over
        assert next(iter(diag)).index == 0

    def test_does_not_modify_fit(self, model):
        before = model.residuals.copy()
        list(model.diagnostics())
        np.testing.assert_array_equal(model.residuals, before)

    def test_repr(self, diag):
        assert repr(diag) == "Diagnostics(n=100, p=3)"


class TestQQ:

    def test_normal_quantiles(self, diag):
        theoretical, sample = diag.normal_quantiles()
        assert len(theoretical) == len(sample) == len(diag)
        assert np.all(np.diff(theoretical) > 0)
        assert np.all(np.diff(sample) >= 0)
        # symmetric plotting positions
        assert theoretical[0] == pytest.approx(-theoretical[-1])

    def test_scale_location(self, diag):
        np.testing.assert_allclose(
            diag.sqrt_abs_standardized ** 2, np.abs(diag.standardized_residuals),
        )


class TestLeverageOne:

    def test_warns_and_gives_nan(self):
        data = {
            'y': [1.0, 1.4, 0.8, 3.0, 3.3, 2.9, 7.0],
            'g': ['a', 'a', 'a', 'b', 'b', 'b', 'c'],
        }
        model = fit(data, formula='y ~ g')
        with pytest.warns(UserWarning, match="leverage one"):
            d = model.diagnostics()
        assert d.leverage[-1] == pytest.approx(1.0)
        assert np.isnan(d.standardized_residuals[-1])
        assert np.isnan(d.cooks_distance[-1])
        assert np.isfinite(d.cooks_distance[:-1]).all()

    def test_direct_construction(self):
        d = Diagnostics(
            fitted=np.array([1.0, 2.0, 3.0, 4.0]),
            residuals=np.array([0.1, -0.2, 0.2, -0.1]),
            leverage=np.array([0.5, 0.5, 0.5, 0.5]),
            sigma=0.5,
            p=2,
        )
        np.testing.assert_allclose(d.standardized_residuals[0], 0.1 / (0.5 * np.sqrt(0.5)))
        # n - p - 1 = 1 degree of freedom left
        assert np.all(np.isfinite(d.studentized_residuals))

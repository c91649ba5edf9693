"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest

from pylm.datasets import simulate_fruitfly, simulate_height_parents, simulate_height_weight


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Design matrix with an intercept column, low noise."""
    n = 100
    X = np.column_stack([np.ones(n), rng.standard_normal(n), rng.standard_normal(n)])
    beta_true = np.array([1.0, -2.0, 0.5])
    y = X @ beta_true + rng.standard_normal(n) * 0.1
    return X, y, beta_true


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2  # Perfect collinearity
    X = np.column_stack([x1, x2, x3])
    y = rng.standard_normal(n)
    return X, y


@pytest.fixture
def height_weight():
    return simulate_height_weight()


@pytest.fixture
def height_parents():
    return simulate_height_parents()


@pytest.fixture
def fruitfly():
    return simulate_fruitfly()


@pytest.fixture
def small_factor_frame():
    """Tiny dataset with one numeric and one three-level categorical predictor."""
    return pd.DataFrame({
        'y': [1.0, 2.1, 2.9, 4.2, 5.1, 5.8, 7.2, 8.1, 8.8],
        'x': [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0, 9.0],
        'g': ['b', 'a', 'c', 'a', 'b', 'c', 'a', 'b', 'c'],
    })

"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Simple regression dataset with intercept 0.5 and low noise."""
    n, p = 200, 3
    X = rng.standard_normal((n, p))
    beta_true = np.array([1.0, -2.0, 0.5])
    y = 0.5 + X @ beta_true + rng.standard_normal(n) * 0.1
    return X, y, beta_true


@pytest.fixture
def perfect_line():
    """Observations on y = 2x."""
    X = np.array([[1.0], [2.0], [3.0]])
    y = np.array([2.0, 4.0, 6.0])
    return X, y


@pytest.fixture
def collinear_data(rng):
    """Dataset with perfect collinearity (should fail to solve)."""
    n = 100
    x1 = rng.standard_normal(n)
    x2 = rng.standard_normal(n)
    x3 = x1 + x2
    X = np.column_stack([x1, x2, x3])
    y = rng.standard_normal(n)
    return X, y


@pytest.fixture(params=['exact', 'stable'])
def strategy(request):
    """Run a test once per sampling strategy."""
    return request.param

"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pymosaic.core.datasource import DataSource


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def simple_regression_data(rng):
    """Simple regression dataset for basic tests."""
    n, p = 100, 3
    X = rng.standard_normal((n, p))
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
def five_points():
    """Small monotone data set: x = 1..5, y = 1, 2, 4, 8, 8.2."""
    return {'x': [1.0, 2.0, 3.0, 4.0, 5.0], 'y': [1.0, 2.0, 4.0, 8.0, 8.2]}


@pytest.fixture
def regression_table(simple_regression_data):
    """simple_regression_data as named columns a, b, c and y."""
    X, y, _ = simple_regression_data
    return DataSource.from_arrays(a=X[:, 0], b=X[:, 1], c=X[:, 2], y=y)


@pytest.fixture
def quadratic_table():
    """Exact quadratic y = 1 + 2x - 0.5x^2 on 30 evenly spaced points."""
    x = np.linspace(-3.0, 3.0, 30)
    return DataSource.from_arrays(x=x, y=1.0 + 2.0 * x - 0.5 * x ** 2)


@pytest.fixture
def plane_table(rng):
    """Exact plane y = 3 + a - 2b on 60 scattered points."""
    a = rng.uniform(0.0, 10.0, 60)
    b = rng.uniform(-5.0, 5.0, 60)
    return DataSource.from_arrays(a=a, b=b, y=3.0 + a - 2.0 * b)

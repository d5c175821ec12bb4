"""
Pytest configuration for genstack tests.

Provides small synthetic datasets and helper estimators shared by the unit
and integration tests.
"""

import numpy as np
import pytest
from sklearn.base import BaseEstimator, RegressorMixin

from genstack.core.logging import reset_logging


class FailingRegressor(RegressorMixin, BaseEstimator):
    """Regressor whose fit or predict raises."""

    def __init__(self, fail_on="fit"):
        self.fail_on = fail_on

    def fit(self, X, y):
        if self.fail_on == "fit":
            raise RuntimeError("cannot fit")
        self.fitted_ = True
        return self

    def predict(self, X):
        if self.fail_on == "predict":
            raise RuntimeError("cannot predict")
        return np.zeros(len(X))


class RowIdRegressor(RegressorMixin, BaseEstimator):
    """Predicts 1.0 for rows whose id (column 0) was seen during fit, else 0.0."""

    def fit(self, X, y):
        self.seen_ids_ = set(np.asarray(X)[:, 0].tolist())
        return self

    def predict(self, X):
        ids = np.asarray(X)[:, 0].tolist()
        return np.array([1.0 if i in self.seen_ids_ else 0.0 for i in ids])


FIT_CALLS = {"count": 0}


class CountingRegressor(RegressorMixin, BaseEstimator):
    """Mean regressor counting how many times any instance was fitted."""

    def fit(self, X, y):
        FIT_CALLS["count"] += 1
        self.mean_ = float(np.mean(y))
        return self

    def predict(self, X):
        return np.full(len(X), self.mean_)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Remove handlers installed by configure_logging between tests."""
    yield
    reset_logging()


@pytest.fixture
def tiny_regression():
    """Six rows, two features, linear target."""
    X = np.array([
        [0.0, 1.0],
        [1.0, 0.5],
        [2.0, 2.0],
        [3.0, 1.5],
        [4.0, 3.0],
        [5.0, 2.5],
    ])
    y = np.array([1.0, 2.5, 4.0, 5.5, 8.0, 9.5])
    return X, y


@pytest.fixture
def regression_data():
    """Generate sample regression data."""
    rng = np.random.RandomState(42)
    X = rng.randn(60, 4)
    y = X @ np.array([1.5, -2.0, 0.5, 0.0]) + 0.1 * rng.randn(60)
    return X, y


@pytest.fixture
def classification_data():
    """Three well separated classes, 20 rows each."""
    rng = np.random.RandomState(0)
    centers = np.array([[0.0, 0.0], [4.0, 4.0], [-4.0, 4.0]])
    X = np.vstack([c + rng.randn(20, 2) for c in centers])
    y = np.repeat(np.array([0, 1, 2]), 20)
    return X, y


@pytest.fixture
def failing_regressor():
    """Factory for regressors failing in ``fit`` or ``predict``."""
    return FailingRegressor


@pytest.fixture
def row_id_regressor():
    return RowIdRegressor()


@pytest.fixture
def counting_regressor():
    """A CountingRegressor and the shared fit counter, reset to zero."""
    FIT_CALLS["count"] = 0
    return CountingRegressor(), FIT_CALLS

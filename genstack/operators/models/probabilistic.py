"""Probabilistic regression wrapper.

GaussianRegressor turns any regressor whose ``predict`` accepts
``return_std=True`` (BayesianRidge, ARDRegression, GaussianProcessRegressor,
...) into a probabilistic continuous model: ``predict_distribution`` returns a
``scipy.stats.norm`` frozen distribution vectorised over rows.
"""

import numpy as np
from scipy import stats
from sklearn.base import BaseEstimator, RegressorMixin, clone
from sklearn.linear_model import BayesianRidge
from sklearn.utils.validation import check_is_fitted


class GaussianRegressor(RegressorMixin, BaseEstimator):
    """Gaussian predictive distribution around a regressor's mean.

    Parameters
    ----------
    estimator : estimator, default=None
        Regressor supporting ``predict(X, return_std=True)``. Defaults to
        ``BayesianRidge()``.
    min_scale : float, default=1e-9
        Lower bound on the predicted standard deviation, so that degenerate
        rows still yield a valid distribution.

    Attributes
    ----------
    estimator_ : estimator
        The fitted regressor.
    """

    def __init__(self, estimator=None, min_scale=1e-9):
        self.estimator = estimator
        self.min_scale = min_scale

    def fit(self, X, y):
        estimator = self.estimator if self.estimator is not None else BayesianRidge()
        self.estimator_ = clone(estimator)
        self.estimator_.fit(X, y)
        if hasattr(self.estimator_, "n_features_in_"):
            self.n_features_in_ = self.estimator_.n_features_in_
        return self

    def predict(self, X):
        check_is_fitted(self, "estimator_")
        return self.estimator_.predict(X)

    def predict_distribution(self, X):
        """Predictive distribution of every row.

        Returns
        -------
        scipy.stats.rv_frozen
            ``norm(loc=mean, scale=std)`` with one entry per row.
        """
        check_is_fitted(self, "estimator_")
        mean, std = self.estimator_.predict(X, return_std=True)
        scale = np.maximum(np.asarray(std, dtype=float), self.min_scale)
        return stats.norm(loc=np.asarray(mean, dtype=float), scale=scale)

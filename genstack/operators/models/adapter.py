"""
Model adapter - fit/predict contract used by the stacking core.

Every fit works on an independent copy (``sklearn.base.clone``), so the
models held by a Stack are never mutated and no instance is shared between
folds. Prediction dispatches on the model's kinds:

- deterministic models use ``predict``
- probabilistic classifiers use ``predict_proba`` and ``classes_``
- probabilistic regressors use ``predict_distribution``
"""

from typing import Any

from sklearn.base import clone

from .kinds import ModelTraits, PredictionKind, TargetKind
from .predictions import CategoricalPrediction


def fit_model(model: Any, X: Any, y: Any) -> Any:
    """Fit an independent copy of ``model``.

    Args:
        model: Unfitted model (left untouched).
        X: Training table.
        y: Training target.

    Returns:
        The fitted copy.
    """
    fitted = clone(model, safe=False)
    fitted.fit(X, y)
    return fitted


def predict_model(fitted: Any, X: Any, traits: ModelTraits) -> Any:
    """Predict with a fitted model according to its kinds.

    Args:
        fitted: Model returned by :func:`fit_model`.
        X: Table to predict.
        traits: Kinds of the model, fixed when the stack was built.

    Returns:
        Point predictions, a CategoricalPrediction or a frozen distribution.
    """
    if traits.prediction_kind is PredictionKind.PROBABILISTIC:
        if traits.target_kind is TargetKind.FINITE:
            return CategoricalPrediction(fitted.predict_proba(X), fitted.classes_)
        return fitted.predict_distribution(X)
    return fitted.predict(X)

"""
Prediction transforms - reduce a base model's prediction to meta-features.

The transform applied to a prediction depends only on the model's
(prediction kind, target kind) pair and is looked up in an explicit table:

- probabilistic x finite      -> probability of each declared class level
- probabilistic x continuous  -> mean of the predictive distribution
- deterministic x continuous  -> the point prediction itself

Any other pair is rejected with a ConfigurationError. Stack validation calls
:func:`get_transform` for every base model, so unsupported models are
refused when the stack is built, never during a fit.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from genstack.exceptions import ConfigurationError
from genstack.operators.models.kinds import PredictionKind, TargetKind
from genstack.operators.models.predictions import CategoricalPrediction, distribution_mean

TransformFn = Callable[[Any, Optional[Sequence[Any]]], np.ndarray]


def _class_probabilities(prediction: Any, levels: Optional[Sequence[Any]]) -> np.ndarray:
    if levels is None:
        raise ValueError("Class levels are required to expand class probabilities")
    if isinstance(prediction, CategoricalPrediction):
        return prediction.align(levels)
    probabilities = np.atleast_2d(np.asarray(prediction, dtype=float))
    if probabilities.shape[1] != len(levels):
        raise ValueError(
            f"Got {probabilities.shape[1]} probability columns for {len(levels)} class levels"
        )
    return probabilities


def _distribution_mean(prediction: Any, levels: Optional[Sequence[Any]] = None) -> np.ndarray:
    return distribution_mean(prediction).reshape(-1, 1)


def _identity(prediction: Any, levels: Optional[Sequence[Any]] = None) -> np.ndarray:
    values = np.asarray(prediction, dtype=float)
    if values.ndim > 1 and values.shape[1] != 1:
        raise ValueError(f"Expected one prediction per row, got shape {values.shape}")
    return values.reshape(-1, 1)


TRANSFORMS: Dict[Tuple[PredictionKind, TargetKind], TransformFn] = {
    (PredictionKind.PROBABILISTIC, TargetKind.FINITE): _class_probabilities,
    (PredictionKind.PROBABILISTIC, TargetKind.CONTINUOUS): _distribution_mean,
    (PredictionKind.DETERMINISTIC, TargetKind.CONTINUOUS): _identity,
}


def get_transform(prediction_kind: PredictionKind, target_kind: TargetKind) -> TransformFn:
    """Look up the transform for a (prediction kind, target kind) pair.

    Raises:
        ConfigurationError: If the pair has no transform.
    """
    try:
        return TRANSFORMS[(prediction_kind, target_kind)]
    except KeyError:
        raise ConfigurationError(
            f"No prediction transform for {prediction_kind.value} models "
            f"with {target_kind.value} targets. Supported: "
            + ", ".join(f"{p.value} x {t.value}" for p, t in TRANSFORMS)
        ) from None


def expands_levels(prediction_kind: PredictionKind, target_kind: TargetKind) -> bool:
    """Whether the transform yields one column per class level."""
    return prediction_kind is PredictionKind.PROBABILISTIC and target_kind is TargetKind.FINITE


def transform_prediction(
    prediction: Any,
    prediction_kind: PredictionKind,
    target_kind: TargetKind,
    levels: Optional[Sequence[Any]] = None,
) -> np.ndarray:
    """Reduce a raw prediction to its feature block.

    Args:
        prediction: Raw output of the model's predict contract.
        prediction_kind: Kind of the model.
        target_kind: Target kind of the model.
        levels: Declared class levels (probabilistic x finite only).

    Returns:
        Float array of shape (n_rows, width): width is 1, or len(levels)
        for class probabilities.
    """
    return get_transform(prediction_kind, target_kind)(prediction, levels)


def feature_names(
    model_name: str,
    prediction_kind: PredictionKind,
    target_kind: TargetKind,
    levels: Optional[Sequence[Any]] = None,
) -> List[str]:
    """Column names of one model's feature block."""
    get_transform(prediction_kind, target_kind)
    if expands_levels(prediction_kind, target_kind):
        if levels is None:
            raise ValueError(f"Class levels are required to name the features of '{model_name}'")
        return [f"{model_name}__{level}" for level in np.asarray(levels).tolist()]
    return [model_name]

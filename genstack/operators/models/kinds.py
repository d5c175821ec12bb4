"""
Model kinds: what a model predicts and what it accepts.

This module provides:
- PredictionKind: deterministic (point values) vs probabilistic (distributions)
- TargetKind: semantic kind of the predicted target (continuous, finite, ...)
- InputKind: kind of table a model accepts, with a sub-kind relation
- model_traits(): read explicit kind attributes or infer them from scikit-learn
- infer_input_kind() / infer_target_kind(): kinds of concrete data

A model may declare its kinds through ``prediction_kind``, ``target_kind`` and
``input_kind`` attributes (enum members or their string values). Otherwise
they are inferred from the scikit-learn estimator API.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator, is_classifier, is_regressor


class PredictionKind(Enum):
    """Whether a model's predict yields point values or distributions."""
    DETERMINISTIC = "deterministic"
    PROBABILISTIC = "probabilistic"
    UNKNOWN = "unknown"


class TargetKind(Enum):
    """Semantic kind of the target vector a model predicts."""
    CONTINUOUS = "continuous"
    FINITE = "finite"
    COUNT = "count"
    UNKNOWN = "unknown"


class InputKind(Enum):
    """Kind of input table a model accepts.

    ``UNKNOWN`` is the unconstrained kind: every other kind is a sub-kind of it.
    """
    UNKNOWN = "unknown"
    TABLE = "table"
    CONTINUOUS_TABLE = "continuous_table"
    FINITE_TABLE = "finite_table"
    COUNT_TABLE = "count_table"


# Direct parent of each input kind
_INPUT_PARENTS = {
    InputKind.UNKNOWN: None,
    InputKind.TABLE: InputKind.UNKNOWN,
    InputKind.CONTINUOUS_TABLE: InputKind.TABLE,
    InputKind.FINITE_TABLE: InputKind.TABLE,
    InputKind.COUNT_TABLE: InputKind.TABLE,
}


def is_subkind(kind: InputKind, other: InputKind) -> bool:
    """Whether ``kind`` is ``other`` or one of its descendants."""
    current: Optional[InputKind] = kind
    while current is not None:
        if current is other:
            return True
        current = _INPUT_PARENTS[current]
    return False


def greatest_lower_bound(kinds: Iterable[InputKind]) -> InputKind:
    """Most general input kind accepted by every model.

    Scans the kinds in order and returns the first one that is a sub-kind of
    all the others. When none qualifies, the result is ``InputKind.UNKNOWN``.
    The scan is order dependent when several candidates qualify.
    """
    kinds = list(kinds)
    for candidate in kinds:
        if all(is_subkind(candidate, other) for other in kinds):
            return candidate
    return InputKind.UNKNOWN


@dataclass(frozen=True)
class ModelTraits:
    """Static kinds of a model.

    Attributes:
        prediction_kind: Deterministic or probabilistic predictions.
        target_kind: Kind of target predicted.
        input_kind: Kind of input table accepted.
    """
    prediction_kind: PredictionKind
    target_kind: TargetKind
    input_kind: InputKind


def _declared(model: Any, attribute: str, enum_cls: type) -> Optional[Enum]:
    value = getattr(model, attribute, None)
    if value is None:
        return None
    if isinstance(value, enum_cls):
        return value
    return enum_cls(value)


def _estimator_role(model: Any) -> Optional[str]:
    """Return "classifier", "regressor" or None for an estimator-like object."""
    if isinstance(model, BaseEstimator) or hasattr(model, "__sklearn_tags__"):
        if is_classifier(model):
            return "classifier"
        if is_regressor(model):
            return "regressor"
        return None
    return getattr(model, "_estimator_type", None)


def infer_prediction_kind(model: Any) -> PredictionKind:
    declared = _declared(model, "prediction_kind", PredictionKind)
    if declared is not None:
        return declared
    if hasattr(model, "predict_distribution"):
        return PredictionKind.PROBABILISTIC
    # SVC(probability=False) hides predict_proba, so hasattr is reliable
    if _estimator_role(model) == "classifier" and hasattr(model, "predict_proba"):
        return PredictionKind.PROBABILISTIC
    if hasattr(model, "fit") and hasattr(model, "predict"):
        return PredictionKind.DETERMINISTIC
    return PredictionKind.UNKNOWN


def infer_model_target_kind(model: Any) -> TargetKind:
    declared = _declared(model, "target_kind", TargetKind)
    if declared is not None:
        return declared
    role = _estimator_role(model)
    if role == "classifier":
        return TargetKind.FINITE
    if role == "regressor":
        return TargetKind.CONTINUOUS
    return TargetKind.UNKNOWN


def infer_model_input_kind(model: Any) -> InputKind:
    declared = _declared(model, "input_kind", InputKind)
    if declared is not None:
        return declared
    if isinstance(model, BaseEstimator):
        return InputKind.CONTINUOUS_TABLE
    return InputKind.UNKNOWN


def model_traits(model: Any) -> ModelTraits:
    """Get the kinds of a model.

    Args:
        model: Unfitted model.

    Returns:
        ModelTraits with prediction, target and input kinds.

    Raises:
        ValueError: If a declared kind attribute holds an unknown value.
    """
    return ModelTraits(
        prediction_kind=infer_prediction_kind(model),
        target_kind=infer_model_target_kind(model),
        input_kind=infer_model_input_kind(model),
    )


def _column_kind(values: np.ndarray) -> InputKind:
    if values.dtype == bool or values.dtype.kind in ("O", "U", "S"):
        return InputKind.FINITE_TABLE
    if values.dtype.kind in ("i", "u"):
        return InputKind.COUNT_TABLE
    if values.dtype.kind == "f":
        return InputKind.CONTINUOUS_TABLE
    return InputKind.TABLE


def infer_input_kind(X: Any) -> InputKind:
    """Kind of a concrete input table.

    DataFrames are inspected column by column; a table mixing column kinds is
    a plain ``TABLE``. Non-tabular inputs are ``UNKNOWN``.
    """
    if isinstance(X, pd.DataFrame):
        kinds = set()
        for _, column in X.items():
            if isinstance(column.dtype, pd.CategoricalDtype):
                kinds.add(InputKind.FINITE_TABLE)
            else:
                kinds.add(_column_kind(column.to_numpy()))
        if len(kinds) == 1:
            return kinds.pop()
        return InputKind.TABLE
    if isinstance(X, np.ndarray) and X.ndim == 2:
        return _column_kind(X)
    return InputKind.UNKNOWN


def infer_target_kind(y: Any) -> TargetKind:
    """Kind of a concrete target vector."""
    if isinstance(y, pd.Series) and isinstance(y.dtype, pd.CategoricalDtype):
        return TargetKind.FINITE
    values = np.asarray(y)
    if values.dtype == bool or values.dtype.kind in ("O", "U", "S"):
        return TargetKind.FINITE
    if values.dtype.kind in ("i", "u"):
        return TargetKind.COUNT
    if values.dtype.kind == "f":
        return TargetKind.CONTINUOUS
    return TargetKind.UNKNOWN

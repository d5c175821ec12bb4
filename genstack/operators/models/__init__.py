"""
Model operators: kinds, fit/predict adapter and probabilistic wrappers.
"""

from .adapter import fit_model, predict_model
from .kinds import (
    InputKind,
    ModelTraits,
    PredictionKind,
    TargetKind,
    greatest_lower_bound,
    infer_input_kind,
    infer_target_kind,
    is_subkind,
    model_traits,
)
from .predictions import CategoricalPrediction, distribution_mean, distribution_median
from .probabilistic import GaussianRegressor

__all__ = [
    "fit_model",
    "predict_model",
    "InputKind",
    "ModelTraits",
    "PredictionKind",
    "TargetKind",
    "greatest_lower_bound",
    "infer_input_kind",
    "infer_target_kind",
    "is_subkind",
    "model_traits",
    "CategoricalPrediction",
    "distribution_mean",
    "distribution_median",
    "GaussianRegressor",
]

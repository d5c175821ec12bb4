"""
genstack - Generalized model stacking.

Trains a library of heterogeneous base models, uses their cross-validated
out-of-fold predictions as features, and fits a meta-learner on them
(Wolpert, 1992; Van der Laan et al., 2007).
"""

__version__ = "0.1.0"
__author__ = "genstack Project"

import logging as _logging

from .core.logging import NullHandler as _NullHandler

# Silent by default until configure_logging() is called
_logging.getLogger("genstack").addHandler(_NullHandler())

# Core stacking components - most commonly used
from .stacking import FittedStack, FitReport, Stack, fit, predict, validate
from .operators.splitters import CV, StratifiedCV, make_folds
from .operators.models import (
    CategoricalPrediction,
    GaussianRegressor,
    InputKind,
    PredictionKind,
    TargetKind,
)
from .config import StackingConfig
from .exceptions import ConfigurationError, PredictionError, StackingError, TrainingError

__all__ = [
    # Stacking
    "Stack",
    "FittedStack",
    "FitReport",
    "fit",
    "predict",
    "validate",

    # Folds
    "CV",
    "StratifiedCV",
    "make_folds",

    # Models
    "CategoricalPrediction",
    "GaussianRegressor",
    "InputKind",
    "PredictionKind",
    "TargetKind",

    # Configuration
    "StackingConfig",

    # Errors
    "StackingError",
    "ConfigurationError",
    "TrainingError",
    "PredictionError",
]

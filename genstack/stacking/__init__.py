"""
Stacking core: Stack entity, prediction transforms, out-of-fold training,
meta-dataset assembly, meta-learner training and full-data retraining.
"""

from .transforms import (
    TRANSFORMS,
    expands_levels,
    feature_names,
    get_transform,
    transform_prediction,
)
from .stack import Stack, validate
from .members import StackMember, build_members
from .oof import FoldBlock, collect_out_of_fold, fit_predict_member
from .assembler import MetaDataset, assemble_meta_dataset
from .fitted import FitReport, FittedStack
from .training import check_kinds, fit, predict, retrain_base_models, train_metalearner

__all__ = [
    # Transforms
    "TRANSFORMS",
    "expands_levels",
    "feature_names",
    "get_transform",
    "transform_prediction",
    # Stack
    "Stack",
    "validate",
    "StackMember",
    "build_members",
    # Out-of-fold
    "FoldBlock",
    "collect_out_of_fold",
    "fit_predict_member",
    # Meta-dataset
    "MetaDataset",
    "assemble_meta_dataset",
    # Training
    "FitReport",
    "FittedStack",
    "check_kinds",
    "fit",
    "predict",
    "retrain_base_models",
    "train_metalearner",
]

"""
Splitters module: fold strategies used to build out-of-fold predictions.
"""
from .folds import (
    CV,
    Fold,
    FoldStrategy,
    StratifiedCV,
    make_folds,
)

__all__ = [
    "CV",
    "Fold",
    "FoldStrategy",
    "StratifiedCV",
    "make_folds",
]

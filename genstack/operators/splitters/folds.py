"""Fold strategies: partition row indices into (train, test) pairs.

``CV`` splits rows into contiguous, near-equal test blocks (optionally after
a seeded shuffle); ``StratifiedCV`` delegates to scikit-learn's
``StratifiedKFold`` so each test block keeps the class proportions of the
target. In both cases the test blocks cover every row exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, NamedTuple, Optional

import numpy as np
from sklearn.model_selection import StratifiedKFold
from sklearn.utils import check_random_state
from sklearn.utils.multiclass import type_of_target

from genstack.exceptions import ConfigurationError


class Fold(NamedTuple):
    """One (train, test) split of row positions."""
    train: np.ndarray
    test: np.ndarray


@dataclass(frozen=True)
class FoldStrategy:
    """Base class for fold strategies.

    Attributes:
        n_folds: Number of folds (at least 2).
        shuffle: Shuffle rows before splitting.
        random_state: Seed used when shuffling.
    """

    n_folds: int = 6
    shuffle: bool = False
    random_state: Optional[int] = None

    def __post_init__(self) -> None:
        if isinstance(self.n_folds, bool) or not isinstance(self.n_folds, (int, np.integer)):
            raise ConfigurationError(f"n_folds must be an integer, got {self.n_folds!r}")
        if self.n_folds < 2:
            raise ConfigurationError(f"n_folds must be at least 2, got {self.n_folds}")

    def train_test_pairs(self, n: int, y: Any = None) -> List[Fold]:
        raise NotImplementedError


@dataclass(frozen=True)
class CV(FoldStrategy):
    """Plain k-fold partition.

    Test blocks are contiguous in (possibly shuffled) row order; the first
    ``n % n_folds`` blocks get one extra row. When ``n < n_folds`` the
    trailing folds have no test rows.
    """

    def train_test_pairs(self, n: int, y: Any = None) -> List[Fold]:
        rows = np.arange(n)
        if self.shuffle:
            rows = check_random_state(self.random_state).permutation(n)
        blocks = np.array_split(rows, self.n_folds)
        folds = []
        for i, test in enumerate(blocks):
            train = np.concatenate([b for j, b in enumerate(blocks) if j != i])
            folds.append(Fold(train=train.astype(int), test=test.astype(int)))
        return folds


@dataclass(frozen=True)
class StratifiedCV(FoldStrategy):
    """Stratified k-fold partition over the classes of ``y``."""

    def train_test_pairs(self, n: int, y: Any = None) -> List[Fold]:
        if y is None:
            raise ConfigurationError("StratifiedCV requires the target to build folds")
        y = np.asarray(y)
        if len(y) != n:
            raise ValueError(f"Target has {len(y)} rows, expected {n}")
        target_type = type_of_target(y)
        if target_type not in ("binary", "multiclass"):
            raise ConfigurationError(
                f"StratifiedCV needs a binary or multiclass target, got a {target_type} target"
            )
        splitter = StratifiedKFold(
            n_splits=self.n_folds,
            shuffle=self.shuffle,
            random_state=self.random_state if self.shuffle else None,
        )
        return [
            Fold(train=train.astype(int), test=test.astype(int))
            for train, test in splitter.split(np.zeros((n, 1)), y)
        ]


def make_folds(strategy: FoldStrategy, n: int, y: Any = None) -> List[Fold]:
    """Partition ``n`` rows into the folds of ``strategy``.

    Args:
        strategy: CV or StratifiedCV.
        n: Number of rows.
        y: Target, required by StratifiedCV.

    Returns:
        List of Fold(train, test), one per fold.
    """
    if not isinstance(strategy, FoldStrategy):
        raise ConfigurationError(
            f"Fold strategy must be CV or StratifiedCV, got {type(strategy).__name__}"
        )
    return strategy.train_test_pairs(n, y)

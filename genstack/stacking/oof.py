"""
Out-of-fold trainer.

For every fold and every base model, an independent copy of the model is
trained on the fold's train rows and predicts the fold's test rows. The
transformed predictions of all models are concatenated column-wise into one
feature block per fold, so each row's meta-features come from models that
never saw that row.

Fold x model tasks are independent. They run sequentially by default or on a
joblib pool; either way the blocks are reassembled in fold order, and models
in declaration order, so the result does not depend on the execution mode.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np
from joblib import Parallel, delayed

from genstack.core.logging import LogContext, get_logger
from genstack.operators.splitters.folds import Fold
from genstack.utils.tabular import select_rows

from .members import StackMember

logger = get_logger(__name__)


@dataclass(frozen=True)
class FoldBlock:
    """Out-of-fold features of one fold.

    Attributes:
        fold_index: Index of the fold.
        test_indices: Row positions held out in this fold.
        features: Array (n_test, n_features), rows aligned with test_indices.
        target: True target of the held-out rows.
    """

    fold_index: int
    test_indices: np.ndarray
    features: np.ndarray
    target: Any

    @property
    def n_rows(self) -> int:
        return len(self.test_indices)


def fit_predict_member(
    member: StackMember,
    X: Any,
    y: Any,
    fold: Fold,
    fold_index: int,
) -> np.ndarray:
    """Train ``member`` on the fold's train rows and featurize its test rows.

    A fold without test rows yields an empty block and trains nothing.
    """
    if len(fold.test) == 0:
        logger.debug(f"Fold {fold_index}: no test rows, skipping '{member.name}'")
        return member.empty_block()

    fitted = member.fit(select_rows(X, fold.train), select_rows(y, fold.train), fold_index)
    block = member.features(fitted, select_rows(X, fold.test), fold_index)
    logger.trace(f"Fold {fold_index}: '{member.name}' -> {block.shape[1]} feature(s)")
    return block


def collect_out_of_fold(
    X: Any,
    y: Any,
    folds: Sequence[Fold],
    members: Sequence[StackMember],
    n_jobs: Optional[int] = None,
    backend: str = "loky",
) -> List[FoldBlock]:
    """Build the out-of-fold feature block of every fold.

    Args:
        X: Full input table.
        y: Full target.
        folds: Folds in processing order.
        members: Base models in declaration order.
        n_jobs: joblib workers; None or 1 runs sequentially.
        backend: joblib backend.

    Returns:
        One FoldBlock per fold, in fold order.

    Raises:
        TrainingError: If a base model fails to fit on a fold.
        PredictionError: If a base model fails to predict a fold.
    """
    if n_jobs is None or n_jobs == 1:
        blocks_per_task = []
        for fold_index, fold in enumerate(folds):
            with LogContext.fold(fold_index, total=len(folds)):
                logger.debug(
                    f"Training {len(members)} model(s) on {len(fold.train)} rows, "
                    f"predicting {len(fold.test)} rows"
                )
                for member in members:
                    blocks_per_task.append(fit_predict_member(member, X, y, fold, fold_index))
    else:
        logger.debug(f"Dispatching {len(folds) * len(members)} fold x model tasks (n_jobs={n_jobs})")
        # Parallel returns results in submission order
        blocks_per_task = Parallel(n_jobs=n_jobs, backend=backend, verbose=0)(
            delayed(fit_predict_member)(member, X, y, fold, fold_index)
            for fold_index, fold in enumerate(folds)
            for member in members
        )

    fold_blocks = []
    n_members = len(members)
    for fold_index, fold in enumerate(folds):
        task_blocks = blocks_per_task[fold_index * n_members:(fold_index + 1) * n_members]
        fold_blocks.append(
            FoldBlock(
                fold_index=fold_index,
                test_indices=np.asarray(fold.test, dtype=int),
                features=np.hstack(task_blocks),
                target=select_rows(y, fold.test),
            )
        )
    return fold_blocks

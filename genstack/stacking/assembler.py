"""Meta-dataset assembler: stack fold blocks into the meta-learner's table."""

from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd

from genstack.exceptions import StackingError
from genstack.utils.tabular import concat_rows, n_rows

from .oof import FoldBlock


@dataclass(frozen=True)
class MetaDataset:
    """Training table of the meta-learner.

    Attributes:
        features: Z, one column per base-model feature, rows in fold order.
        target: y_meta, the true target aligned with the rows of Z.
        row_indices: Original row position of each row of Z.
        fold_ids: Fold that produced each row of Z.
    """

    features: pd.DataFrame
    target: Any
    row_indices: np.ndarray
    fold_ids: np.ndarray

    def __len__(self) -> int:
        return len(self.features)

    @property
    def feature_names(self) -> list:
        return list(self.features.columns)


def assemble_meta_dataset(
    blocks: Sequence[FoldBlock],
    feature_names: Sequence[str],
    n_rows_expected: Optional[int] = None,
) -> MetaDataset:
    """Concatenate fold blocks, in fold order, into (Z, y_meta).

    Args:
        blocks: Out-of-fold blocks in fold order.
        feature_names: Column names of Z.
        n_rows_expected: Size of the full dataset. When given, every row must
            appear exactly once.

    Returns:
        The assembled MetaDataset.

    Raises:
        StackingError: If the rows of Z and y_meta disagree or do not cover
            the dataset exactly once.
    """
    feature_names = list(feature_names)
    if blocks:
        matrix = np.vstack([block.features for block in blocks])
        target = concat_rows([block.target for block in blocks])
        row_indices = np.concatenate([block.test_indices for block in blocks]).astype(int)
        fold_ids = np.concatenate(
            [np.full(block.n_rows, block.fold_index, dtype=int) for block in blocks]
        )
    else:
        matrix = np.empty((0, len(feature_names)))
        target = np.empty(0)
        row_indices = np.empty(0, dtype=int)
        fold_ids = np.empty(0, dtype=int)

    if matrix.shape[1] != len(feature_names):
        raise StackingError(
            f"Meta-features have {matrix.shape[1]} columns but {len(feature_names)} names"
        )
    if matrix.shape[0] != n_rows(target):
        raise StackingError(
            f"Meta-features have {matrix.shape[0]} rows but the meta-target has {n_rows(target)}"
        )
    if n_rows_expected is not None:
        covered = np.bincount(row_indices, minlength=n_rows_expected)
        if len(covered) != n_rows_expected or np.any(covered != 1):
            raise StackingError(
                f"Folds must hold out each of the {n_rows_expected} rows exactly once; "
                f"got {len(row_indices)} held-out rows"
            )

    features = pd.DataFrame(matrix, columns=feature_names)
    return MetaDataset(
        features=features,
        target=target,
        row_indices=row_indices,
        fold_ids=fold_ids,
    )

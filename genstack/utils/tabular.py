"""Row-wise helpers for the tabular containers genstack accepts.

Inputs may be NumPy arrays, pandas DataFrames/Series or plain sequences.
These helpers select, count and concatenate rows without converting the
container, so estimators see the same type they were given.
"""

from typing import Any, Sequence

import numpy as np
import pandas as pd


def n_rows(data: Any) -> int:
    """Number of rows of a table or target."""
    if hasattr(data, "shape"):
        return int(data.shape[0])
    return len(data)


def select_rows(data: Any, indices: np.ndarray) -> Any:
    """Select rows by integer position.

    Args:
        data: Array, DataFrame, Series or sequence.
        indices: Integer row positions.

    Returns:
        Rows of the same container type.
    """
    indices = np.asarray(indices, dtype=int)
    if isinstance(data, (pd.DataFrame, pd.Series)):
        return data.iloc[indices]
    if isinstance(data, np.ndarray):
        return data[indices]
    return np.asarray(data)[indices]


def concat_rows(parts: Sequence[Any]) -> Any:
    """Concatenate row blocks vertically.

    pandas parts are concatenated with a fresh RangeIndex; anything else is
    concatenated as NumPy arrays.
    """
    if not parts:
        return np.empty(0)
    if all(isinstance(p, (pd.DataFrame, pd.Series)) for p in parts):
        return pd.concat(list(parts), ignore_index=True)
    return np.concatenate([np.asarray(p) for p in parts], axis=0)


def target_levels(y: Any) -> np.ndarray:
    """Declared class levels of a finite target.

    Categorical Series keep their declared categories (including unused
    ones); anything else uses the sorted unique values.
    """
    if isinstance(y, pd.Series) and isinstance(y.dtype, pd.CategoricalDtype):
        return np.asarray(y.cat.categories)
    return np.unique(np.asarray(y))

"""Containers for probabilistic predictions.

Probabilistic classifiers predict a :class:`CategoricalPrediction`: one
probability vector per row over the classes the model saw during training.
Probabilistic regressors predict a ``scipy.stats`` frozen distribution whose
parameters are vectorised over rows (or a sequence of per-row frozen
distributions); see :func:`distribution_mean`.
"""

from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np


@dataclass(frozen=True)
class CategoricalPrediction:
    """Per-row class probabilities.

    Attributes:
        probabilities: Array of shape (n_rows, n_classes).
        classes: Class labels matching the probability columns.
    """

    probabilities: np.ndarray
    classes: np.ndarray

    def __post_init__(self) -> None:
        probabilities = np.atleast_2d(np.asarray(self.probabilities, dtype=float))
        classes = np.asarray(self.classes)
        if probabilities.shape[1] != len(classes):
            raise ValueError(
                f"Got {probabilities.shape[1]} probability columns for {len(classes)} classes"
            )
        object.__setattr__(self, "probabilities", probabilities)
        object.__setattr__(self, "classes", classes)

    def __len__(self) -> int:
        return self.probabilities.shape[0]

    def pdf(self, level: Any) -> np.ndarray:
        """Probability of ``level`` for every row (0 for an unseen level)."""
        return self.align([level])[:, 0]

    def align(self, levels: Sequence[Any]) -> np.ndarray:
        """Probabilities over ``levels``, in that order.

        Levels the model never saw get a column of zeros.

        Returns:
            Array of shape (n_rows, len(levels)).
        """
        position = {level: i for i, level in enumerate(self.classes.tolist())}
        aligned = np.zeros((len(self), len(levels)))
        for j, level in enumerate(np.asarray(levels).tolist()):
            i = position.get(level)
            if i is not None:
                aligned[:, j] = self.probabilities[:, i]
        return aligned

    def mode(self) -> np.ndarray:
        """Most probable class of every row (first class on ties)."""
        return self.classes[np.argmax(self.probabilities, axis=1)]


def distribution_mean(prediction: Any) -> np.ndarray:
    """Mean of each row's predictive distribution.

    Args:
        prediction: A frozen distribution with vectorised parameters, or a
            sequence of per-row frozen distributions.

    Returns:
        1-D float array of means.
    """
    if hasattr(prediction, "mean") and callable(prediction.mean):
        return np.asarray(prediction.mean(), dtype=float).ravel()
    return np.array([d.mean() for d in prediction], dtype=float)


def distribution_median(prediction: Any) -> np.ndarray:
    """Median of each row's predictive distribution."""
    if hasattr(prediction, "median") and callable(prediction.median):
        return np.asarray(prediction.median(), dtype=float).ravel()
    return np.array([d.median() for d in prediction], dtype=float)

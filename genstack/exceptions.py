"""Exceptions raised by genstack.

Configuration problems are detected eagerly when a :class:`~genstack.Stack`
is built. Training and prediction failures are fatal: they abort the whole
operation and carry the name of the offending model and, where relevant, the
index of the fold being processed.
"""

from typing import Optional


class StackingError(Exception):
    """Base exception for all stacking errors."""
    pass


class ConfigurationError(StackingError, ValueError):
    """Raised when a stack, a fold strategy or a setting is invalid."""
    pass


class _ModelFailure(StackingError):
    """Failure attributed to a model, optionally within a fold."""

    action = "fail"

    def __init__(
        self,
        message: str,
        model_name: Optional[str] = None,
        fold_index: Optional[int] = None,
    ) -> None:
        self.message = message
        self.model_name = model_name
        self.fold_index = fold_index
        super().__init__(self._format())

    def _format(self) -> str:
        where = []
        if self.model_name is not None:
            where.append(f"model '{self.model_name}'")
        if self.fold_index is not None:
            where.append(f"fold {self.fold_index}")
        if not where:
            return self.message
        return f"{' in '.join(where)} failed to {self.action}: {self.message}"

    def __reduce__(self):
        # Keep the context when crossing a joblib worker boundary
        return (self.__class__, (self.message, self.model_name, self.fold_index))


class TrainingError(_ModelFailure):
    """Raised when a base model or the meta-learner fails to fit.

    Attributes:
        model_name: Name of the model that failed (``"metalearner"`` for the
            meta-learner).
        fold_index: Index of the fold being trained, ``None`` when training
            on the full dataset.
    """

    action = "fit"


class PredictionError(_ModelFailure):
    """Raised when a fitted model fails to predict on given input.

    Attributes:
        model_name: Name of the model that failed.
        fold_index: Index of the fold being predicted, ``None`` at deploy time.
    """

    action = "predict"

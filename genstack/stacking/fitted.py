"""
FittedStack - result of fitting a Stack.

Owns the base models refitted on the full dataset, the fitted meta-learner
and the deploy pipeline replaying the feature chain on new data. A
FittedStack is immutable; refitting the Stack produces a new one.
"""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Union

import joblib
import pandas as pd

from genstack.core.logging import get_logger
from genstack.exceptions import PredictionError
from genstack.operators.models.kinds import PredictionKind, TargetKind
from genstack.operators.models.predictions import (
    CategoricalPrediction,
    distribution_mean,
    distribution_median,
)
from genstack.operators.splitters.folds import Fold
from genstack.pipeline.deploy import DeployPipeline

from .assembler import MetaDataset
from .stack import Stack

logger = get_logger(__name__)


@dataclass(frozen=True)
class FitReport:
    """Diagnostics collected while fitting a stack.

    Attributes:
        folds: Folds used for the out-of-fold predictions.
        feature_names: Columns of the meta-feature table.
        meta_dataset: Out-of-fold (Z, y_meta), if kept.
        timings: Seconds spent per phase ("out_of_fold", "metalearner",
            "retrain", "total").
        warnings: Validation and kind-check warnings.
    """

    folds: List[Fold]
    feature_names: List[str]
    meta_dataset: Optional[MetaDataset] = None
    timings: Dict[str, float] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)


class FittedStack:
    """A fitted stacked ensemble.

    Args:
        stack: The Stack that was fitted.
        base_models: Ordered mapping name -> base model fitted on all rows.
        metalearner: Meta-learner fitted on the out-of-fold meta-dataset.
        pipeline: Deploy pipeline built from the fitted models.
        report: Fit diagnostics.
    """

    def __init__(
        self,
        stack: Stack,
        base_models: Mapping[str, Any],
        metalearner: Any,
        pipeline: DeployPipeline,
        report: FitReport,
    ) -> None:
        self._stack = stack
        self._base_models = dict(base_models)
        self._metalearner = metalearner
        self._pipeline = pipeline
        self._report = report

    @property
    def stack(self) -> Stack:
        return self._stack

    @property
    def base_models(self) -> Mapping[str, Any]:
        return MappingProxyType(self._base_models)

    @property
    def metalearner(self) -> Any:
        return self._metalearner

    @property
    def pipeline(self) -> DeployPipeline:
        return self._pipeline

    @property
    def report(self) -> FitReport:
        return self._report

    @property
    def prediction_kind(self) -> PredictionKind:
        return self._stack.prediction_kind

    @property
    def feature_names(self) -> List[str]:
        return self._pipeline.feature_names

    def __repr__(self) -> str:
        return f"FittedStack({self._stack!r})"

    # -- operations -------------------------------------------------------

    def transform(self, X: Any) -> pd.DataFrame:
        """Meta-feature table of ``X`` (same columns as the training table)."""
        return self._pipeline.features(X)

    def predict(self, X: Any) -> Any:
        """Predict with the meta-learner's native contract.

        Returns:
            Point predictions for a deterministic meta-learner, a
            CategoricalPrediction for a probabilistic classifier, or a frozen
            distribution for a probabilistic regressor.
        """
        return self._pipeline.predict(X)

    def predict_mean(self, X: Any) -> Any:
        """Mean of the predicted distributions (probabilistic continuous stacks)."""
        self._require(PredictionKind.PROBABILISTIC, TargetKind.CONTINUOUS, "predict_mean")
        return distribution_mean(self.predict(X))

    def predict_median(self, X: Any) -> Any:
        """Median of the predicted distributions (probabilistic continuous stacks)."""
        self._require(PredictionKind.PROBABILISTIC, TargetKind.CONTINUOUS, "predict_median")
        return distribution_median(self.predict(X))

    def predict_mode(self, X: Any) -> Any:
        """Most probable class of every row (probabilistic finite stacks)."""
        self._require(PredictionKind.PROBABILISTIC, TargetKind.FINITE, "predict_mode")
        prediction = self.predict(X)
        if not isinstance(prediction, CategoricalPrediction):
            raise PredictionError(
                f"expected class probabilities, got {type(prediction).__name__}",
                model_name="metalearner",
            )
        return prediction.mode()

    def _require(self, prediction_kind: PredictionKind, target_kind: TargetKind, operation: str) -> None:
        if self._stack.prediction_kind is not prediction_kind or self._stack.target_kind is not target_kind:
            raise PredictionError(
                f"{operation} needs a {prediction_kind.value} metalearner with a "
                f"{target_kind.value} target, this stack is {self._stack.prediction_kind.value} "
                f"with a {self._stack.target_kind.value} target",
                model_name="metalearner",
            )

    # -- persistence ------------------------------------------------------

    def save(self, path: Union[str, Path], compress: int = 3) -> Path:
        """Serialize the fitted stack with joblib.

        Args:
            path: Destination file.
            compress: joblib compression level.

        Returns:
            The written path.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        joblib.dump(self, path, compress=compress)
        logger.debug(f"Saved fitted stack to {path}")
        return path

    @classmethod
    def load(cls, path: Union[str, Path]) -> "FittedStack":
        """Load a fitted stack written by :meth:`save`."""
        obj = joblib.load(path)
        if not isinstance(obj, cls):
            raise TypeError(f"{path} does not contain a FittedStack (got {type(obj).__name__})")
        return obj

"""Stack members: a base model bound to its name, kinds and class levels.

Members are built at the start of a fit, once the target's class levels are
known, and are shared by the out-of-fold trainer and the deploy pipeline so
that both produce feature blocks with the same layout.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import numpy as np

from genstack.exceptions import PredictionError, TrainingError
from genstack.operators.models.adapter import fit_model, predict_model
from genstack.operators.models.kinds import ModelTraits
from genstack.utils.tabular import n_rows, target_levels

from .transforms import expands_levels, feature_names, transform_prediction


@dataclass(frozen=True)
class StackMember:
    """A named base model with the kinds fixed at build time.

    Attributes:
        name: Base model name.
        model: Unfitted model (never fitted in place).
        traits: Kinds of the model.
        levels: Declared class levels of the target when the model's
            features are class probabilities, else None.
    """

    name: str
    model: Any
    traits: ModelTraits
    levels: Optional[Tuple[Any, ...]] = None

    @property
    def feature_names(self) -> List[str]:
        return feature_names(
            self.name, self.traits.prediction_kind, self.traits.target_kind, self.levels
        )

    @property
    def width(self) -> int:
        return len(self.feature_names)

    def fit(self, X: Any, y: Any, fold_index: Optional[int] = None) -> Any:
        """Fit an independent copy of the model.

        Raises:
            TrainingError: If the model fails to fit.
        """
        try:
            return fit_model(self.model, X, y)
        except Exception as exc:
            raise TrainingError(str(exc), model_name=self.name, fold_index=fold_index) from exc

    def features(self, fitted: Any, X: Any, fold_index: Optional[int] = None) -> np.ndarray:
        """Predict ``X`` and reduce the prediction to this member's feature block.

        Raises:
            PredictionError: If prediction fails or yields the wrong number of rows.
        """
        try:
            prediction = predict_model(fitted, X, self.traits)
            block = transform_prediction(
                prediction, self.traits.prediction_kind, self.traits.target_kind, self.levels
            )
        except Exception as exc:
            raise PredictionError(str(exc), model_name=self.name, fold_index=fold_index) from exc
        expected = n_rows(X)
        if block.shape[0] != expected:
            raise PredictionError(
                f"got {block.shape[0]} predictions for {expected} rows",
                model_name=self.name,
                fold_index=fold_index,
            )
        return block

    def empty_block(self) -> np.ndarray:
        """Feature block with no rows."""
        return np.empty((0, self.width))


def build_members(models: dict, traits: dict, y: Any) -> List[StackMember]:
    """Bind every base model to its kinds and, where needed, class levels.

    Args:
        models: Ordered mapping name -> model.
        traits: Mapping name -> ModelTraits.
        y: Full training target (source of the class levels).

    Returns:
        Members in declaration order.
    """
    levels = None
    members = []
    for name, model in models.items():
        model_traits = traits[name]
        member_levels = None
        if expands_levels(model_traits.prediction_kind, model_traits.target_kind):
            if levels is None:
                levels = tuple(target_levels(y).tolist())
            member_levels = levels
        members.append(StackMember(name=name, model=model, traits=model_traits, levels=member_levels))
    return members

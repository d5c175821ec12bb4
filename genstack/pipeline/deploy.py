"""Deploy pipeline: replay the stacking feature chain on new data.

The pipeline is a graph built once at the end of a fit::

    X --> <model 1> --\
    X --> <model 2> ----> features --> metalearner
    X --> <model k> --/

Each model stage predicts with a base model fitted on the full dataset and
applies the prediction transform fixed at fit time; ``features`` lays the
blocks out exactly like the training-time meta-features; ``metalearner``
applies the fitted meta-learner. Evaluating the pipeline never refits
anything and never mutates the graph.
"""

from functools import partial
from typing import Any, List, Sequence

import numpy as np
import pandas as pd

from genstack.exceptions import PredictionError
from genstack.operators.models.adapter import predict_model
from genstack.operators.models.kinds import ModelTraits

from .graph import Node, evaluate, node, source


def _member_features(member: Any, fitted: Any, X: Any) -> np.ndarray:
    return member.features(fitted, X)


def _assemble_features(feature_names: Sequence[str], *blocks: np.ndarray) -> pd.DataFrame:
    return pd.DataFrame(np.hstack(blocks), columns=list(feature_names))


def _predict_meta(fitted: Any, traits: ModelTraits, Z: pd.DataFrame) -> Any:
    try:
        return predict_model(fitted, Z, traits)
    except Exception as exc:
        raise PredictionError(str(exc), model_name="metalearner") from exc


class DeployPipeline:
    """Prediction graph of a fitted stack.

    Args:
        members: Stack members in declaration order.
        fitted_models: Base models fitted on the full dataset, aligned with
            ``members``.
        metalearner: Fitted meta-learner.
        metalearner_traits: Kinds of the meta-learner.
    """

    def __init__(
        self,
        members: Sequence[Any],
        fitted_models: Sequence[Any],
        metalearner: Any,
        metalearner_traits: ModelTraits,
    ) -> None:
        if len(members) != len(fitted_models):
            raise ValueError(f"Got {len(fitted_models)} fitted models for {len(members)} members")
        self._feature_names = [name for member in members for name in member.feature_names]

        X = source("X")
        blocks = [
            node(partial(_member_features, member, fitted), X, name=member.name)
            for member, fitted in zip(members, fitted_models)
        ]
        self._features = node(partial(_assemble_features, self._feature_names), *blocks, name="features")
        self._output = node(
            partial(_predict_meta, metalearner, metalearner_traits), self._features, name="metalearner"
        )

    @property
    def output(self) -> Node:
        return self._output

    @property
    def feature_names(self) -> List[str]:
        return list(self._feature_names)

    @property
    def stage_names(self) -> List[str]:
        """Names of the computation stages, inputs first."""
        return [n.name for n in self._output.stages() if n.inputs]

    def features(self, X: Any) -> pd.DataFrame:
        """Deploy-time meta-feature table for ``X``."""
        return evaluate(self._features, X)

    def predict(self, X: Any) -> Any:
        """Meta-learner prediction for ``X``."""
        return evaluate(self._output, X)


def build_deploy_pipeline(
    members: Sequence[Any],
    fitted_models: Sequence[Any],
    metalearner: Any,
    metalearner_traits: ModelTraits,
) -> DeployPipeline:
    """Build the prediction graph of a fitted stack.

    Args:
        members: Stack members in declaration order, with kinds and class
            levels fixed at fit time.
        fitted_models: Base models fitted on the full dataset, aligned with
            ``members``.
        metalearner: Fitted meta-learner.
        metalearner_traits: Kinds of the meta-learner.

    Returns:
        The DeployPipeline.
    """
    return DeployPipeline(members, fitted_models, metalearner, metalearner_traits)

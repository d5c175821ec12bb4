"""
Stack training.

Fitting a stack runs four phases:

1. Out-of-fold predictions: every base model is trained on each fold's train
   rows and predicts the fold's test rows (see :mod:`.oof`).
2. Meta-dataset assembly: fold blocks are stacked into (Z, y_meta).
3. Meta-learner training on (Z, y_meta).
4. Full-data retraining of every base model and construction of the deploy
   pipeline that replays phases 1-3's feature chain on new data.

Any failure aborts the fit; no partial FittedStack is ever returned.
"""

import time
from contextlib import nullcontext
from typing import Any, Dict, List, Optional, Sequence

from joblib import Parallel, delayed
from sklearn.utils import check_consistent_length

from genstack.config import StackingConfig
from genstack.core.logging import LogContext, format_duration, get_current_state, get_logger
from genstack.exceptions import TrainingError
from genstack.operators.models.adapter import fit_model
from genstack.operators.models.kinds import (
    TargetKind,
    infer_input_kind,
    infer_target_kind,
    is_subkind,
)
from genstack.operators.splitters.folds import make_folds
from genstack.pipeline.deploy import build_deploy_pipeline
from genstack.utils.tabular import n_rows

from .assembler import MetaDataset, assemble_meta_dataset
from .fitted import FitReport, FittedStack
from .members import StackMember, build_members
from .oof import collect_out_of_fold
from .stack import Stack

logger = get_logger(__name__)

# Concrete target kinds accepted for each stack target kind
_COMPATIBLE_TARGETS = {
    TargetKind.CONTINUOUS: {TargetKind.CONTINUOUS, TargetKind.COUNT},
    TargetKind.FINITE: {TargetKind.FINITE, TargetKind.COUNT},
}


def check_kinds(stack: Stack, X: Any, y: Any) -> List[str]:
    """Compare the kinds of concrete data with the kinds the stack expects.

    Returns:
        Warning messages (possibly empty).
    """
    warnings = []
    x_kind = infer_input_kind(X)
    if not is_subkind(x_kind, stack.input_kind):
        warnings.append(
            f"Input table looks like {x_kind.value} but the base models expect {stack.input_kind.value}"
        )
    y_kind = infer_target_kind(y)
    if y_kind not in _COMPATIBLE_TARGETS.get(stack.target_kind, {stack.target_kind}):
        warnings.append(
            f"Target looks {y_kind.value} but the metalearner predicts a {stack.target_kind.value} target"
        )
    return warnings


def train_metalearner(metalearner: Any, meta_dataset: MetaDataset) -> Any:
    """Fit a copy of the meta-learner on (Z, y_meta).

    Raises:
        TrainingError: If the meta-learner fails to fit.
    """
    try:
        return fit_model(metalearner, meta_dataset.features, meta_dataset.target)
    except Exception as exc:
        raise TrainingError(str(exc), model_name="metalearner") from exc


def retrain_base_models(
    X: Any,
    y: Any,
    members: Sequence[StackMember],
    n_jobs: Optional[int] = None,
    backend: str = "loky",
) -> Dict[str, Any]:
    """Fit every base model on the full dataset.

    Returns:
        Ordered mapping name -> fitted model, in declaration order.

    Raises:
        TrainingError: If a base model fails to fit.
    """
    if n_jobs is None or n_jobs == 1:
        fitted = [member.fit(X, y) for member in members]
    else:
        fitted = Parallel(n_jobs=n_jobs, backend=backend, verbose=0)(
            delayed(member.fit)(X, y) for member in members
        )
    return {member.name: model for member, model in zip(members, fitted)}


def fit(stack: Stack, X: Any, y: Any, config: Optional[StackingConfig] = None) -> FittedStack:
    """Fit a stack.

    Args:
        stack: Stack to fit.
        X: Input table (NumPy array or pandas DataFrame).
        y: Target with one entry per row of X.
        config: Runtime settings (parallelism, diagnostics).

    Returns:
        The FittedStack.

    Raises:
        ValueError: If X and y have different numbers of rows.
        TrainingError: If a base model or the meta-learner fails to fit.
        PredictionError: If a base model fails to predict a fold.
    """
    config = config or StackingConfig()
    check_consistent_length(X, y)
    n = n_rows(X)
    start = time.perf_counter()
    timings: Dict[str, float] = {}

    warnings = list(stack.warnings)
    if config.check_kinds:
        for message in check_kinds(stack, X, y):
            logger.warning(message)
            warnings.append(message)

    folds = make_folds(stack.cv_strategy, n, y)
    members = build_members(stack.models, {name: stack.traits(name) for name in stack.model_names}, y)
    feature_names = [name for member in members for name in member.feature_names]

    # Open a run unless the caller already did
    run = LogContext() if get_current_state() is None else nullcontext()
    with run, LogContext.stack(
        n_models=len(members),
        metalearner=type(stack.metalearner).__name__,
        model_names=list(stack.model_names),
        n_folds=len(folds),
    ):
        log_progress = logger.info if config.verbose >= 1 else logger.debug
        log_progress(
            f"Fitting stack of {len(members)} model(s) ({', '.join(stack.model_names)}) "
            f"on {n} rows with {len(folds)} folds"
        )

        phase_start = time.perf_counter()
        blocks = collect_out_of_fold(X, y, folds, members, n_jobs=config.n_jobs, backend=config.backend)
        meta_dataset = assemble_meta_dataset(blocks, feature_names, n_rows_expected=n)
        timings["out_of_fold"] = time.perf_counter() - phase_start
        logger.debug(f"Meta-dataset: {len(meta_dataset)} rows x {len(feature_names)} features")

        phase_start = time.perf_counter()
        metalearner = train_metalearner(stack.metalearner, meta_dataset)
        timings["metalearner"] = time.perf_counter() - phase_start

        phase_start = time.perf_counter()
        base_models = retrain_base_models(X, y, members, n_jobs=config.n_jobs, backend=config.backend)
        pipeline = build_deploy_pipeline(
            members,
            [base_models[member.name] for member in members],
            metalearner,
            stack.metalearner_traits,
        )
        timings["retrain"] = time.perf_counter() - phase_start

    timings["total"] = time.perf_counter() - start
    if config.verbose >= 1:
        logger.success(f"Stack fitted in {format_duration(timings['total'])}")

    report = FitReport(
        folds=folds,
        feature_names=feature_names,
        meta_dataset=meta_dataset if config.keep_meta_dataset else None,
        timings=timings,
        warnings=warnings,
    )
    return FittedStack(stack, base_models, metalearner, pipeline, report)


def predict(fitted: FittedStack, X: Any) -> Any:
    """Predict new rows with a fitted stack.

    Equivalent to ``fitted.predict(X)``.
    """
    return fitted.predict(X)

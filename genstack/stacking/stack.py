"""
Stack - configuration entity of a stacked ensemble.

A Stack holds an ordered set of named base models, a meta-learner and a fold
strategy. It is validated once at construction and immutable afterwards:
use :meth:`Stack.replace` to derive a modified stack.

Example:
    >>> from sklearn.linear_model import LinearRegression, Ridge
    >>> from sklearn.tree import DecisionTreeRegressor
    >>> stack = Stack(
    ...     metalearner=LinearRegression(),
    ...     cv_strategy=CV(n_folds=5),
    ...     tree=DecisionTreeRegressor(max_depth=3),
    ...     ridge=Ridge(),
    ... )
    >>> stack.model_names
    ('tree', 'ridge')
    >>> fitted = stack.fit(X, y)
"""

from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Tuple

from genstack.core.logging import get_logger
from genstack.exceptions import ConfigurationError
from genstack.operators.models.kinds import (
    InputKind,
    ModelTraits,
    PredictionKind,
    TargetKind,
    greatest_lower_bound,
    model_traits,
)
from genstack.operators.splitters.folds import CV, FoldStrategy, StratifiedCV

from .transforms import get_transform

if TYPE_CHECKING:
    from genstack.config import StackingConfig
    from .fitted import FittedStack

logger = get_logger(__name__)

_FIELD_NAMES = frozenset({"metalearner", "cv_strategy", "models"})


def _reserved_names() -> frozenset:
    return _FIELD_NAMES | {name for name in dir(Stack) if not name.startswith("_")}


def _traits_of(model: Any, label: str) -> ModelTraits:
    try:
        return model_traits(model)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid kind declared by {label}: {exc}") from exc


def _merge_models(models: Optional[Mapping[str, Any]], named_models: Dict[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(models or {})
    duplicated = sorted(set(merged) & set(named_models))
    if duplicated:
        raise ConfigurationError(
            f"Base model(s) given both in 'models' and as keywords: {', '.join(duplicated)}"
        )
    merged.update(named_models)
    if not merged:
        raise ConfigurationError("A stack needs at least one named base model")

    reserved = _reserved_names()
    for name in merged:
        if not isinstance(name, str) or not name.isidentifier():
            raise ConfigurationError(f"Base model names must be identifiers, got {name!r}")
        if name.startswith("_") or name in reserved:
            raise ConfigurationError(f"'{name}' is reserved and cannot name a base model")
        if "__" in name:
            raise ConfigurationError(
                f"Base model name '{name}' contains '__', which separates model names from class levels"
            )
        if merged[name] is None:
            raise ConfigurationError(f"Base model '{name}' is None")
    return merged


class Stack:
    """Stacked ensemble of named base models and a meta-learner.

    Args:
        metalearner: Model trained on the base models' out-of-fold
            predictions. Its kinds decide the stack's kinds.
        cv_strategy: Fold strategy for the out-of-fold predictions
            (default ``CV()``, 6 plain folds).
        models: Ordered mapping name -> base model.
        **named_models: Base models given as keywords, appended after
            ``models`` in the given order.

    Raises:
        ConfigurationError: If the meta-learner is missing or has an
            unsupported kind, the model set is empty, a name is reserved,
            duplicated or contains ``__``, the fold strategy is invalid, or a base model's
            predictions cannot be turned into features.
    """

    def __init__(
        self,
        metalearner: Any = None,
        cv_strategy: Optional[FoldStrategy] = None,
        models: Optional[Mapping[str, Any]] = None,
        **named_models: Any,
    ) -> None:
        if metalearner is None:
            raise ConfigurationError("A metalearner must be provided")

        merged = _merge_models(models, named_models)

        metalearner_traits = _traits_of(metalearner, "the metalearner")
        if metalearner_traits.prediction_kind not in (PredictionKind.DETERMINISTIC, PredictionKind.PROBABILISTIC):
            raise ConfigurationError(
                f"The metalearner must be deterministic or probabilistic, "
                f"{type(metalearner).__name__} is neither"
            )

        if cv_strategy is None:
            cv_strategy = CV()
        if not isinstance(cv_strategy, FoldStrategy):
            raise ConfigurationError(
                f"cv_strategy must be CV or StratifiedCV, got {type(cv_strategy).__name__}"
            )

        traits = {name: _traits_of(model, f"base model '{name}'") for name, model in merged.items()}

        self.__dict__.update(
            _metalearner=metalearner,
            _cv_strategy=cv_strategy,
            _models=merged,
            _traits=traits,
            _metalearner_traits=metalearner_traits,
            _input_kind=greatest_lower_bound(t.input_kind for t in traits.values()),
        )

        warnings = validate(self)
        for message in warnings:
            logger.warning(message)
        self.__dict__["_warnings"] = tuple(warnings)

    # -- immutability -----------------------------------------------------

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Stack is immutable; use Stack.replace() to derive a new stack")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Stack is immutable; use Stack.replace() to derive a new stack")

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: resolve base model names
        if name.startswith("_"):
            raise AttributeError(name)
        models = self.__dict__.get("_models", {})
        if name in models:
            return models[name]
        raise AttributeError(f"'Stack' object has no attribute or base model '{name}'")

    def __dir__(self) -> List[str]:
        return sorted(set(super().__dir__()) | set(self._models))

    def __repr__(self) -> str:
        models = ", ".join(f"{name}={type(model).__name__}" for name, model in self._models.items())
        return (
            f"Stack(metalearner={type(self._metalearner).__name__}, "
            f"cv_strategy={self._cv_strategy!r}, {models})"
        )

    def replace(self, **changes: Any) -> "Stack":
        """Build a new validated Stack with some fields changed.

        ``metalearner``, ``cv_strategy`` and ``models`` replace those fields;
        any other keyword replaces (or appends) the base model of that name.
        """
        metalearner = changes.pop("metalearner", self._metalearner)
        cv_strategy = changes.pop("cv_strategy", self._cv_strategy)
        models = dict(changes.pop("models", self._models))
        models.update(changes)
        return Stack(metalearner=metalearner, cv_strategy=cv_strategy, models=models)

    # -- configuration ----------------------------------------------------

    @property
    def metalearner(self) -> Any:
        return self._metalearner

    @property
    def cv_strategy(self) -> FoldStrategy:
        return self._cv_strategy

    @property
    def models(self) -> Mapping[str, Any]:
        """Read-only ordered mapping name -> base model."""
        return MappingProxyType(self._models)

    @property
    def model_names(self) -> Tuple[str, ...]:
        return tuple(self._models)

    def model(self, name: str) -> Any:
        """Base model called ``name``."""
        try:
            return self._models[name]
        except KeyError:
            raise KeyError(f"No base model named '{name}'. Available: {', '.join(self._models)}") from None

    def traits(self, name: str) -> ModelTraits:
        """Kinds of the base model called ``name``."""
        self.model(name)
        return self._traits[name]

    @property
    def warnings(self) -> Tuple[str, ...]:
        """Validation warnings raised at construction."""
        return self._warnings

    # -- kinds ------------------------------------------------------------

    @property
    def metalearner_traits(self) -> ModelTraits:
        return self._metalearner_traits

    @property
    def prediction_kind(self) -> PredictionKind:
        """Kind of the stack's predictions, inherited from the meta-learner."""
        return self._metalearner_traits.prediction_kind

    @property
    def target_kind(self) -> TargetKind:
        return self._metalearner_traits.target_kind

    @property
    def input_kind(self) -> InputKind:
        """Input kind accepted by every base model (UNKNOWN if none)."""
        return self._input_kind

    # -- training ---------------------------------------------------------

    def fit(self, X: Any, y: Any, config: Optional["StackingConfig"] = None) -> "FittedStack":
        """Fit the stack; see :func:`genstack.stacking.training.fit`."""
        from .training import fit

        return fit(self, X, y, config=config)


def validate(stack: Stack) -> List[str]:
    """Check a stack's models and return warnings.

    Args:
        stack: Stack to check.

    Returns:
        Warning messages (possibly empty).

    Raises:
        ConfigurationError: If the meta-learner's target kind is neither
            continuous nor finite, or a base model's (prediction kind, target
            kind) pair has no prediction transform.
    """
    warnings: List[str] = []
    metalearner_traits = stack.metalearner_traits
    target_kind = metalearner_traits.target_kind

    if target_kind not in (TargetKind.CONTINUOUS, TargetKind.FINITE):
        raise ConfigurationError(
            f"The metalearner must predict a continuous or finite target, "
            f"got {target_kind.value}"
        )

    for name in stack.model_names:
        traits = stack.traits(name)
        try:
            get_transform(traits.prediction_kind, traits.target_kind)
        except ConfigurationError as exc:
            raise ConfigurationError(f"Base model '{name}': {exc}") from exc
        if traits.target_kind is not target_kind:
            warnings.append(
                f"Base model '{name}' predicts a {traits.target_kind.value} target "
                f"but the metalearner predicts a {target_kind.value} target"
            )

    if len(stack.model_names) == 1:
        warnings.append("Stack has a single base model; the metalearner only recalibrates it")

    if isinstance(stack.cv_strategy, StratifiedCV) and target_kind is TargetKind.CONTINUOUS:
        warnings.append(
            "StratifiedCV rejects a continuous target at fit time unless its values are discrete class labels"
        )

    if stack.input_kind is InputKind.UNKNOWN and any(
        stack.traits(name).input_kind is not InputKind.UNKNOWN for name in stack.model_names
    ):
        warnings.append("Base models share no common input kind; inputs are left unconstrained")

    return warnings

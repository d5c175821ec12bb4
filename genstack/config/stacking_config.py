"""Runtime configuration for stack fitting.

Provides a single, typed entry point for the settings that change how a
stack is fitted (parallelism, logging, diagnostics) without changing what is
fitted. The model configuration itself lives in :class:`~genstack.Stack`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from genstack.exceptions import ConfigurationError

_JOBLIB_BACKENDS = ("loky", "threading", "multiprocessing", "sequential")


@dataclass
class StackingConfig:
    """Configuration for stack fitting.

    Attributes:
        n_jobs: Number of joblib workers for fold x model tasks and full-data
            retraining. ``None`` or 1 runs sequentially.
        backend: joblib backend used when ``n_jobs`` allows parallelism.
        verbose: 0 = quiet, 1 = fit summary, 2 = per-fold progress.
        check_kinds: Log a warning when the input table or the target does
            not match the kinds the stack expects.
        keep_meta_dataset: Keep the out-of-fold meta-dataset (Z, y_meta) in
            the fit report.
    """

    n_jobs: int | None = None
    backend: str = "loky"
    verbose: int = 1
    check_kinds: bool = True
    keep_meta_dataset: bool = True

    def __post_init__(self) -> None:
        if self.n_jobs is not None and (
            isinstance(self.n_jobs, bool) or not isinstance(self.n_jobs, int) or self.n_jobs == 0
        ):
            raise ConfigurationError(f"n_jobs must be None or a non-zero integer, got {self.n_jobs!r}")
        if self.backend not in _JOBLIB_BACKENDS:
            raise ConfigurationError(
                f"Unknown joblib backend '{self.backend}'. Expected one of {', '.join(_JOBLIB_BACKENDS)}"
            )
        if not isinstance(self.verbose, int) or self.verbose < 0:
            raise ConfigurationError(f"verbose must be a non-negative integer, got {self.verbose!r}")

    @property
    def parallel(self) -> bool:
        """Whether tasks are dispatched to a joblib pool."""
        return self.n_jobs is not None and self.n_jobs != 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> StackingConfig:
        """Build a config from a mapping, rejecting unknown keys."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown stacking settings: {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> StackingConfig:
        """Load a config from a YAML file.

        The settings may sit at the top level or under a ``stacking`` key.
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid stacking config in {path}: expected a mapping")
        if "stacking" in data:
            data = data["stacking"] or {}
        return cls.from_dict(data)

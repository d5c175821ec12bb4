"""Run context management for genstack logging.

This module provides context managers for tracking run state, stacking
operations and fold processing in the logging system.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class StackContext:
    """Context for a stacking fit.

    Attributes:
        n_models: Number of base models being stacked.
        metalearner: Meta-learner name/description.
        model_names: Base model names, in declaration order.
        n_folds: Number of folds of the resampling strategy.
    """

    n_models: int
    metalearner: str | None = None
    model_names: list[str] = field(default_factory=list)
    n_folds: int | None = None


@dataclass
class FoldContext:
    """Context for the fold currently being processed.

    Attributes:
        index: Fold index (0-based).
        total: Total number of folds.
    """

    index: int
    total: int | None = None


@dataclass
class RunState:
    """State for a single run.

    Attributes:
        run_id: Unique run identifier.
        run_name: Human-readable run name.
        start_time: Run start timestamp.
        stack_context: Current stacking context (if any).
        fold_context: Current fold context (if any).
        extra: Additional run-level metadata.
    """

    run_id: str
    run_name: str | None = None
    start_time: datetime = field(default_factory=datetime.now)
    stack_context: StackContext | None = None
    fold_context: FoldContext | None = None
    extra: dict[str, Any] = field(default_factory=dict)


class _ContextStorage(threading.local):
    """Thread-local storage for run context."""

    def __init__(self) -> None:
        super().__init__()
        self.run_state: RunState | None = None


# Global context storage
_context = _ContextStorage()


def get_current_state() -> RunState | None:
    """Get the current run state.

    Returns:
        Current RunState or None if not in a run context.
    """
    return _context.run_state


def get_run_id() -> str | None:
    """Get the current run ID.

    Returns:
        Current run ID or None if not in a run context.
    """
    state = get_current_state()
    return state.run_id if state else None


def _generate_run_id() -> str:
    """Generate a unique run ID.

    Returns:
        Run ID in format "S-YYYYMMDD-HHMMSS-XXXX".
    """
    now = datetime.now()
    timestamp = now.strftime("%Y%m%d-%H%M%S")
    suffix = uuid.uuid4().hex[:4]
    return f"S-{timestamp}-{suffix}"


class LogContext:
    """Context manager for run-level logging context.

    Example:
        >>> with LogContext(run_id="ridge-vs-knn"):
        ...     logger.info("Fitting stack")
        ...     with LogContext.fold(0, total=5):
        ...         logger.debug("Training fold")
    """

    def __init__(
        self,
        run_id: str | None = None,
        run_name: str | None = None,
        **extra: Any,
    ) -> None:
        """Initialize log context.

        Args:
            run_id: Unique run identifier (auto-generated if not provided).
            run_name: Human-readable run name.
            **extra: Additional run-level metadata.
        """
        self.run_id = run_id or _generate_run_id()
        self.run_name = run_name or self.run_id
        self.extra = extra
        self._previous_state: RunState | None = None

    def __enter__(self) -> LogContext:
        """Enter the context, setting up run state."""
        self._previous_state = _context.run_state
        _context.run_state = RunState(
            run_id=self.run_id,
            run_name=self.run_name,
            start_time=datetime.now(),
            extra=self.extra,
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit the context, restoring previous state."""
        _context.run_state = self._previous_state

    @staticmethod
    @contextmanager
    def stack(
        n_models: int,
        metalearner: str | None = None,
        model_names: list[str] | None = None,
        n_folds: int | None = None,
    ) -> Generator[StackContext, None, None]:
        """Context manager for tracking a stacking fit.

        Args:
            n_models: Number of base models being stacked.
            metalearner: Meta-learner name/description.
            model_names: Base model names.
            n_folds: Number of folds.

        Yields:
            StackContext for the stacking operation.
        """
        state = get_current_state()
        stack_ctx = StackContext(
            n_models=n_models,
            metalearner=metalearner,
            model_names=model_names or [],
            n_folds=n_folds,
        )

        if state is None:
            yield stack_ctx
            return

        previous_stack = state.stack_context
        state.stack_context = stack_ctx
        try:
            yield stack_ctx
        finally:
            state.stack_context = previous_stack

    @staticmethod
    @contextmanager
    def fold(index: int, total: int | None = None) -> Generator[FoldContext, None, None]:
        """Context manager for tracking the fold being processed.

        Args:
            index: Fold index (0-based).
            total: Total number of folds.

        Yields:
            FoldContext for the current fold.
        """
        state = get_current_state()
        fold_ctx = FoldContext(index=index, total=total)

        if state is None:
            yield fold_ctx
            return

        previous_fold = state.fold_context
        state.fold_context = fold_ctx
        try:
            yield fold_ctx
        finally:
            state.fold_context = previous_fold


def inject_context(record: logging.LogRecord) -> logging.LogRecord:
    """Inject current context into a log record.

    Args:
        record: Log record to inject context into.

    Returns:
        Modified log record with context fields.
    """
    state = get_current_state()

    if state is None:
        return record

    record.run_id = state.run_id
    record.run_name = state.run_name

    if state.stack_context:
        stack = state.stack_context
        record.stack_n_models = stack.n_models
        record.stack_metalearner = stack.metalearner
        record.stack_model_names = stack.model_names

    if state.fold_context:
        fold = state.fold_context
        record.fold_index = fold.index
        record.total_folds = fold.total

    return record


class ContextFilter(logging.Filter):
    """Logging filter attaching the current run context to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        inject_context(record)
        return True

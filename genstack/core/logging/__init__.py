"""Logging system for genstack.

Usage:
    >>> from genstack.core.logging import get_logger, configure_logging, LogContext
    >>>
    >>> # Configure at application startup
    >>> configure_logging(verbose=2)
    >>>
    >>> # Get logger in each module
    >>> logger = get_logger(__name__)
    >>>
    >>> with LogContext(run_id="price-stack"):
    ...     logger.info("Fitting stack")
"""

from .config import (
    SUCCESS,
    TRACE,
    GenstackLogger,
    LoggingConfig,
    configure_logging,
    get_config,
    get_logger,
    is_configured,
    reset_logging,
)
from .context import (
    ContextFilter,
    FoldContext,
    LogContext,
    RunState,
    StackContext,
    get_current_state,
    get_run_id,
)
from .formatters import (
    ConsoleFormatter,
    FileFormatter,
    JsonFormatter,
    format_duration,
)
from .handlers import (
    BufferedHandler,
    NullHandler,
)

__all__ = [
    # Main API
    "get_logger",
    "configure_logging",
    "LogContext",
    # Configuration
    "LoggingConfig",
    "get_config",
    "is_configured",
    "reset_logging",
    "TRACE",
    "SUCCESS",
    "GenstackLogger",
    # Context
    "get_current_state",
    "get_run_id",
    "RunState",
    "StackContext",
    "FoldContext",
    "ContextFilter",
    # Formatters
    "ConsoleFormatter",
    "FileFormatter",
    "JsonFormatter",
    "format_duration",
    # Handlers
    "BufferedHandler",
    "NullHandler",
]

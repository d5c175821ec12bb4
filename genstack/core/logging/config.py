"""Logging configuration for genstack.

All genstack loggers live under the ``genstack`` namespace. Nothing is
printed until :func:`configure_logging` is called; records still propagate
to the root logger so applications can route them however they like.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .context import ContextFilter, get_run_id
from .formatters import ConsoleFormatter, FileFormatter, JsonFormatter

ROOT_LOGGER_NAME = "genstack"

TRACE = 5
SUCCESS = 25

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(SUCCESS, "SUCCESS")

# verbose -> level
_VERBOSITY_LEVELS = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
    3: TRACE,
}


class GenstackLogger(logging.Logger):
    """Logger with ``trace`` and ``success`` levels."""

    def trace(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)

    def success(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(SUCCESS):
            self._log(SUCCESS, msg, args, **kwargs)


@dataclass
class LoggingConfig:
    """Active logging configuration.

    Attributes:
        verbose: Verbosity level (0-3).
        log_file: Optional path of the log file.
        json_output: Whether the log file is written as JSON Lines.
    """

    verbose: int = 1
    log_file: Path | None = None
    json_output: bool = False


_config: LoggingConfig | None = None
_handlers: list[logging.Handler] = []


def get_logger(name: str) -> GenstackLogger:
    """Get a genstack logger.

    Args:
        name: Logger name, usually ``__name__``.

    Returns:
        Logger supporting ``trace()`` and ``success()``.
    """
    previous = logging.getLoggerClass()
    logging.setLoggerClass(GenstackLogger)
    try:
        logger = logging.getLogger(name)
    finally:
        logging.setLoggerClass(previous)
    if not isinstance(logger, GenstackLogger):
        # Created earlier by someone else as a plain Logger
        logger.__class__ = GenstackLogger
    return logger  # type: ignore[return-value]


def configure_logging(
    verbose: int = 1,
    log_file: str | Path | None = None,
    json_output: bool = False,
    stream: Any = None,
) -> LoggingConfig:
    """Configure genstack logging.

    Calling it again replaces the previous configuration.

    Args:
        verbose: 0 = warnings only, 1 = info, 2 = debug, 3 = trace.
        log_file: Optional file receiving all records at the configured level.
        json_output: Write the log file as JSON Lines instead of text.
        stream: Console stream (defaults to ``sys.stderr``).

    Returns:
        The active configuration.
    """
    global _config

    reset_logging()

    level = _VERBOSITY_LEVELS.get(max(0, min(int(verbose), 3)), logging.INFO)
    root = get_logger(ROOT_LOGGER_NAME)
    root.setLevel(level)

    console = logging.StreamHandler(stream or sys.stderr)
    console.setFormatter(ConsoleFormatter())
    console.addFilter(ContextFilter())
    _attach(root, console)

    path = None
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        if json_output:
            file_handler.setFormatter(JsonFormatter(run_id=get_run_id()))
        else:
            file_handler.setFormatter(FileFormatter())
        file_handler.addFilter(ContextFilter())
        _attach(root, file_handler)

    _config = LoggingConfig(verbose=verbose, log_file=path, json_output=json_output)
    return _config


def _attach(logger: logging.Logger, handler: logging.Handler) -> None:
    logger.addHandler(handler)
    _handlers.append(handler)


def get_config() -> LoggingConfig | None:
    """Get the active logging configuration, if any."""
    return _config


def is_configured() -> bool:
    """Whether :func:`configure_logging` has been called."""
    return _config is not None


def reset_logging() -> None:
    """Remove the handlers installed by :func:`configure_logging`."""
    global _config

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers.clear()
    root.setLevel(logging.NOTSET)
    _config = None

"""Log formatters for genstack.

Console output is kept short and readable; file output adds timestamps and
the logger name; JSON output is one object per line for automation.
"""

import json
import logging
from datetime import datetime
from typing import Any, Optional

# Level -> prefix shown on the console
_LEVEL_SYMBOLS = {
    logging.DEBUG: "  ",
    logging.INFO: "> ",
    logging.WARNING: "[!] ",
    logging.ERROR: "[X] ",
    logging.CRITICAL: "[X] ",
}


def format_duration(seconds: float) -> str:
    """Format a duration for humans.

    Args:
        seconds: Duration in seconds.

    Returns:
        "0.5s", "2m 05s" or "1h 02m" depending on magnitude.
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


def _context_prefix(record: logging.LogRecord) -> str:
    """Build the ``[fold i/k]`` prefix from injected context fields."""
    fold_index = getattr(record, "fold_index", None)
    if fold_index is None:
        return ""
    total = getattr(record, "total_folds", None)
    if total is None:
        return f"[fold {fold_index + 1}] "
    return f"[fold {fold_index + 1}/{total}] "


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter."""

    def format(self, record: logging.LogRecord) -> str:
        symbol = _LEVEL_SYMBOLS.get(record.levelno)
        if symbol is None:
            # Custom levels (TRACE, SUCCESS)
            symbol = "[OK] " if record.levelno > logging.INFO else "  "
        message = f"{symbol}{_context_prefix(record)}{record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class FileFormatter(logging.Formatter):
    """Formatter for log files: timestamp, level, logger name, run id."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        run_id = getattr(record, "run_id", None)
        run = f" [{run_id}]" if run_id else ""
        message = (
            f"{timestamp} {record.levelname:<8}{run} {record.name}: "
            f"{_context_prefix(record)}{record.getMessage()}"
        )
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


class JsonFormatter(logging.Formatter):
    """JSON Lines formatter."""

    _CONTEXT_FIELDS = (
        "run_id",
        "fold_index",
        "total_folds",
        "stack_n_models",
        "stack_metalearner",
        "stack_model_names",
    )

    def __init__(self, run_id: Optional[str] = None) -> None:
        super().__init__()
        self.run_id = run_id

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in self._CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value
        if self.run_id and "run_id" not in payload:
            payload["run_id"] = self.run_id
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)

"""Custom log handlers for genstack logging."""

import logging
from threading import Lock


class NullHandler(logging.Handler):
    """Handler that discards all log records.

    Used when logging should be completely silent (``verbose=0`` with no
    log file).
    """

    def emit(self, record: logging.LogRecord) -> None:
        pass


class BufferedHandler(logging.Handler):
    """Handler that buffers log records for batch processing.

    Useful for collecting the messages emitted during a fit, e.g. to attach
    validation warnings to a report or to inspect them in tests.
    """

    def __init__(self, max_size: int = 1000) -> None:
        """Initialize buffered handler.

        Args:
            max_size: Maximum number of records to buffer.
        """
        super().__init__()
        self.max_size = max_size
        self._buffer: list[logging.LogRecord] = []
        self._lock = Lock()

    def emit(self, record: logging.LogRecord) -> None:
        """Buffer the log record.

        Args:
            record: Log record to buffer.
        """
        with self._lock:
            if len(self._buffer) < self.max_size:
                self._buffer.append(record)

    def get_records(self) -> list[logging.LogRecord]:
        """Get buffered records.

        Returns:
            List of buffered log records.
        """
        with self._lock:
            return list(self._buffer)

    def get_messages(self, min_level: int = logging.NOTSET) -> list[str]:
        """Get the formatted messages of buffered records.

        Args:
            min_level: Only return records at or above this level.

        Returns:
            List of messages.
        """
        with self._lock:
            return [r.getMessage() for r in self._buffer if r.levelno >= min_level]

    def clear(self) -> None:
        """Clear the buffer."""
        with self._lock:
            self._buffer.clear()

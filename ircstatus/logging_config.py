r"""
Logging configuration module for the ircstatus relay.

Provides a clean, configurable logging setup using colorlog library with
structured error logging and aggregation capabilities.
"""

import atexit
import logging
import os
import sys
import threading
import time
from collections import Counter, deque
from typing import Any

import colorlog

WIRE_LOGGER_NAME = "ircstatus.wire"


class SecretFilter(logging.Filter):
    """Filter that masks configured secrets in log messages."""

    def __init__(self, secrets: list[str] | None = None):
        super().__init__()
        self.secrets = [s for s in (secrets or []) if s]

    def filter(self, record):
        """Rewrite the record message with every secret replaced by asterisks."""
        if not self.secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self.secrets:
            masked = masked.replace(secret, "*" * 8)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


class ErrorAggregator:
    """Counts errors per category so a summary can be reported on exit.

    A relay that keeps reconnecting shows up here as a high ``transport``
    count. Only the most recent entries per category are kept.
    """

    def __init__(self, history: int = 100):
        self.history = history
        self.counts: Counter[str] = Counter()
        self.recent: dict[str, deque[tuple[float, str]]] = {}
        self.lock = threading.Lock()
        self.started = time.time()

    def record_error(self, error_type: str, message: str, context: dict[str, Any] = None) -> None:
        with self.lock:
            self.counts[error_type] += 1
            entries = self.recent.setdefault(error_type, deque(maxlen=self.history))
            entries.append((time.time(), message))

    def get_error_summary(self) -> dict[str, Any]:
        """Per category: total count, errors per hour of uptime and the last message."""
        with self.lock:
            hours = max((time.time() - self.started) / 3600, 1)
            return {
                error_type: {
                    "total_count": count,
                    "rate_per_hour": count / hours,
                    "last_message": self.recent[error_type][-1][1],
                }
                for error_type, count in self.counts.items()
            }

    def clear(self) -> None:
        with self.lock:
            self.counts.clear()
            self.recent.clear()
            self.started = time.time()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("No errors recorded in current session")
            return

        logging.warning("🚨 Error summary")
        for error_type, stats in sorted(summary.items()):
            logging.warning(
                f"  {error_type}: {stats['total_count']} total "
                f"({stats['rate_per_hour']:.1f}/hour), last: {stats['last_message']}"
            )


# Global error aggregator instance
error_aggregator = ErrorAggregator()
_summary_registered = False


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception = None,
    context: dict[str, Any] = None,
    level: int = logging.ERROR
) -> None:
    """Log an error with structured context and aggregation.

    Args:
        error_type: Category of the error (e.g., 'transport', 'input', 'config')
        message: Descriptive error message
        exception: The exception that occurred (optional)
        context: Additional context data for debugging
        level: Logging level (default: ERROR)
    """
    structured_message = f"[{error_type.upper()}] {message}"

    if exception:
        structured_message += f" | Exception: {type(exception).__name__}: {str(exception)}"

    if context:
        context_str = " | ".join(f"{k}={v}" for k, v in context.items())
        structured_message += f" | Context: {context_str}"

    logging.log(level, structured_message)
    error_aggregator.record_error(error_type, message, context)


def debug_from_env() -> bool:
    return os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")


class LoggerConfigurator:
    """Handles logging configuration cleanly using colorlog.

    Verbosity comes from the relay flags; the ``DEBUG`` environment variable
    forces DEBUG level like ``--debug`` does.
    """

    def __init__(
        self,
        verbose: bool = False,
        debug: bool = False,
        trace_wire: bool = False,
        secrets: list[str] | None = None,
    ):
        """Initialize the configurator.

        Args:
            verbose: Show INFO level progress messages.
            debug: Show DEBUG level messages (implies verbose).
            trace_wire: Let the wire logger emit traced protocol lines.
            secrets: Strings masked out of every log message.
        """
        self.verbose = verbose
        self.debug = debug or debug_from_env()
        self.trace_wire = trace_wire
        self.secrets = secrets or []

    @property
    def level(self) -> int:
        if self.debug:
            return logging.DEBUG
        if self.verbose:
            return logging.INFO
        return logging.WARNING

    def configure(self):
        """Configure the root logger with colored output on stderr."""
        log_level = self.level

        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={
                "message": {
                    "ERROR": "red",
                    "CRITICAL": "magenta",
                }
            },
            reset=True,
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        handler.addFilter(SecretFilter(self.secrets))

        root_logger = logging.getLogger()
        for h in list(root_logger.handlers):
            root_logger.removeHandler(h)
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

        # Traced lines go out at INFO when requested, DEBUG otherwise
        wire_logger = logging.getLogger(WIRE_LOGGER_NAME)
        if self.debug:
            wire_logger.setLevel(logging.DEBUG)
        elif self.trace_wire:
            wire_logger.setLevel(logging.INFO)
        else:
            wire_logger.setLevel(logging.NOTSET)

        global _summary_registered  # noqa: PLW0603
        if not _summary_registered:
            atexit.register(self._log_final_error_summary)
            _summary_registered = True

    def _log_final_error_summary(self):
        """Log final error summary on application exit."""
        try:
            error_aggregator.log_summary_report()
        except Exception as e:
            logging.error(f"Failed to log final error summary: {e}")

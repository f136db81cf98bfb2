from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    ConfigurationError,
    InputSourceError,
    PipeSetupError,
    RelayError,
    TransportError,
)


def classify_error(error: BaseException) -> str:
    """Map an exception onto the category used for aggregation."""
    if isinstance(error, TransportError | ConnectionError):
        return "transport"
    if isinstance(error, InputSourceError | PipeSetupError):
        return "input"
    if isinstance(error, ConfigurationError):
        return "config"
    if isinstance(error, OSError):
        return "os"
    if isinstance(error, RelayError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging. The error's
            own ``data`` mapping is merged in when present.
        level: Logging level for the record.
    """
    merged = dict(getattr(error, "data", None) or {})
    if context:
        merged.update(context)
    log_structured_error(
        error_type=classify_error(error),
        message=f"{message}: {str(error)}",
        exception=error if not isinstance(error, RelayError) else None,
        context=merged or None,
        level=level,
    )

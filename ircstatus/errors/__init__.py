"""Relay error hierarchy and reporting helpers."""

from .handling import classify_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    ConfigurationError,
    EndOfInput,
    FatalError,
    InputSourceError,
    PipeSetupError,
    RelayError,
    RetryableError,
    TransportError,
)

__all__ = [
    "ConfigurationError",
    "EndOfInput",
    "FatalError",
    "InputSourceError",
    "PipeSetupError",
    "RelayError",
    "RetryableError",
    "TransportError",
    "classify_error",
    "log_error",
]

"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the supervisor's
retry-or-exit decision. Workers raise them; only the supervisor decides.

Classes:
  RelayError          – Base for all internal errors.
  RetryableError      – Generation must end; wait and reconnect.
  TransportError      – Connect, read or write failure on the server link.
  InputSourceError    – Line source failed; reopen it next generation.
  EndOfInput          – Standard input reached EOF (orderly shutdown).
  FatalError          – Process must exit with ``exit_code``.
  ConfigurationError  – Invalid configuration detected at startup.
  PipeSetupError      – Named pipe could not be created, flushed or opened.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..constants import ExitCode


class RelayError(Exception):
    """Base class for all internal relay errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class RetryableError(RelayError):
    """The current generation is over but the relay should reconnect."""


class TransportError(RetryableError):
    """Exception raised for server connection failures.

    Connect refused, read or write errors and orderly closes all end up here;
    none of them is ever fatal.
    """


class InputSourceError(RetryableError):
    """Exception raised when the line source fails after startup.

    A pipe can legitimately be reopened by a future writer, so this is
    retryable rather than fatal.
    """


class EndOfInput(RelayError):
    """Standard input is exhausted; the relay shuts down successfully."""

    def __init__(self, message: str = "End of input") -> None:
        super().__init__(message)


class FatalError(RelayError):
    """Exception raised for conditions that end the process.

    Args:
        message: Descriptive error message.
        exit_code: Process exit status to report.
        data: Optional mapping of additional context data.
    """

    default_exit_code = ExitCode.UNEXPECTED

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        data: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, data=data)
        self.exit_code = int(exit_code if exit_code is not None else self.default_exit_code)


class ConfigurationError(FatalError):
    """Invalid configuration, detected before any connection attempt."""

    default_exit_code = ExitCode.INVALID_CONFIG


class PipeSetupError(FatalError):
    """Named pipe could not be created, flushed or opened at startup."""

    default_exit_code = ExitCode.PIPE_OPEN


__all__ = [
    "RelayError",
    "RetryableError",
    "TransportError",
    "InputSourceError",
    "EndOfInput",
    "FatalError",
    "ConfigurationError",
    "PipeSetupError",
]

"""Tests for the error hierarchy and structured error logging."""

import logging

import pytest

from ircstatus.constants import ExitCode
from ircstatus.errors import (
    ConfigurationError,
    EndOfInput,
    FatalError,
    InputSourceError,
    PipeSetupError,
    RelayError,
    RetryableError,
    TransportError,
    classify_error,
    log_error,
)
from ircstatus.logging_config import error_aggregator


class TestHierarchy:
    def test_retryable_errors(self):
        assert issubclass(TransportError, RetryableError)
        assert issubclass(InputSourceError, RetryableError)
        assert not issubclass(EndOfInput, RetryableError)
        assert not issubclass(FatalError, RetryableError)

    def test_data_is_copied(self):
        data = {"source": "/tmp/x"}
        error = TransportError("boom", data=data)
        data["source"] = "changed"
        assert error.data == {"source": "/tmp/x"}

    def test_default_exit_codes(self):
        assert FatalError("x").exit_code == ExitCode.UNEXPECTED
        assert ConfigurationError("x").exit_code == ExitCode.INVALID_CONFIG
        assert PipeSetupError("x").exit_code == ExitCode.PIPE_OPEN

    def test_explicit_exit_code(self):
        error = PipeSetupError("x", exit_code=ExitCode.PIPE_CREATE)
        assert error.exit_code == 3

    def test_end_of_input_default_message(self):
        assert str(EndOfInput()) == "End of input"


@pytest.mark.parametrize(
    "error,category",
    [
        (TransportError("x"), "transport"),
        (ConnectionResetError(), "transport"),
        (InputSourceError("x"), "input"),
        (PipeSetupError("x"), "input"),
        (ConfigurationError("x"), "config"),
        (PermissionError(), "os"),
        (EndOfInput(), "internal"),
        (ValueError(), "unknown"),
    ],
)
def test_classify_error(error, category):
    assert classify_error(error) == category


def test_log_error_merges_context(caplog):
    error = TransportError("reset by peer", data={"host": "irc.example.org"})
    with caplog.at_level(logging.WARNING):
        log_error("Connection lost", error, context={"generation": 2}, level=logging.WARNING)
    assert "[TRANSPORT] Connection lost: reset by peer" in caplog.text
    assert "host=irc.example.org" in caplog.text
    assert "generation=2" in caplog.text
    assert "Exception:" not in caplog.text
    assert error_aggregator.get_error_summary()["transport"]["total_count"] == 1


def test_log_error_includes_foreign_exception(caplog):
    with caplog.at_level(logging.ERROR):
        log_error("Top-level error", ValueError("bad"))
    assert "Exception: ValueError: bad" in caplog.text

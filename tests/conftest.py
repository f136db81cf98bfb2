from __future__ import annotations

import logging

import pytest

from ircstatus.config.model import RelayConfig
from ircstatus.logging_config import WIRE_LOGGER_NAME, SecretFilter, error_aggregator
from tests.fixtures.relay_fixtures import FakeTransport, make_config


@pytest.fixture
def config() -> RelayConfig:
    return make_config()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    yield
    error_aggregator.clear()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if any(isinstance(f, SecretFilter) for f in handler.filters):
            root.removeHandler(handler)
    root.setLevel(level)
    logging.getLogger(WIRE_LOGGER_NAME).setLevel(logging.NOTSET)

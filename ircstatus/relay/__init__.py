"""Relay workers and the supervising reconnect loop."""

from .receiver import Receiver  # noqa: F401
from .sender import Sender  # noqa: F401
from .signal_handler import SignalHandler  # noqa: F401
from .supervisor import Supervisor  # noqa: F401
from .watcher import TransportWatcher  # noqa: F401

__all__ = ["Receiver", "Sender", "SignalHandler", "Supervisor", "TransportWatcher"]

"""IRC protocol subsystem.

Contains parsing, inbound classification and outbound formatting, payload
chunking, the transport, the handshake state machine and session state.
"""

from .chunking import max_payload_bytes, split_payload  # noqa: F401
from .codec import EventKind, InboundEvent, classify  # noqa: F401
from .handshake import HandshakeEngine, HandshakeState, NickState  # noqa: F401
from .parser import IRCMessage, parse_irc_message  # noqa: F401
from .session import Session  # noqa: F401
from .transport import StreamTransport, Transport, open_transport  # noqa: F401

__all__ = [
    "EventKind",
    "HandshakeEngine",
    "HandshakeState",
    "IRCMessage",
    "InboundEvent",
    "NickState",
    "Session",
    "StreamTransport",
    "Transport",
    "classify",
    "max_payload_bytes",
    "open_transport",
    "parse_irc_message",
    "split_payload",
]

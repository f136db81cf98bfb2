"""Per-generation relay session state."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from ..config.model import RelayConfig
from .handshake import HandshakeEngine, NickState
from .transport import Transport


@dataclass
class Session:
    """State of one connection attempt.

    Attributes:
        config: Immutable relay configuration.
        transport: Connection to the server.
        nick: Nick state shared with the handshake engine.
        handshake: Registration state machine bound to ``transport``.
        ready: Set once the channel join is confirmed; never cleared.
        pending: Line whose delivery outcome is unknown, carried over from the
            previous generation.
        generation: Sequence number of this connection attempt.
    """

    config: RelayConfig
    transport: Transport
    nick: NickState
    handshake: HandshakeEngine = field(init=False)
    ready: asyncio.Event = field(default_factory=asyncio.Event)
    pending: str | None = None
    generation: int = 0

    def __post_init__(self) -> None:
        self.handshake = HandshakeEngine(self.config, self.transport, self.nick)

    @property
    def channel(self) -> str:
        return self.config.channel

    @property
    def current_nick(self) -> str:
        return self.nick.current

    def mark_ready(self) -> None:
        if not self.ready.is_set():
            self.handshake.mark_joined()
            self.ready.set()

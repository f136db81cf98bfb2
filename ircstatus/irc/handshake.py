"""Nick registration, services identification and channel join."""

from __future__ import annotations

import logging
import secrets
from enum import Enum, auto
from typing import TYPE_CHECKING

from ..constants import NICK_SUFFIX_BITS
from .codec import format_identify, format_join, format_nick, format_user

if TYPE_CHECKING:  # pragma: no cover
    from ..config.model import RelayConfig
    from .transport import Transport


class HandshakeState(Enum):
    UNREGISTERED = auto()
    NICK_SENT = auto()
    USER_SENT = auto()
    AUTH_SENT = auto()
    JOIN_SENT = auto()
    READY = auto()


def random_suffix() -> int:
    return secrets.randbits(NICK_SUFFIX_BITS)


class NickState:
    """Base nick plus the nick currently requested from the server.

    The current nick is only ever the base nick or ``<base>-<number>``.
    """

    def __init__(self, base: str) -> None:
        self.base = base
        self.current = base

    def regenerate(self, with_suffix: bool) -> str:
        if with_suffix:
            previous = self.current
            candidate = f"{self.base}-{random_suffix()}"
            while candidate == previous:
                candidate = f"{self.base}-{random_suffix()}"
            self.current = candidate
        else:
            self.current = self.base
        return self.current


class HandshakeEngine:
    """Drives NICK, USER, optional identify and JOIN over a transport.

    The engine never waits for the server. It is only ever invoked from the
    supervisor before workers start and from the receiver afterwards, so
    nick changes never race.
    """

    def __init__(self, config: RelayConfig, transport: Transport, nick: NickState) -> None:
        self.config = config
        self.transport = transport
        self.nick = nick
        self.state = HandshakeState.UNREGISTERED
        self.attempts = 0

    def _set_state(self, new_state: HandshakeState) -> None:
        if self.state != new_state:
            logging.debug(f"Handshake state {self.state.name} -> {new_state.name}")
            self.state = new_state

    async def register(self, *, force_suffix: bool = False) -> None:
        """Send the full registration sequence.

        Raises:
            TransportError: If any write fails.
        """
        self._set_state(HandshakeState.UNREGISTERED)
        self.attempts += 1
        nick = self.nick.regenerate(self.config.always_suffix or force_suffix)

        logging.info(f"🏷️ Setting nick: {nick}")
        await self.transport.write_line(format_nick(nick))
        self._set_state(HandshakeState.NICK_SENT)

        await self.transport.write_line(
            format_user(self.config.username, self.config.realname)
        )
        self._set_state(HandshakeState.USER_SENT)

        if self.config.has_services_auth:
            # Fire-and-forget: the services reply is never awaited
            logging.info(f"🔐 Authenticating to services as {self.config.idnick}")
            await self.transport.write_line(
                format_identify(self.config.idnick, self.config.idpass)
            )
            self._set_state(HandshakeState.AUTH_SENT)

        await self.transport.write_line(
            format_join(self.config.channel, self.config.channel_key)
        )
        self._set_state(HandshakeState.JOIN_SENT)
        logging.info(f"Sent nick, user and request to join {self.config.channel}")

    async def handle_collision(self) -> None:
        """Restart registration with a fresh random suffix.

        Unbounded: every collision triggers another attempt.
        """
        logging.info(
            f"Nick {self.nick.current} in use, trying a new one (attempt {self.attempts + 1})"
        )
        await self.register(force_suffix=True)

    def mark_joined(self) -> None:
        self._set_state(HandshakeState.READY)

    @property
    def is_ready(self) -> bool:
        return self.state is HandshakeState.READY

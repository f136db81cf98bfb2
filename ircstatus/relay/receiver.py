"""Receiving half of the message pump."""

from __future__ import annotations

import logging

from ..errors.internal import TransportError
from ..irc.codec import EventKind, classify, format_pong
from ..irc.session import Session


class Receiver:
    """Reads server lines and reacts to the few that matter.

    PING is answered, a nick collision restarts registration and the
    channel member list marks the session ready. Everything else is ignored.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.lines_received = 0

    async def run(self) -> None:
        """Read until the connection ends.

        Raises:
            TransportError: Always, once the server closes or reading fails.
        """
        logging.debug("Starting receiver")
        transport = self.session.transport
        while True:
            line = await transport.read_line()
            if line is None:
                raise TransportError(
                    "Server closed the connection",
                    data={"lines_received": self.lines_received},
                )
            self.lines_received += 1
            await self.handle_line(line)

    async def handle_line(self, line: str) -> EventKind:
        event = classify(line, self.session.channel)
        if event.kind is EventKind.PING:
            await self.session.transport.write_line(format_pong(event.token or ""))
        elif event.kind is EventKind.NICK_COLLISION:
            await self.session.handshake.handle_collision()
        elif event.kind is EventKind.CHANNEL_JOINED:
            if not self.session.handshake.is_ready:
                logging.info(
                    f"✅ Joined {self.session.channel} as {self.session.current_nick}"
                )
            self.session.mark_ready()
        return event.kind

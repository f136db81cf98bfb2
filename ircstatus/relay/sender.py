"""Sending half of the message pump."""

from __future__ import annotations

import asyncio
import logging

from ..irc.chunking import max_payload_bytes, split_payload
from ..irc.codec import format_privmsg
from ..irc.session import Session
from ..linesource.source import LineSource

_CONTROL_TRANSLATION = str.maketrans({"\r": " ", "\n": " ", "\x00": None})


class Sender:
    """Relays source lines to the channel once the session is ready.

    ``pending`` holds the line currently being delivered. It is only cleared
    after every chunk of the line was written, so a line interrupted by a
    write failure is retried whole by the next generation.
    """

    def __init__(self, session: Session, source: LineSource) -> None:
        self.session = session
        self.source = source
        self.pending: str | None = session.pending
        self.limit = max_payload_bytes(session.channel)
        self.lines_sent = 0

    async def run(self) -> None:
        """Relay lines until something ends the generation.

        Raises:
            TransportError: A write failed; ``pending`` keeps the line.
            EndOfInput: Standard input is exhausted.
            InputSourceError: The source failed and must be reopened.
        """
        logging.debug("Started sender, waiting for channel join")
        await self.session.ready.wait()
        logging.debug("Sender active")
        while True:
            if self.pending is None:
                line = (await self.source.next_line()).translate(_CONTROL_TRANSLATION)
                if not line.strip():
                    logging.debug("Skipping empty line")
                    continue
                self.pending = line
                logging.debug(f"Will send line: {line}")
            else:
                logging.debug(f"Will send buffered line: {self.pending}")
            await self.send_line(self.pending)
            self.pending = None
            self.lines_sent += 1

    async def send_line(self, line: str) -> int:
        """Send ``line`` as one PRIVMSG per chunk, pausing after each chunk."""
        chunks = split_payload(line, self.limit)
        for chunk in chunks:
            await self.session.transport.write_line(
                format_privmsg(self.session.channel, chunk)
            )
            await asyncio.sleep(self.session.config.send_delay)
        return len(chunks)

"""Transport watcher: turns a closed or idle connection into a termination signal."""

from __future__ import annotations

import asyncio
import time

from ..errors.internal import TransportError
from ..irc.transport import Transport


class TransportWatcher:
    def __init__(self, transport: Transport, idle_timeout: float = 0.0) -> None:
        self.transport = transport
        self.idle_timeout = idle_timeout

    async def run(self) -> None:
        """Wait for the connection to end.

        Raises:
            TransportError: When the transport closes, or when no server
                traffic arrived for ``idle_timeout`` seconds.
        """
        if self.idle_timeout <= 0:
            await self.transport.wait_closed()
            raise TransportError("Connection closed")
        while True:
            idle_for = time.monotonic() - self.transport.last_activity
            remaining = self.idle_timeout - idle_for
            if remaining <= 0:
                raise TransportError(
                    f"No server traffic for {idle_for:.0f}s, forcing reconnect",
                    data={"idle_timeout": self.idle_timeout},
                )
            try:
                await asyncio.wait_for(self.transport.wait_closed(), timeout=remaining)
            except TimeoutError:
                continue
            raise TransportError("Connection closed")

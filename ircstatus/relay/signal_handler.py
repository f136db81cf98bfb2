"""SignalHandler - turns SIGINT/SIGTERM into the relay's shutdown signal."""

import asyncio
import logging
import signal
from collections.abc import Callable


class SignalHandler:
    """Handler for system signals and shutdown coordination."""

    def __init__(self, on_shutdown: Callable[[], None] | None = None) -> None:
        self.shutdown_initiated = False
        self.on_shutdown = on_shutdown
        self._loop: asyncio.AbstractEventLoop | None = None

    def stop(self) -> None:
        """Initiate shutdown of the relay."""
        self.shutdown_initiated = True
        if self.on_shutdown is not None:
            self.on_shutdown()

    def setup_signal_handlers(self) -> None:
        """Set up signal handlers for graceful shutdown on SIGINT/SIGTERM."""
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        def handler(signum: int, _frame: object | None) -> None:  # noqa: D401
            # Idempotent signal handler: only trigger once
            if self.shutdown_initiated:
                return
            logging.warning(
                f"🛑 Signal received - initiating shutdown (signal={signum})"
            )
            self.shutdown_initiated = True
            if self._loop is not None and not self._loop.is_closed():
                # Wake the event loop; handlers run between bytecodes
                self._loop.call_soon_threadsafe(self.stop)
            else:
                self.stop()

        signal.signal(signal.SIGINT, handler)
        signal.signal(signal.SIGTERM, handler)

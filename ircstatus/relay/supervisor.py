"""Reconnect loop tying one transport's lifetime to the relay workers.

Every connection attempt is a *generation*: a fresh transport, a fresh
session and three workers (receiver, sender, transport watcher). The
supervisor waits for the first worker to finish, cancels and joins the
others, tears the connection down and decides whether to reconnect.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_fixed

from ..config.model import RelayConfig
from ..constants import ExitCode
from ..errors.handling import log_error
from ..errors.internal import (
    EndOfInput,
    FatalError,
    RelayError,
    RetryableError,
    TransportError,
)
from ..irc.codec import format_quit
from ..irc.handshake import NickState
from ..irc.session import Session
from ..irc.transport import Transport, open_transport
from ..linesource.source import LineSource
from .receiver import Receiver
from .sender import Sender
from .watcher import TransportWatcher

Connector = Callable[[RelayConfig], Awaitable[Transport]]
T = TypeVar("T")

QUIT_TIMEOUT_SECONDS = 5.0


def _severity(error: BaseException) -> int:
    # Higher wins when several workers finish in the same iteration
    if isinstance(error, FatalError):
        return 3
    if isinstance(error, EndOfInput):
        return 2
    if isinstance(error, RelayError):
        return 1
    return 0


class Supervisor:
    """Owns the reconnect loop and the single retry-or-exit decision.

    Attributes:
        config: Immutable relay configuration.
        source: Line source shared by every generation.
        nick: Base and current nick, kept for the process lifetime.
        pending: Undelivered line handed from one generation to the next.
        generation: Number of connection attempts started so far.
        shutdown: Process-wide shutdown signal.
    """

    def __init__(
        self,
        config: RelayConfig,
        source: LineSource,
        *,
        connector: Connector = open_transport,
        shutdown: asyncio.Event | None = None,
    ) -> None:
        self.config = config
        self.source = source
        self.connector = connector
        self.nick = NickState(config.nick)
        self.pending: str | None = None
        self.generation = 0
        self.shutdown = shutdown or asyncio.Event()
        self.session: Session | None = None

    def request_shutdown(self) -> None:
        self.shutdown.set()

    async def run(self) -> int:
        """Run generations until shutdown, end of input or a fatal error.

        Returns:
            The process exit status.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RetryableError),
            wait=wait_fixed(self.config.reconnect_wait),
            stop=self._stop_requested,
            sleep=self._sleep,
            before_sleep=self._before_sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self.run_generation()
        except RetryableError:
            logging.info("Shutdown requested while reconnecting")
        except EndOfInput as e:
            logging.info(f"🏁 {e}, exiting")
        except FatalError as e:
            log_error("Fatal error", e, level=logging.CRITICAL)
            return e.exit_code
        return ExitCode.OK

    def _stop_requested(self, _retry_state: RetryCallState) -> bool:
        return self.shutdown.is_set()

    async def _sleep(self, seconds: float) -> None:
        """Reconnect wait that ends early on shutdown."""
        try:
            await asyncio.wait_for(self.shutdown.wait(), timeout=seconds)
        except TimeoutError:
            pass

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        if error is not None:
            log_error("Connection lost", error, level=logging.WARNING)
        logging.warning(
            f"🔄 Sleeping {self.config.reconnect_wait:g}s before reconnect"
        )

    async def run_generation(self) -> None:
        """Run one connection attempt to completion.

        Returns normally only when shutdown was requested.

        Raises:
            RetryableError: The generation ended and the relay should reconnect.
            EndOfInput: Standard input is exhausted.
            FatalError: The relay must exit.
        """
        if self.shutdown.is_set():
            return
        self.generation += 1
        if self.source.needs_reopen:
            await self._unless_shutdown(self.source.reopen())
            if self.shutdown.is_set():
                return

        transport = await self._unless_shutdown(self.connector(self.config))
        if transport is None:
            logging.warning("🛑 Shutdown requested while connecting")
            return
        session = Session(
            self.config,
            transport,
            self.nick,
            pending=self.pending,
            generation=self.generation,
        )
        self.session = session
        try:
            await session.handshake.register()
            await self._run_workers(session)
        finally:
            await self._teardown(transport)
            self.session = None

    async def _unless_shutdown(self, step: Awaitable[T]) -> T | None:
        """Await ``step`` unless shutdown is requested first.

        Returns None when shutdown cancelled the step. Errors raised by the
        step propagate.
        """
        task = asyncio.ensure_future(step)
        stop_task = asyncio.create_task(self.shutdown.wait(), name="shutdown")
        try:
            await asyncio.wait({task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
            if not task.done():
                task.cancel()
            await asyncio.gather(task, stop_task, return_exceptions=True)
        if task.cancelled():
            return None
        return task.result()

    async def _run_workers(self, session: Session) -> None:
        sender = Sender(session, self.source)
        workers = {
            asyncio.create_task(Receiver(session).run(), name="receiver"),
            asyncio.create_task(sender.run(), name="sender"),
            asyncio.create_task(
                TransportWatcher(session.transport, self.config.idle_timeout).run(),
                name="watcher",
            ),
        }
        stop_task = asyncio.create_task(self.shutdown.wait(), name="shutdown")
        try:
            done, _ = await asyncio.wait(
                workers | {stop_task}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in workers | {stop_task}:
                task.cancel()
            # Barrier: the generation is over only when every worker is gone
            await asyncio.gather(*workers, stop_task, return_exceptions=True)
            # Strings are immutable, so this hands the line over by value
            self.pending = sender.pending
            logging.debug(f"Generation ended after relaying {sender.lines_sent} lines")

        if stop_task in done:
            logging.warning("🛑 Shutdown requested, closing connection")
            return

        errors = [
            task.exception() or TransportError(f"{task.get_name()} stopped unexpectedly")
            for task in done
            if task is not stop_task and not task.cancelled()
        ]
        if not errors:
            raise TransportError("Workers stopped without reporting a reason")
        raise max(errors, key=_severity)

    async def _teardown(self, transport: Transport) -> None:
        if not transport.is_closed:
            try:
                await asyncio.wait_for(
                    transport.write_line(format_quit(self.config.quit_message)),
                    timeout=QUIT_TIMEOUT_SECONDS,
                )
            except (TransportError, TimeoutError) as e:
                logging.debug(f"Unable to send QUIT: {e}")
        await transport.close()

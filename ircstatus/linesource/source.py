"""Line producer over standard input or a named pipe."""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
from dataclasses import dataclass
from enum import Enum, auto
from typing import IO

from ..config.model import InputSourceSpec
from ..constants import LINE_ENCODING, STDIN_SOURCE
from ..errors.internal import EndOfInput, InputSourceError, PipeSetupError
from .pipe import ensure_pipe, flush_pipe, open_pipe, remove_pipe


class ItemKind(Enum):
    LINE = auto()
    EOF = auto()
    ERROR = auto()


@dataclass(frozen=True)
class SourceItem:
    kind: ItemKind
    line: str | None = None
    error: BaseException | None = None


class LineSource:
    """Restartable producer of trimmed text lines.

    A daemon thread reads the underlying stream and hands items to an
    asyncio queue. The queue outlives connection generations and has one
    consumer at a time: the current sender.

    Attributes:
        name: ``-`` for standard input, otherwise the pipe path.
        path: Pipe path, None for standard input.
        is_stdin: Whether this is the process's standard input.
        created: Whether the pipe was created by this process (removed on close).
    """

    def __init__(
        self,
        stream: IO,
        *,
        name: str = STDIN_SOURCE,
        path: str | None = None,
        is_stdin: bool = True,
        created: bool = False,
    ) -> None:
        self.name = name
        self.path = path
        self.is_stdin = is_stdin
        self.created = created
        self._stream = stream
        self._queue: asyncio.Queue[SourceItem] = asyncio.Queue()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._failed = False
        self._exhausted = False

    @property
    def needs_reopen(self) -> bool:
        return self._failed

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._loop = asyncio.get_running_loop()
        self._thread = threading.Thread(
            target=self._pump, args=(self._stream,), name=f"linesource:{self.name}", daemon=True
        )
        self._thread.start()

    def _emit(self, item: SourceItem) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self._queue.put_nowait, item)
        except RuntimeError:
            # Event loop shut down while the thread was reading
            pass

    def _pump(self, stream: IO) -> None:
        try:
            while True:
                raw = stream.readline()
                if not raw:
                    break
                if isinstance(raw, bytes):
                    raw = raw.decode(LINE_ENCODING, errors="replace")
                self._emit(SourceItem(ItemKind.LINE, line=raw.rstrip()))
        except (OSError, ValueError) as e:
            self._emit(SourceItem(ItemKind.ERROR, error=e))
            return
        self._emit(SourceItem(ItemKind.EOF))

    async def next_line(self) -> str:
        """Wait for the next line.

        Raises:
            EndOfInput: Standard input reached EOF.
            InputSourceError: The stream failed or a pipe hit EOF.
        """
        if self._exhausted:
            raise EndOfInput(f"{self.name} already reached end of input")
        self.start()
        item = await self._queue.get()
        if item.kind is ItemKind.LINE:
            return item.line or ""
        if item.kind is ItemKind.EOF and self.is_stdin:
            self._exhausted = True
            raise EndOfInput(f"End of input on {self.name}")
        self._failed = True
        if item.kind is ItemKind.EOF:
            raise InputSourceError(f"Unexpected end of input on {self.name}")
        raise InputSourceError(
            f"Error reading from {self.name}: {item.error}",
            data={"source": self.name},
        ) from item.error

    async def reopen(self) -> None:
        """Restart reading after a failure.

        Raises:
            InputSourceError: If the pipe cannot be reopened; retried later.
        """
        if not self._failed:
            return
        if self._thread is not None:
            # The reader already reported EOF or an error and is on its way out
            self._thread.join(timeout=1.0)
        if self.path is not None:
            self._close_stream()
            try:
                ensure_pipe(self.path)
                self._stream = open_pipe(self.path)
            except PipeSetupError as e:
                raise InputSourceError(str(e), data={"source": self.name}) from e
        logging.info(f"🔁 Reopened input {self.name}")
        self._failed = False
        self._thread = None
        self.start()

    def _close_stream(self) -> None:
        if self.is_stdin:
            return
        if self._thread is not None and self._thread.is_alive():
            # Closing a buffered stream blocks while another thread is reading it
            logging.debug(f"Reader of {self.name} still running, leaving stream open")
            return
        try:
            self._stream.close()
        except OSError as e:
            logging.debug(f"Error closing {self.name}: {e}")

    def close(self) -> None:
        """Close the stream and remove a pipe this process created."""
        self._close_stream()
        if self.created and self.path is not None:
            remove_pipe(self.path)


async def open_line_source(
    spec: InputSourceSpec,
    nick: str,
    *,
    flush: bool = True,
    flush_timeout: float = 10.0,
) -> LineSource:
    """Resolve ``spec`` and open the source it names.

    Raises:
        PipeSetupError: If the pipe cannot be created, flushed or opened.
            Fatal at startup.
    """
    path = spec.resolve(nick)
    if path is None:
        logging.debug("Taking input from stdin")
        return LineSource(sys.stdin.buffer, name=STDIN_SOURCE, is_stdin=True)

    logging.debug(f"Pipe name: {path}")
    created = ensure_pipe(path)
    try:
        if flush and not created:
            discarded = await flush_pipe(path, flush_timeout)
            logging.debug(f"Pipe {path} flushed ({discarded} bytes)")
        stream = open_pipe(path)
    except PipeSetupError:
        if created:
            remove_pipe(path)
        raise
    logging.info(f"📥 Reading lines from pipe {path}")
    return LineSource(stream, name=path, path=path, is_stdin=False, created=created)

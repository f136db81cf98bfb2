"""Line-oriented connection to the IRC server.

The relay core only sees the :class:`Transport` interface. The stock
implementation is :class:`StreamTransport`, an asyncio stream that may be
wrapped in TLS.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
import time
from abc import ABC, abstractmethod

from ..config.model import RelayConfig
from ..constants import CONNECT_TIMEOUT_SECONDS, LINE_ENCODING
from ..errors.internal import TransportError
from ..logging_config import WIRE_LOGGER_NAME

wire_log = logging.getLogger(WIRE_LOGGER_NAME)


class Transport(ABC):
    """Opaque bidirectional line stream to the server."""

    def __init__(self) -> None:
        self.last_activity = time.monotonic()
        self._closed = asyncio.Event()

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    @abstractmethod
    async def read_line(self) -> str | None:  # pragma: no cover - interface
        """Next line without its terminator, or None when the server closed.

        Raises:
            TransportError: If reading fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def write_line(self, line: str) -> None:  # pragma: no cover - interface
        """Send one line; the CRLF terminator is appended here.

        Raises:
            TransportError: If writing fails.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def wait_closed(self) -> None:
        await self._closed.wait()

    def _mark_closed(self) -> None:
        self._closed.set()

    def touch(self) -> None:
        self.last_activity = time.monotonic()


class StreamTransport(Transport):
    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        rxproto: bool = False,
        txproto: bool = False,
        name: str = "server",
    ) -> None:
        super().__init__()
        self.reader = reader
        self.writer = writer
        self.rxproto = rxproto
        self.txproto = txproto
        self.name = name

    async def read_line(self) -> str | None:
        if self.is_closed:
            return None
        try:
            data = await self.reader.readline()
        except (OSError, ValueError, asyncio.IncompleteReadError) as e:
            # ValueError: line longer than the stream reader limit
            self._mark_closed()
            raise TransportError(f"Read from {self.name} failed: {e}") from e
        if not data:
            self._mark_closed()
            return None
        self.touch()
        line = data.decode(LINE_ENCODING, errors="replace").rstrip("\r\n")
        wire_log.log(logging.INFO if self.rxproto else logging.DEBUG, f"<- {line}")
        return line

    async def write_line(self, line: str) -> None:
        if self.is_closed or self.writer.is_closing():
            raise TransportError(f"Connection to {self.name} is closed")
        wire_log.log(logging.INFO if self.txproto else logging.DEBUG, f"-> {line}")
        try:
            self.writer.write(f"{line}\r\n".encode(LINE_ENCODING, errors="replace"))
            await self.writer.drain()
        except (OSError, RuntimeError) as e:
            self._mark_closed()
            raise TransportError(f"Write to {self.name} failed: {e}") from e

    async def close(self) -> None:
        self._mark_closed()
        if self.writer.is_closing():
            return
        try:
            self.writer.close()
            await self.writer.wait_closed()
        except (OSError, ssl.SSLError) as e:
            logging.debug(f"Error while closing connection to {self.name}: {e}")


def build_ssl_context(config: RelayConfig) -> ssl.SSLContext | None:
    if not config.tls:
        return None
    context = ssl.create_default_context()
    if not config.tls_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


async def open_transport(
    config: RelayConfig, timeout: float = CONNECT_TIMEOUT_SECONDS
) -> StreamTransport:
    """Connect to the configured server.

    Raises:
        TransportError: If the connection or TLS handshake fails or times out.
    """
    context = build_ssl_context(config)
    logging.info(f"🔌 Connecting to {config.address} (tls={'on' if context else 'off'})")
    try:
        reader, writer = await asyncio.wait_for(
            asyncio.open_connection(
                config.host,
                config.port,
                ssl=context,
                server_hostname=config.certificate_hostname if context else None,
            ),
            timeout=timeout,
        )
    except TimeoutError as e:
        raise TransportError(
            f"Timed out connecting to {config.address}", data={"timeout": timeout}
        ) from e
    except (OSError, ssl.SSLError) as e:
        raise TransportError(f"Unable to connect to {config.address}: {e}") from e
    logging.info(f"✅ Connected to {config.address}")
    return StreamTransport(
        reader,
        writer,
        rxproto=config.rxproto,
        txproto=config.txproto,
        name=config.address,
    )

"""Tests for the asyncio stream transport."""

import asyncio
import logging
import ssl
from unittest.mock import AsyncMock, Mock, patch

import pytest

from ircstatus.errors.internal import TransportError
from ircstatus.irc.transport import StreamTransport, build_ssl_context, open_transport
from ircstatus.logging_config import WIRE_LOGGER_NAME
from tests.fixtures.relay_fixtures import make_config


def _writer():
    writer = Mock()
    writer.is_closing.return_value = False
    writer.drain = AsyncMock()
    writer.wait_closed = AsyncMock()
    return writer


def _reader(data: bytes, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


class TestStreamTransport:
    @pytest.mark.asyncio
    async def test_read_line_strips_terminator(self):
        transport = StreamTransport(_reader(b"PING :x\r\n:s 001 me :hi\n"), _writer())
        assert await transport.read_line() == "PING :x"
        assert await transport.read_line() == ":s 001 me :hi"

    @pytest.mark.asyncio
    async def test_eof_closes_transport(self):
        transport = StreamTransport(_reader(b""), _writer())
        assert await transport.read_line() is None
        assert transport.is_closed
        assert await transport.read_line() is None

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self):
        transport = StreamTransport(_reader(b"caf\xe9\r\n"), _writer())
        assert await transport.read_line() == "caf\ufffd"

    @pytest.mark.asyncio
    async def test_read_error_raises_transport_error(self):
        reader = Mock()
        reader.readline = AsyncMock(side_effect=ConnectionResetError("reset"))
        transport = StreamTransport(reader, _writer())
        with pytest.raises(TransportError):
            await transport.read_line()
        assert transport.is_closed

    @pytest.mark.asyncio
    async def test_write_appends_crlf(self):
        writer = _writer()
        transport = StreamTransport(_reader(b""), writer)
        await transport.write_line("NICK statusbot")
        writer.write.assert_called_once_with(b"NICK statusbot\r\n")
        writer.drain.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_write_failure(self):
        writer = _writer()
        writer.drain.side_effect = BrokenPipeError("gone")
        transport = StreamTransport(_reader(b""), writer)
        with pytest.raises(TransportError):
            await transport.write_line("NICK statusbot")
        assert transport.is_closed

    @pytest.mark.asyncio
    async def test_write_after_close_rejected(self):
        transport = StreamTransport(_reader(b""), _writer())
        await transport.close()
        with pytest.raises(TransportError):
            await transport.write_line("QUIT :bye")

    @pytest.mark.asyncio
    async def test_read_updates_last_activity(self):
        transport = StreamTransport(_reader(b"x\r\n"), _writer())
        transport.last_activity = 0.0
        await transport.read_line()
        assert transport.last_activity > 0.0

    @pytest.mark.asyncio
    async def test_rxproto_traces_at_info(self, caplog):
        transport = StreamTransport(_reader(b"PING :x\r\n"), _writer(), rxproto=True)
        with caplog.at_level(logging.INFO, logger=WIRE_LOGGER_NAME):
            await transport.read_line()
        assert "<- PING :x" in caplog.text

    @pytest.mark.asyncio
    async def test_untraced_lines_stay_at_debug(self, caplog):
        transport = StreamTransport(_reader(b""), _writer())
        with caplog.at_level(logging.INFO, logger=WIRE_LOGGER_NAME):
            await transport.write_line("NICK statusbot")
        assert "-> NICK statusbot" not in caplog.text


class TestOpenTransport:
    def test_no_context_without_tls(self):
        assert build_ssl_context(make_config(tls=False)) is None

    def test_insecure_context(self):
        context = build_ssl_context(make_config(tls_verify=False))
        assert context.verify_mode == ssl.CERT_NONE
        assert context.check_hostname is False

    @pytest.mark.asyncio
    async def test_connect_uses_certificate_hostname(self):
        config = make_config(tls_hostname="irc.example.net")
        with patch(
            "ircstatus.irc.transport.asyncio.open_connection",
            new=AsyncMock(return_value=(Mock(), _writer())),
        ) as open_connection:
            transport = await open_transport(config)
        _, kwargs = open_connection.call_args
        assert kwargs["server_hostname"] == "irc.example.net"
        assert isinstance(kwargs["ssl"], ssl.SSLContext)
        assert transport.name == "irc.example.org:6697"

    @pytest.mark.asyncio
    async def test_connect_refused(self):
        with patch(
            "ircstatus.irc.transport.asyncio.open_connection",
            new=AsyncMock(side_effect=ConnectionRefusedError("refused")),
        ):
            with pytest.raises(TransportError, match="Unable to connect"):
                await open_transport(make_config(tls=False))

    @pytest.mark.asyncio
    async def test_connect_timeout(self):
        async def hang(*_args, **_kwargs):
            await asyncio.sleep(10)

        with patch("ircstatus.irc.transport.asyncio.open_connection", new=hang):
            with pytest.raises(TransportError, match="Timed out"):
                await open_transport(make_config(tls=False), timeout=0.01)

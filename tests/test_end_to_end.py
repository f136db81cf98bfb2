"""End-to-end relay runs against a scripted IRC server on localhost."""

import asyncio
import io
import re

import pytest

from ircstatus.constants import ExitCode
from ircstatus.linesource import LineSource
from ircstatus.relay.supervisor import Supervisor
from tests.fixtures.relay_fixtures import make_config


class ScriptedServer:
    """Minimal IRC server: confirms joins, pings once and records traffic.

    Args:
        collide_first_nick: Answer the very first NICK with 433.
        drop_after_privmsgs: Close the first connection after this many PRIVMSGs.
    """

    def __init__(self, collide_first_nick=False, drop_after_privmsgs=None):
        self.collide_first_nick = collide_first_nick
        self.drop_after_privmsgs = drop_after_privmsgs
        self.received: list[list[str]] = []
        self.server: asyncio.AbstractServer | None = None

    async def start(self) -> int:
        self.server = await asyncio.start_server(self.handle, "127.0.0.1", 0)
        return self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        self.server.close()
        await self.server.wait_closed()

    def privmsgs(self, connection: int) -> list[str]:
        return [
            line.split(" :", 1)[1]
            for line in self.received[connection]
            if line.startswith("PRIVMSG #status ")
        ]

    async def handle(self, reader, writer):
        lines: list[str] = []
        self.received.append(lines)
        first_connection = len(self.received) == 1
        privmsgs = 0
        try:
            while True:
                data = await reader.readline()
                if not data:
                    break
                line = data.decode().rstrip("\r\n")
                lines.append(line)
                if line.startswith("NICK ") and self.collide_first_nick:
                    self.collide_first_nick = False
                    writer.write(b":server 433 * statusbot :Nickname is already in use\r\n")
                elif line.startswith("JOIN "):
                    writer.write(b"PING :keepalive\r\n")
                    writer.write(b":server 353 statusbot = #status :statusbot\r\n")
                    writer.write(b":server 366 statusbot #status :End of /NAMES list.\r\n")
                elif line.startswith("PRIVMSG #status "):
                    privmsgs += 1
                    if first_connection and privmsgs == self.drop_after_privmsgs:
                        break
                elif line.startswith("QUIT"):
                    break
                await writer.drain()
        finally:
            writer.close()


@pytest.mark.asyncio
async def test_relay_from_stdin_with_nick_collision():
    server = ScriptedServer(collide_first_nick=True)
    port = await server.start()
    try:
        config = make_config(host="127.0.0.1", port=port, tls=False)
        source = LineSource(io.BytesIO(b"backup ok\n\nload 0.42\n"), is_stdin=True)
        code = await asyncio.wait_for(Supervisor(config, source).run(), 10)
    finally:
        await server.stop()

    assert code == ExitCode.OK
    assert len(server.received) == 1
    lines = server.received[0]
    nicks = [line for line in lines if line.startswith("NICK ")]
    assert nicks[0] == "NICK statusbot"
    assert re.match(r"^NICK statusbot-\d+$", nicks[1])
    assert "PONG :keepalive" in lines
    assert server.privmsgs(0) == ["backup ok", "load 0.42"]
    assert lines[-1] == "QUIT :ircstatus shutting down"


@pytest.mark.asyncio
async def test_relay_survives_server_disconnect():
    server = ScriptedServer(drop_after_privmsgs=1)
    port = await server.start()
    try:
        config = make_config(host="127.0.0.1", port=port, tls=False, send_delay=0.3)
        source = LineSource(io.BytesIO(b"line 1\nline 2\nline 3\n"), is_stdin=True)
        supervisor = Supervisor(config, source)
        code = await asyncio.wait_for(supervisor.run(), 10)
    finally:
        await server.stop()

    assert code == ExitCode.OK
    assert supervisor.generation == 2
    assert server.privmsgs(0) == ["line 1"]
    assert server.privmsgs(1) == ["line 2", "line 3"]

"""Tests for command line configuration loading."""

import io
from unittest.mock import Mock, patch

import pytest

from ircstatus.config import default_nick, load_config, parse_duration
from ircstatus.config.model import SourceKind
from ircstatus.constants import ExitCode
from ircstatus.errors.internal import ConfigurationError
from ircstatus.linesource import LineSource


class TestParseDuration:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("500ms", 0.5),
            ("10s", 10.0),
            ("2m", 120.0),
            ("1h", 3600.0),
            ("7", 7.0),
            ("1.5s", 1.5),
            ("0", 0.0),
            (3, 3.0),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_duration(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["abc", "-1s", "10 parsecs", "", -2])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_duration(raw)


class TestDefaultNick:
    def test_short_hostname(self):
        with patch("ircstatus.config.loader.socket.gethostname", return_value="web01.example.com"):
            assert default_nick() == "web01"

    def test_hostname_failure_falls_back(self):
        with patch("ircstatus.config.loader.socket.gethostname", side_effect=OSError("no")):
            assert default_nick() == "ircstatus"

    def test_empty_hostname_falls_back(self):
        with patch("ircstatus.config.loader.socket.gethostname", return_value=""):
            assert default_nick() == "ircstatus"


class TestLoadConfig:
    def test_flags(self):
        config = load_config(
            [
                "--host", "irc.example.org",
                "--port", "6667",
                "--no-tls",
                "--nick", "statusbot",
                "--no-nums",
                "--channel", "#ops",
                "--chanpass", "k3y",
                "--pipe", "nick",
                "--no-flush",
                "--wait", "5s",
                "--senddelay", "250ms",
                "--debug",
                "--rxproto",
            ]
        )
        assert config.address == "irc.example.org:6667"
        assert config.tls is False
        assert config.nick == "statusbot"
        assert config.always_suffix is False
        assert config.channel == "#ops"
        assert config.channel_key == "k3y"
        assert config.source.kind is SourceKind.NICK
        assert config.flush is False
        assert config.reconnect_wait == 5.0
        assert config.send_delay == pytest.approx(0.25)
        assert config.debug is True
        assert config.verbose is True
        assert config.rxproto is True
        assert config.txproto is False

    def test_insecure(self):
        config = load_config(["--nick", "statusbot", "--insecure"])
        assert config.tls_verify is False

    def test_nick_defaults_to_hostname(self):
        with patch("ircstatus.config.loader.socket.gethostname", return_value="db7.internal"):
            assert load_config([]).nick == "db7"

    def test_idpass_implies_idnick(self):
        config = load_config(["--nick", "statusbot", "--idpass", "hunter2"])
        assert config.idnick == "statusbot"

    def test_password_read_from_stdin(self):
        config = load_config(
            ["--nick", "statusbot", "--idnick", "owner"], stdin=io.StringIO("hunter2\n")
        )
        assert config.idnick == "owner"
        assert config.idpass == "hunter2"

    @pytest.mark.asyncio
    async def test_lines_after_password_stay_readable(self):
        stdin = io.BytesIO(b"hunter2\nline1\nline2\n")
        config = load_config(["--nick", "statusbot", "--idnick", "owner"], stdin=stdin)
        assert config.idpass == "hunter2"

        source = LineSource(stdin, is_stdin=True)
        assert await source.next_line() == "line1"
        assert await source.next_line() == "line2"

    def test_password_read_from_binary_stdin_buffer(self):
        fake_stdin = Mock()
        fake_stdin.buffer = io.BytesIO(b"hunter2\r\nrelayed line\n")
        with patch("ircstatus.config.loader.sys.stdin", fake_stdin):
            config = load_config(["--nick", "statusbot", "--idnick", "owner"])
        assert config.idpass == "hunter2"
        fake_stdin.readline.assert_not_called()
        assert fake_stdin.buffer.readline() == b"relayed line\n"

    def test_missing_password_is_fatal(self):
        with pytest.raises(ConfigurationError) as excinfo:
            load_config(["--nick", "statusbot", "--idnick", "owner"], stdin=io.StringIO(""))
        assert excinfo.value.exit_code == ExitCode.PASSWORD_READ

    def test_invalid_channel_is_fatal(self):
        with pytest.raises(ConfigurationError) as excinfo:
            load_config(["--nick", "statusbot", "--channel", "nochan"])
        assert excinfo.value.exit_code == ExitCode.INVALID_CONFIG
        assert "channel" in str(excinfo.value)

    def test_overlong_channel_is_fatal_before_connecting(self):
        with pytest.raises(ConfigurationError) as excinfo:
            load_config(["--nick", "statusbot", "--channel", "#" + "a" * 420])
        assert excinfo.value.exit_code == ExitCode.INVALID_CONFIG

    def test_bad_duration_rejected_by_parser(self):
        with pytest.raises(SystemExit):
            load_config(["--nick", "statusbot", "--wait", "soon"])

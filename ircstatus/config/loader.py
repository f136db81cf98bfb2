"""Command line configuration loading.

Flags are parsed with argparse, defaults come from :mod:`ircstatus.constants`
(overridable through ``IRCSTATUS_*`` environment variables) and the result is
validated into an immutable :class:`RelayConfig`.
"""

from __future__ import annotations

import argparse
import logging
import re
import socket
import sys
from collections.abc import Sequence
from typing import IO

from pydantic import ValidationError

from ..constants import (
    DEFAULT_CHANNEL,
    DEFAULT_CHANNEL_KEY,
    DEFAULT_FLUSH,
    DEFAULT_HOST,
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_NUMS,
    DEFAULT_PIPE,
    DEFAULT_PORT,
    DEFAULT_QUIT_MESSAGE,
    DEFAULT_REALNAME,
    DEFAULT_RECONNECT_WAIT_SECONDS,
    DEFAULT_SEND_DELAY_SECONDS,
    DEFAULT_TLS,
    DEFAULT_USERNAME,
    FALLBACK_NICK,
    LINE_ENCODING,
    ExitCode,
)
from ..errors.internal import ConfigurationError
from .model import InputSourceSpec, RelayConfig

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*(ms|s|m|h)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def default_nick() -> str:
    """Local hostname up to the first dot, or the fallback nick."""
    try:
        hostname = socket.gethostname()
    except OSError as e:
        logging.warning(f"Unable to determine hostname: {e}")
        return FALLBACK_NICK
    short = hostname.split(".", 1)[0].strip()
    return short or FALLBACK_NICK


def parse_duration(raw: str | float | int) -> float:
    """Parse ``500ms``, ``10s``, ``2m``, ``1h`` or bare seconds into seconds."""
    if isinstance(raw, int | float):
        if raw < 0:
            raise ValueError(f"duration must not be negative: {raw}")
        return float(raw)
    match = _DURATION_RE.match(raw)
    if not match:
        raise ValueError(f"invalid duration: {raw!r}")
    value, unit = match.groups()
    return float(value) * _DURATION_UNITS[(unit or "s").lower()]


def _duration_arg(raw: str) -> float:
    try:
        return parse_duration(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ircstatus",
        description="Relay lines from standard input or a named pipe to an IRC channel.",
    )
    server = parser.add_argument_group("server")
    server.add_argument("--host", default=DEFAULT_HOST, help="IRC server hostname.")
    server.add_argument("--port", type=int, default=DEFAULT_PORT, help="IRC server port.")
    server.add_argument(
        "--tls",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_TLS,
        help="Use TLS.",
    )
    server.add_argument(
        "--tls-hostname",
        default=None,
        help="Hostname expected in the server certificate (defaults to --host).",
    )
    server.add_argument(
        "--insecure",
        action="store_true",
        help="Do not verify the server certificate.",
    )

    identity = parser.add_argument_group("identity")
    identity.add_argument("--nick", default=None, help="IRC nickname (defaults to the short hostname).")
    identity.add_argument(
        "--nums",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_NUMS,
        help=(
            "Append random numbers to the nick. Even without this, numbers are "
            "added when the nick is already in use."
        ),
    )
    identity.add_argument("--uname", default=DEFAULT_USERNAME, help="Username.")
    identity.add_argument("--rname", default=DEFAULT_REALNAME, help="Real name.")
    identity.add_argument(
        "--idnick",
        default="",
        help="Nick used to identify to services (defaults to --nick when --idpass is given).",
    )
    identity.add_argument(
        "--idpass",
        default="",
        help="Services password. Read from standard input when --idnick is given without it.",
    )

    channel = parser.add_argument_group("channel")
    channel.add_argument("--channel", default=DEFAULT_CHANNEL, help="Channel to join.")
    channel.add_argument("--chanpass", default=DEFAULT_CHANNEL_KEY, help="Channel key.")
    channel.add_argument("--quit-message", default=DEFAULT_QUIT_MESSAGE, help="QUIT message.")

    source = parser.add_argument_group("input")
    source.add_argument(
        "--pipe",
        default=DEFAULT_PIPE,
        help=(
            '"-" for standard input, "nick" for a pipe in the temp directory named '
            "after the nick, or a path where a pipe is created if none exists."
        ),
    )
    source.add_argument(
        "--flush",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_FLUSH,
        help="Discard data waiting on the pipe before starting. Ignored for standard input.",
    )

    timing = parser.add_argument_group("timing")
    timing.add_argument(
        "--wait",
        type=_duration_arg,
        default=DEFAULT_RECONNECT_WAIT_SECONDS,
        help="Time to wait between reconnection attempts (e.g. 10s).",
    )
    timing.add_argument(
        "--senddelay",
        type=_duration_arg,
        default=DEFAULT_SEND_DELAY_SECONDS,
        help="Delay after every sent message to avoid flooding (e.g. 1s).",
    )
    timing.add_argument(
        "--idle-timeout",
        type=_duration_arg,
        default=DEFAULT_IDLE_TIMEOUT_SECONDS,
        help="Reconnect after this long without server traffic (0 disables).",
    )

    output = parser.add_argument_group("output")
    output.add_argument("-v", "--verbose", action="store_true", help="Print some non-error output.")
    output.add_argument("--debug", action="store_true", help="Print more output. Implies --verbose.")
    output.add_argument("--rxproto", action="store_true", help="Log received IRC protocol lines.")
    output.add_argument("--txproto", action="store_true", help="Log transmitted IRC protocol lines.")
    return parser


def read_services_password(stream: IO) -> str:
    """Read a single line holding the services password.

    Standard input is read through its binary buffer, the same one the line
    source reads from later, so lines after the password stay available.
    """
    try:
        line = stream.readline()
    except OSError as e:
        raise ConfigurationError(
            f"Unable to read password to auth to services: {e}",
            exit_code=ExitCode.PASSWORD_READ,
        ) from e
    if isinstance(line, bytes):
        line = line.decode(LINE_ENCODING, errors="replace")
    password = line.rstrip("\r\n")
    if not password:
        raise ConfigurationError(
            "Unable to read password to auth to services: no input",
            exit_code=ExitCode.PASSWORD_READ,
        )
    return password


def config_from_args(args: argparse.Namespace, stdin: IO | None = None) -> RelayConfig:
    """Turn parsed flags into a validated :class:`RelayConfig`."""
    nick = args.nick or default_nick()
    idnick = args.idnick or None
    idpass = args.idpass or None
    if idnick and not idpass:
        idpass = read_services_password(stdin or sys.stdin.buffer)

    try:
        return RelayConfig(
            host=args.host,
            port=args.port,
            tls=args.tls,
            tls_hostname=args.tls_hostname,
            tls_verify=not args.insecure,
            nick=nick,
            always_suffix=args.nums,
            username=args.uname,
            realname=args.rname,
            idnick=idnick,
            idpass=idpass,
            channel=args.channel,
            channel_key=args.chanpass,
            quit_message=args.quit_message,
            source=InputSourceSpec.parse(args.pipe),
            flush=args.flush,
            reconnect_wait=args.wait,
            send_delay=args.senddelay,
            idle_timeout=args.idle_timeout,
            verbose=args.verbose or args.debug,
            debug=args.debug,
            rxproto=args.rxproto,
            txproto=args.txproto,
        )
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


def load_config(argv: Sequence[str] | None = None, stdin: IO | None = None) -> RelayConfig:
    """Parse ``argv`` and build the relay configuration.

    Raises:
        ConfigurationError: If a flag value is invalid or the services
            password cannot be read.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    return config_from_args(args, stdin)

"""Classification of inbound lines and formatting of outbound commands.

Everything here is pure: no I/O, no state. The rest of the relay only ever
looks at :class:`EventKind`, never at raw protocol text.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto

from .parser import IRCMessage, parse_irc_message

ERR_NICKNAMEINUSE = "433"
RPL_NAMREPLY = "353"
RPL_ENDOFNAMES = "366"

_JOIN_CONFIRMATIONS = (RPL_NAMREPLY, RPL_ENDOFNAMES)


class EventKind(Enum):
    PING = auto()
    NICK_COLLISION = auto()
    CHANNEL_JOINED = auto()
    OTHER = auto()


@dataclass(frozen=True)
class InboundEvent:
    kind: EventKind
    raw: str
    token: str | None = None
    message: IRCMessage | None = None


def classify(line: str, channel: str | None = None) -> InboundEvent:
    """Classify one received line.

    Args:
        line: Raw line without its CRLF terminator.
        channel: When given, only member-list replies for this channel count
            as CHANNEL_JOINED.
    """
    if line[:5].lower() == "ping ":
        return InboundEvent(EventKind.PING, line, token=line[5:])

    parsed = parse_irc_message(line)
    if parsed.command == "PING":
        # Prefixed PING, e.g. ":server PING :token"
        start = line.upper().find(" PING ")
        token = line[start + 6 :] if start != -1 else ""
        return InboundEvent(EventKind.PING, line, token=token, message=parsed)
    if parsed.command == ERR_NICKNAMEINUSE:
        return InboundEvent(EventKind.NICK_COLLISION, line, message=parsed)
    if parsed.command in _JOIN_CONFIRMATIONS and _names_channel(parsed, channel):
        return InboundEvent(EventKind.CHANNEL_JOINED, line, message=parsed)
    return InboundEvent(EventKind.OTHER, line, message=parsed)


def _names_channel(parsed: IRCMessage, channel: str | None) -> bool:
    # RPL_NAMREPLY: <me> <type> <channel> :<names>, RPL_ENDOFNAMES: <me> <channel> :<text>
    if channel is None:
        return True
    wanted = channel.lower()
    return any(p.lower() == wanted for p in parsed.params[:-1])


def _checked(line: str) -> str:
    if "\r" in line or "\n" in line or "\x00" in line:
        raise ValueError(f"protocol line must not contain line breaks: {line!r}")
    return line


def format_nick(nick: str) -> str:
    return _checked(f"NICK {nick}")


def format_user(username: str, realname: str) -> str:
    return _checked(f"USER {username} x x :{realname}")


def format_join(channel: str, key: str = "") -> str:
    if key:
        return _checked(f"JOIN {channel} {key}")
    return _checked(f"JOIN {channel}")


def format_privmsg(target: str, text: str) -> str:
    return _checked(f"PRIVMSG {target} :{text}")


def format_identify(idnick: str, idpass: str) -> str:
    return format_privmsg("nickserv", f"identify {idnick} {idpass}")


def format_quit(message: str) -> str:
    return _checked(f"QUIT :{message}")


def format_pong(token: str) -> str:
    return _checked(f"PONG {token}")

"""
Configuration constants for the ircstatus relay

This module contains the defaults used throughout the application.
Each constant can be overridden by setting an environment variable named
``IRCSTATUS_<NAME>``.
"""

import os
from enum import IntEnum

_ENV_PREFIX = "IRCSTATUS_"


def _get_env_str(name: str, default: str) -> str:
    """Retrieve a string value from an environment variable."""
    return os.getenv(_ENV_PREFIX + name, default)


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the setting, without the ``IRCSTATUS_`` prefix.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(_ENV_PREFIX + name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {_ENV_PREFIX}{name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Attempts to parse the environment variable as a float. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the setting, without the ``IRCSTATUS_`` prefix.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(_ENV_PREFIX + name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {_ENV_PREFIX}{name}='{value}', using default {default}"
            )
    return default


def _get_env_bool(name: str, default: bool) -> bool:
    value = os.getenv(_ENV_PREFIX + name)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


class ExitCode(IntEnum):
    """Process exit statuses, one per fatal startup failure."""

    OK = 0
    UNEXPECTED = 1
    INVALID_CONFIG = 2
    PIPE_CREATE = 3
    PIPE_OPEN = 4
    PIPE_FLUSH = 5
    PASSWORD_READ = 6


# Server connection
DEFAULT_HOST = _get_env_str("HOST", "irc.libera.chat")
DEFAULT_PORT = _get_env_int("PORT", 6697)
DEFAULT_TLS = _get_env_bool("TLS", True)
CONNECT_TIMEOUT_SECONDS = _get_env_float(
    "CONNECT_TIMEOUT_SECONDS", 30.0
)  # Upper bound on TCP + TLS setup

# Identity
FALLBACK_NICK = "ircstatus"  # Used when the hostname cannot be determined
DEFAULT_NUMS = _get_env_bool("NUMS", True)  # Append random numbers to the nick
DEFAULT_USERNAME = _get_env_str("UNAME", "ircstatus")
DEFAULT_REALNAME = _get_env_str("RNAME", "Status over IRC")
NICK_SUFFIX_BITS = 63  # Random suffix is a non-negative 63-bit integer

# Channel
DEFAULT_CHANNEL = _get_env_str("CHANNEL", "##ircstatushub")
DEFAULT_CHANNEL_KEY = _get_env_str("CHANPASS", "")
DEFAULT_QUIT_MESSAGE = _get_env_str("QUIT_MESSAGE", "ircstatus shutting down")

# Input source
STDIN_SOURCE = "-"  # --pipe value selecting standard input
NICK_SOURCE = "nick"  # --pipe value deriving the pipe path from the nick
DEFAULT_PIPE = _get_env_str("PIPE", STDIN_SOURCE)
DEFAULT_FLUSH = _get_env_bool("FLUSH", True)
PIPE_MODE = 0o660  # Owner and group read-write
FLUSH_SENTINEL = b"ircstatus flush\n"  # Written so a flushing reader always sees data
FLUSH_POLL_INTERVAL_SECONDS = 0.05  # Sleep between non-blocking flush reads
READ_CHUNK_BYTES = 4096

# Timing
DEFAULT_RECONNECT_WAIT_SECONDS = _get_env_float(
    "WAIT", 10.0
)  # Time to wait between reconnection attempts
DEFAULT_SEND_DELAY_SECONDS = _get_env_float(
    "SENDDELAY", 1.0
)  # Delay after every transmitted PRIVMSG to avoid flooding
DEFAULT_IDLE_TIMEOUT_SECONDS = _get_env_float(
    "IDLE_TIMEOUT", 0.0
)  # Seconds without inbound traffic before forcing a reconnect (0 disables)

# Wire protocol
MAX_LINE_BYTES = 510  # RFC 1459 line limit, excluding the trailing CRLF
RELAY_PREFIX_RESERVE_BYTES = _get_env_int(
    "RELAY_PREFIX_RESERVE_BYTES", 100
)  # Room for the ':nick!user@host ' prefix the server adds when relaying
OVERSIZE_CHAR_PLACEHOLDER = "?"
LINE_ENCODING = "utf-8"

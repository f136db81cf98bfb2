from __future__ import annotations

import os
import tempfile
from enum import Enum

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ..constants import (
    DEFAULT_CHANNEL,
    DEFAULT_CHANNEL_KEY,
    DEFAULT_FLUSH,
    DEFAULT_HOST,
    DEFAULT_IDLE_TIMEOUT_SECONDS,
    DEFAULT_NUMS,
    DEFAULT_PORT,
    DEFAULT_QUIT_MESSAGE,
    DEFAULT_REALNAME,
    DEFAULT_RECONNECT_WAIT_SECONDS,
    DEFAULT_SEND_DELAY_SECONDS,
    DEFAULT_TLS,
    DEFAULT_USERNAME,
    LINE_ENCODING,
    MAX_LINE_BYTES,
    NICK_SOURCE,
    RELAY_PREFIX_RESERVE_BYTES,
    STDIN_SOURCE,
)

_CHANNEL_PREFIXES = "#&+!"
_FORBIDDEN_CHARS = (" ", "\r", "\n", "\x00")


def _reject_forbidden(value: str, what: str) -> str:
    if any(ch in value for ch in _FORBIDDEN_CHARS):
        raise ValueError(f"{what} must not contain spaces or line breaks")
    return value


class SourceKind(str, Enum):
    STDIN = "stdin"
    NICK = "nick"
    PATH = "path"


class InputSourceSpec(BaseModel):
    """Where relayed lines come from.

    ``-`` selects standard input, ``nick`` a pipe in the temp directory
    named after the nick, anything else an explicit pipe path.
    """

    model_config = ConfigDict(frozen=True)

    kind: SourceKind = SourceKind.STDIN
    path: str | None = None

    @classmethod
    def parse(cls, raw: str) -> InputSourceSpec:
        raw = raw.strip()
        if raw in ("", STDIN_SOURCE):
            return cls(kind=SourceKind.STDIN)
        if raw == NICK_SOURCE:
            return cls(kind=SourceKind.NICK)
        return cls(kind=SourceKind.PATH, path=raw)

    @model_validator(mode="after")
    def validate_path(self) -> InputSourceSpec:
        if self.kind is SourceKind.PATH and not self.path:
            raise ValueError("an explicit input path is required")
        return self

    @property
    def is_stdin(self) -> bool:
        return self.kind is SourceKind.STDIN

    def resolve(self, nick: str) -> str | None:
        """Return the concrete pipe path, or None for standard input."""
        if self.kind is SourceKind.STDIN:
            return None
        if self.kind is SourceKind.NICK:
            return os.path.join(tempfile.gettempdir(), nick)
        return self.path

    def __str__(self) -> str:
        if self.kind is SourceKind.STDIN:
            return STDIN_SOURCE
        if self.kind is SourceKind.NICK:
            return NICK_SOURCE
        return str(self.path)


class RelayConfig(BaseModel):
    """Immutable relay configuration, built once at startup.

    Attributes:
        host: IRC server hostname.
        port: IRC server port.
        tls: Whether to wrap the connection in TLS.
        tls_hostname: Hostname expected in the server certificate; defaults to host.
        tls_verify: Whether the server certificate is verified.
        nick: Base nick; collision retries derive new nicks from it.
        always_suffix: Append a random number to the nick on every registration.
        username: USER name.
        realname: USER real name.
        idnick: Nick used to identify to services.
        idpass: Password used to identify to services.
        channel: Channel to join and relay to.
        channel_key: Channel key, may be empty.
        quit_message: Message sent with QUIT on teardown.
        source: Input source specification.
        flush: Discard data already waiting on a pipe before relaying.
        reconnect_wait: Seconds to wait between reconnection attempts.
        send_delay: Seconds to wait after every transmitted PRIVMSG.
        idle_timeout: Seconds without server traffic before reconnecting (0 disables).
        verbose: Show progress output.
        debug: Show debug output.
        rxproto: Trace received protocol lines.
        txproto: Trace transmitted protocol lines.
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    tls: bool = DEFAULT_TLS
    tls_hostname: str | None = None
    tls_verify: bool = True
    nick: str = Field(min_length=1)
    always_suffix: bool = DEFAULT_NUMS
    username: str = Field(default=DEFAULT_USERNAME, min_length=1)
    realname: str = DEFAULT_REALNAME
    idnick: str | None = None
    idpass: str | None = None
    channel: str = DEFAULT_CHANNEL
    channel_key: str = DEFAULT_CHANNEL_KEY
    quit_message: str = DEFAULT_QUIT_MESSAGE
    source: InputSourceSpec = Field(default_factory=InputSourceSpec)
    flush: bool = DEFAULT_FLUSH
    reconnect_wait: float = Field(default=DEFAULT_RECONNECT_WAIT_SECONDS, ge=0)
    send_delay: float = Field(default=DEFAULT_SEND_DELAY_SECONDS, ge=0)
    idle_timeout: float = Field(default=DEFAULT_IDLE_TIMEOUT_SECONDS, ge=0)
    verbose: bool = False
    debug: bool = False
    rxproto: bool = False
    txproto: bool = False

    @field_validator("nick", "username")
    @classmethod
    def validate_token(cls, v: str, info: ValidationInfo) -> str:
        return _reject_forbidden(v.strip(), info.field_name)

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2 or v[0] not in _CHANNEL_PREFIXES:
            raise ValueError(f"channel must start with one of {_CHANNEL_PREFIXES!r}")
        if "," in v:
            raise ValueError("only a single channel can be relayed to")
        overhead = len(f"PRIVMSG {v} :".encode(LINE_ENCODING)) + RELAY_PREFIX_RESERVE_BYTES
        if overhead >= MAX_LINE_BYTES:
            raise ValueError("channel name leaves no room for a message payload")
        return _reject_forbidden(v, "channel")

    @field_validator("channel_key", "realname", "quit_message", "idpass")
    @classmethod
    def validate_single_line(cls, v: str | None) -> str | None:
        if v is not None and ("\r" in v or "\n" in v):
            raise ValueError("value must fit on a single protocol line")
        return v

    @model_validator(mode="before")
    @classmethod
    def default_idnick(cls, data: object) -> object:
        # A password without a services nick identifies as the configured nick
        if isinstance(data, dict) and data.get("idpass") and not data.get("idnick"):
            data = {**data, "idnick": data.get("nick")}
        return data

    @model_validator(mode="after")
    def validate_auth(self) -> RelayConfig:
        if self.idnick and not self.idpass:
            raise ValueError("a services password is required when idnick is set")
        return self

    @property
    def has_services_auth(self) -> bool:
        return bool(self.idnick and self.idpass)

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def certificate_hostname(self) -> str:
        return self.tls_hostname or self.host

    @property
    def secrets(self) -> list[str]:
        return [self.idpass] if self.idpass else []

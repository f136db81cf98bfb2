"""IRC message parsing utilities."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class IRCMessage:
    raw: str
    prefix: str | None
    command: str | None
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def trailing(self) -> str:
        return self.params[-1] if self.params else ""


def parse_irc_message(raw_line: str) -> IRCMessage:
    tags: dict[str, str] = {}
    prefix: str | None = None
    params: list[str] = []
    command: str | None = None

    original = raw_line
    raw_line = raw_line.rstrip("\r\n")

    if raw_line.startswith("@"):
        if " " not in raw_line:
            return IRCMessage(raw=original, prefix=None, command=None, tags=_parse_tags(raw_line[1:]))
        tags_part, raw_line = raw_line.split(" ", 1)
        tags = _parse_tags(tags_part[1:])

    if raw_line.startswith(":"):
        # Malformed lines may omit the space after the prefix
        remainder = raw_line[1:]
        if " " in remainder:
            prefix, raw_line = remainder.split(" ", 1)
        else:
            prefix = remainder
            raw_line = ""

    trailing: str | None = None
    if raw_line.startswith(":"):
        raw_line, trailing = "", raw_line[1:]
    elif " :" in raw_line:
        raw_line, trailing = raw_line.split(" :", 1)

    parts = raw_line.split()
    if parts:
        command = parts[0].upper()
        params = parts[1:]
    if trailing is not None:
        params.append(trailing)

    return IRCMessage(
        raw=original, prefix=prefix, command=command, params=params, tags=tags
    )


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = v
    return tags

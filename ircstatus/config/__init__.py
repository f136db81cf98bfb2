"""Relay configuration: immutable model and command line loader."""

from .loader import build_parser, default_nick, load_config, parse_duration  # noqa: F401
from .model import InputSourceSpec, RelayConfig, SourceKind  # noqa: F401

__all__ = [
    "InputSourceSpec",
    "RelayConfig",
    "SourceKind",
    "build_parser",
    "default_nick",
    "load_config",
    "parse_duration",
]

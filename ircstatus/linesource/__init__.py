"""Input side of the relay: standard input or a named pipe."""

from .pipe import ensure_pipe, flush_pipe, open_pipe, remove_pipe  # noqa: F401
from .source import LineSource, open_line_source  # noqa: F401

__all__ = [
    "LineSource",
    "ensure_pipe",
    "flush_pipe",
    "open_line_source",
    "open_pipe",
    "remove_pipe",
]

"""ircstatus: relay lines from standard input or a named pipe to an IRC channel."""

__version__ = "1.0.0"

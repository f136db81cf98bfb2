#!/usr/bin/env python3
"""
Main entry point for the ircstatus relay
"""

import asyncio
import logging
import sys
from collections.abc import Sequence

from .config import load_config
from .constants import ExitCode
from .errors.handling import log_error
from .errors.internal import ConfigurationError, PipeSetupError
from .linesource import open_line_source
from .logging_config import LoggerConfigurator
from .relay import SignalHandler, Supervisor


async def main(argv: Sequence[str] | None = None) -> int:
    """Load configuration, open the input source and run the relay.

    Returns:
        The process exit status.
    """
    LoggerConfigurator().configure()
    try:
        config = load_config(argv)
    except ConfigurationError as e:
        log_error("Configuration error", e, level=logging.CRITICAL)
        return e.exit_code

    LoggerConfigurator(
        verbose=config.verbose,
        debug=config.debug,
        trace_wire=config.rxproto or config.txproto,
        secrets=config.secrets,
    ).configure()
    logging.debug(f"Will connect to {config.address} as {config.nick}")

    try:
        source = await open_line_source(
            config.source,
            config.nick,
            flush=config.flush,
            flush_timeout=config.reconnect_wait,
        )
    except PipeSetupError as e:
        log_error("Unable to set up input", e, level=logging.CRITICAL)
        return e.exit_code

    supervisor = Supervisor(config, source)
    signals = SignalHandler(supervisor.request_shutdown)
    signals.setup_signal_handlers()
    try:
        return await supervisor.run()
    finally:
        source.close()
        logging.info("✅ Relay shutdown complete")


def run(argv: Sequence[str] | None = None) -> None:
    """Synchronous entry point for the application.

    Raises:
        SystemExit: Always, carrying the relay's exit status.
    """
    try:
        code = asyncio.run(main(argv))
    except KeyboardInterrupt:
        sys.exit(ExitCode.OK)
    except asyncio.CancelledError:
        sys.exit(ExitCode.OK)
    except Exception as e:
        log_error("Top-level error", e, level=logging.CRITICAL)
        sys.exit(ExitCode.UNEXPECTED)
    sys.exit(int(code))


if __name__ == "__main__":
    run()

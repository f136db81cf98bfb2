"""Named pipe creation, flushing and opening."""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import stat
import time
from typing import BinaryIO

from ..constants import (
    FLUSH_POLL_INTERVAL_SECONDS,
    FLUSH_SENTINEL,
    PIPE_MODE,
    READ_CHUNK_BYTES,
    ExitCode,
)
from ..errors.internal import PipeSetupError


def ensure_pipe(path: str, mode: int = PIPE_MODE) -> bool:
    """Make sure a FIFO exists at ``path``.

    Returns:
        True if the FIFO was created by this call.

    Raises:
        PipeSetupError: If the FIFO cannot be created or something that is
            not a FIFO is already there.
    """
    try:
        st = os.stat(path)
    except FileNotFoundError:
        logging.debug(f"Pipe {path} does not already exist, creating pipe")
        try:
            os.mkfifo(path, mode)
            # mkfifo honours the umask; apply the mode explicitly
            os.chmod(path, mode)
        except OSError as e:
            raise PipeSetupError(
                f"Unable to make pipe {path}: {e}", exit_code=ExitCode.PIPE_CREATE
            ) from e
        return True
    except OSError as e:
        raise PipeSetupError(
            f"Unable to get stat information for {path}: {e}",
            exit_code=ExitCode.PIPE_CREATE,
        ) from e
    if not stat.S_ISFIFO(st.st_mode):
        raise PipeSetupError(
            f"{path} exists but is not a pipe", exit_code=ExitCode.PIPE_CREATE
        )
    logging.debug(f"{path} exists and is a pipe")
    return False


def _write_sentinel(path: str) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_NONBLOCK)
    try:
        os.write(fd, FLUSH_SENTINEL)
    except BlockingIOError:
        logging.debug(f"Pipe {path} is full, no sentinel needed")
    finally:
        os.close(fd)


async def flush_pipe(path: str, timeout: float) -> int:
    """Discard whatever is already buffered on the FIFO at ``path``.

    The read side is opened non-blocking and a sentinel is written through a
    short-lived write end, so there is always something to read. Reading
    stops at EOF (no writer left) or once ``timeout`` seconds have passed
    while an external writer keeps the pipe open.

    Returns:
        Number of bytes discarded, sentinel included.

    Raises:
        PipeSetupError: If the pipe cannot be opened for flushing.
    """
    logging.debug(f"Opening {path} for flushing")
    try:
        fd = os.open(path, os.O_RDONLY | os.O_NONBLOCK)
    except OSError as e:
        raise PipeSetupError(
            f"Unable to open {path} for flushing: {e}", exit_code=ExitCode.PIPE_FLUSH
        ) from e

    discarded = 0
    try:
        try:
            _write_sentinel(path)
        except OSError as e:
            raise PipeSetupError(
                f"Unable to put flushable data into {path}: {e}",
                exit_code=ExitCode.PIPE_FLUSH,
            ) from e

        deadline = time.monotonic() + timeout
        while True:
            try:
                chunk = os.read(fd, READ_CHUNK_BYTES)
            except BlockingIOError:
                # Empty, but an external writer still holds the pipe open
                if time.monotonic() >= deadline:
                    logging.info(f"Timed out after {timeout}s while flushing {path}")
                    break
                await asyncio.sleep(FLUSH_POLL_INTERVAL_SECONDS)
                continue
            except OSError as e:
                if e.errno == errno.EINTR:
                    continue
                logging.debug(f"Error flushing pipe {path}: {e}")
                break
            if not chunk:
                logging.debug(f"Finished flushing {path}")
                break
            discarded += len(chunk)
            logging.debug(f"Got {len(chunk)} bytes flushing pipe")
    finally:
        try:
            os.close(fd)
        except OSError as e:
            logging.debug(f"Error closing {path} after flushing: {e}")
    return discarded


def open_pipe(path: str) -> BinaryIO:
    """Open the FIFO read-write so readers never see EOF when writers detach.

    Raises:
        PipeSetupError: If the pipe cannot be opened.
    """
    try:
        fd = os.open(path, os.O_RDWR)
    except OSError as e:
        raise PipeSetupError(
            f"Unable to open pipe named {path}: {e}", exit_code=ExitCode.PIPE_OPEN
        ) from e
    logging.debug(f"Opened pipe r/w: {path}")
    return os.fdopen(fd, "rb")


def remove_pipe(path: str) -> None:
    try:
        os.remove(path)
        logging.debug(f"Removed pipe {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Unable to remove pipe {path}: {e}")

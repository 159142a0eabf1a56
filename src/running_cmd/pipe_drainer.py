"""Pipe drainer module.

This module contains the PipeDrainer class that empties one of a child's
output pipes into a writer sink in a dedicated thread, so the child never
blocks on a full pipe and callers only ever look at the sink.
"""

from __future__ import annotations

import logging
import os
import threading
import warnings
from collections.abc import Callable
from typing import IO

from running_cmd.errors import LineBufferOverflowError
from running_cmd.output_stream import OutputSink

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 32768


class PipeDrainer:
    """Copy a pipe into a sink until EOF.

    Line overflows reported by the sink are logged and draining goes on. Any
    other read error stops draining and is kept in ``error`` for the runner.
    """

    def __init__(
        self,
        pipe: IO[bytes],
        sink: OutputSink,
        name: str,
        on_end: Callable[[], None] | None = None,
    ) -> None:
        self._pipe = pipe
        self._sink = sink
        self._name = name
        self._on_end = on_end
        self._thread: threading.Thread | None = None
        self.error: OSError | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name=self._name, daemon=True)
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _copy(self) -> None:
        fd = self._pipe.fileno()
        while True:
            chunk = os.read(fd, READ_CHUNK_SIZE)
            if not chunk:  # EOF reached
                logger.debug("%s: end of stream", self._name)
                break
            try:
                self._sink.write(chunk)
            except LineBufferOverflowError as e:
                logger.warning("%s: %s", self._name, e)

    def _cleanup_pipe(self) -> None:
        """Close the pipe safely."""
        if not self._pipe.closed:
            try:
                self._pipe.close()
            except OSError as err:
                close_error_msg = f"{self._name}: closing pipe failed: {err}"
                warnings.warn(close_error_msg, stacklevel=2)

    def run(self) -> None:
        try:
            self._copy()
        except OSError as e:
            logger.warning("%s: reading pipe failed: %s", self._name, e)
            self.error = e
        finally:
            self._cleanup_pipe()
            if self._on_end is not None:
                self._on_end()

"""Bounded line channel module.

This module contains the LineChannel class used to hand text lines between
threads: process output to callers when streaming, and caller input to the
child's stdin.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import TYPE_CHECKING

from running_cmd.errors import ChannelClosedError
from running_cmd.options import DEFAULT_STREAM_CHAN_SIZE

if TYPE_CHECKING:
    from running_cmd.line_iterator import LineIterator


class EndOfStream:
    """Sentinel returned by a closed and drained channel."""

    def __repr__(self) -> str:
        return "EndOfStream()"


class LineChannel:
    """Bounded FIFO of lines with an explicit close.

    put() blocks while the channel holds ``capacity`` lines. A capacity of 0
    makes put() a synchronous hand-off: it returns once a receiver took the
    line. Lines put before close() are still delivered; after that, get()
    returns EndOfStream. Only the sending side may close the channel, and
    only once.
    """

    def __init__(self, capacity: int = DEFAULT_STREAM_CHAN_SIZE) -> None:
        if capacity < 0:
            msg = f"capacity must be >= 0, got {capacity}"
            raise ValueError(msg)
        self.capacity = capacity
        self._items: deque[str] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._sent = 0
        self._received = 0

    def put(self, line: str) -> None:
        """Send a line, blocking while the channel is full.

        Raises:
            ChannelClosedError: If the channel was closed.
        """
        limit = max(self.capacity, 1)
        with self._cond:
            self._cond.wait_for(lambda: self._closed or len(self._items) < limit)
            if self._closed:
                msg = "put on closed channel"
                raise ChannelClosedError(msg)
            self._items.append(line)
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            if self.capacity == 0:
                self._cond.wait_for(lambda: self._received >= ticket)

    def get(self, timeout: float | None = None) -> str | EndOfStream:
        """Receive the next line.

        Args:
            timeout: Seconds to wait. None waits forever, 0 does not wait.

        Returns:
            str: The next line.
            EndOfStream: The channel is closed and drained.

        Raises:
            TimeoutError: If nothing arrived before the timeout.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._items or self._closed, timeout):
                timeout_msg = f"Timeout after {timeout} seconds"
                raise TimeoutError(timeout_msg)
            if self._items:
                line = self._items.popleft()
                self._received += 1
                self._cond.notify_all()
                return line
            return EndOfStream()

    def close(self) -> None:
        """Close the channel. Receivers drain what is left, then see EndOfStream."""
        with self._cond:
            if self._closed:
                msg = "close of closed channel"
                raise ChannelClosedError(msg)
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def lines(self, timeout: float | None = None) -> "LineIterator":
        """Return a context-managed iterator over received lines.

        Args:
            timeout: Per-line timeout in seconds. None waits indefinitely.
        """
        # Import here to avoid circular imports during module load
        from running_cmd.line_iterator import LineIterator  # noqa: PLC0415

        return LineIterator(self, timeout)

    def __iter__(self) -> "LineIterator":
        return self.lines(timeout=None)

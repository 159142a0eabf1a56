"""Line-splitting stream writer.

OutputStream turns raw chunks from a child's pipe into complete lines and
sends them to a LineChannel as they arrive.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from running_cmd.errors import LineBufferOverflowError
from running_cmd.options import DEFAULT_LINE_BUFFER_SIZE
from running_cmd.output_buffer import decode_line

if TYPE_CHECKING:
    from running_cmd.line_channel import LineChannel


class OutputSink(Protocol):
    """Anything the pipe drainer can write raw output to."""

    def write(self, data: bytes) -> int: ...


class OutputStream:
    """Write sink that sends each complete output line to a channel.

    Lines are sent with a blocking put, so a slow reader throttles the
    child instead of losing lines. A line longer than the line buffer is
    discarded and reported with LineBufferOverflowError. Meant for a single
    writer thread.
    """

    def __init__(self, channel: "LineChannel", max_line_size: int = DEFAULT_LINE_BUFFER_SIZE) -> None:
        self._channel = channel
        self._max_line_size = max_line_size
        self._pending = bytearray()
        self._written = False
        self._last_error: LineBufferOverflowError | None = None

    @property
    def channel(self) -> "LineChannel":
        return self._channel

    @property
    def last_error(self) -> LineBufferOverflowError | None:
        """The most recent overflow, if any."""
        return self._last_error

    def set_max_line_size(self, size: int) -> None:
        """Set the line buffer size. Only valid before the first write."""
        if self._written:
            msg = "line buffer size cannot change after output was written"
            raise RuntimeError(msg)
        if size <= 0:
            msg = f"line buffer size must be positive, got {size}"
            raise ValueError(msg)
        self._max_line_size = size

    def write(self, data: bytes) -> int:
        """Consume a chunk, sending every line it completes.

        Raises:
            LineBufferOverflowError: If the unterminated tail outgrew the line
                buffer. The tail is dropped; everything before it was sent.
        """
        self._written = True
        start = 0
        while True:
            newline = data.find(b"\n", start)
            if newline < 0:
                break
            self._pending.extend(data[start:newline])
            self._emit()
            start = newline + 1

        if start < len(data):
            remain = data[start:]
            if len(self._pending) + len(remain) > self._max_line_size:
                line = decode_line(bytes(self._pending) + remain)
                overflow = len(self._pending) + len(remain) - self._max_line_size
                self._pending.clear()
                self._last_error = LineBufferOverflowError(line, self._max_line_size, overflow)
                raise self._last_error
            self._pending.extend(remain)
        return len(data)

    def flush(self) -> None:
        """Send an unterminated tail, if there is one, as the last line."""
        if self._pending:
            self._emit()

    def close(self) -> None:
        """Flush and close the channel; receivers then see EndOfStream."""
        self.flush()
        self._channel.close()

    def _emit(self) -> None:
        line = decode_line(bytes(self._pending))
        self._pending.clear()
        self._channel.put(line)


class TeeWriter:
    """Duplicate each write to all writers, like tee(1).

    Every writer gets every chunk; the first LineBufferOverflowError is
    raised after all of them were written to.
    """

    def __init__(self, *writers: OutputSink) -> None:
        self.writers = writers

    def write(self, data: bytes) -> int:
        first_error: LineBufferOverflowError | None = None
        for writer in self.writers:
            try:
                writer.write(data)
            except LineBufferOverflowError as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return len(data)

"""Line-oriented output buffer.

Reading a child's pipe in one thread while another waits on the child is
racy, so output is handed to a writer sink instead. OutputBuffer is such a
sink that is also safe to read, as lines, while it is being written.
"""

from __future__ import annotations

import threading


def decode_line(raw: bytes) -> str:
    """Decode one line of output without its trailing carriage return."""
    return raw.removesuffix(b"\r").decode("utf-8", errors="replace")


class OutputBuffer:
    """Unbounded output buffer, read line by line.

    Safe for multiple threads to read while the process is running and after
    it has finished. Good for small outputs that are not read frequently;
    use streaming otherwise.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._buf = bytearray()
        self._lines: list[str] = []

    def write(self, data: bytes) -> int:
        with self._lock:
            self._buf.extend(data)
        return len(data)

    def lines(self) -> list[str]:
        """Return the complete lines written so far.

        Subsequent calls return more lines if more were written. A trailing
        line without a newline is held back until it is terminated.
        """
        with self._lock:
            end = self._buf.rfind(b"\n")
            if end >= 0:
                complete = bytes(self._buf[: end + 1])
                del self._buf[: end + 1]
                self._lines.extend(decode_line(raw) for raw in complete.split(b"\n")[:-1])
            return list(self._lines)

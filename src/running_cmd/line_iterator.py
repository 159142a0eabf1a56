"""Line iterator module.

This module contains the LineIterator class for iterating over the lines of a
LineChannel in a context-managed way.
"""

from collections.abc import Iterator
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from running_cmd.line_channel import LineChannel


class LineIterator(AbstractContextManager[Iterator[str]], Iterator[str]):
    """Context-managed iterator over a LineChannel.

    Yields only strings. Stops on EndOfStream; a per-line timeout that
    elapses raises TimeoutError.
    """

    def __init__(self, channel: "LineChannel", timeout: float | None) -> None:
        self._channel = channel
        self._timeout = timeout

    # Context manager protocol
    def __enter__(self) -> "LineIterator":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any | None,
    ) -> bool:
        # Do not suppress exceptions
        return False

    # Iterator protocol
    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        next_item = self._channel.get(timeout=self._timeout)

        if not isinstance(next_item, str):
            raise StopIteration

        return next_item

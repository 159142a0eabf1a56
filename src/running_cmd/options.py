"""Handle options and tunables."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

# Default maximum line length for OutputStream. If LineBufferOverflowError
# shows up, raise it with OutputStream.set_max_line_size.
DEFAULT_LINE_BUFFER_SIZE = 16384

# Default capacity of the stdout/stderr LineChannels when streaming. Too small
# makes OutputStream.write block more often.
DEFAULT_STREAM_CHAN_SIZE = 1000


@dataclass
class Options:
    """Customizations for new_handle_with_options.

    Attributes:
        buffered: Write stdout and stderr to Status.stdout and Status.stderr.
            Call Handle.status to read output at intervals.
        streaming: Create Handle.stdout and Handle.stderr channels and send
            output lines to them in real time. The caller must read both
            channels, or the child blocks once they fill up.
        stdin_enabled: Create Handle.stdin; each line put on it is written to
            the child's stdin followed by a newline.
        timeout: Seconds after which the process group is killed. None or 0
            disables the deadline.
        env: "KEY=VALUE" entries. Empty inherits the parent's environment.
    """

    buffered: bool = True
    streaming: bool = False
    stdin_enabled: bool = False
    timeout: float | None = None
    env: list[str] = field(default_factory=list)


# An option builder mutates an Options record
OptionFn = Callable[[Options], None]


def create_options(option_fns: tuple[OptionFn, ...] | list[OptionFn]) -> Options:
    """Build Options from defaults (buffered output) and the given builders."""
    options = Options()
    for fn in option_fns:
        fn(options)
    return options


def env(entry: str) -> OptionFn:
    """Add a "KEY=VALUE" entry to the environment."""

    def _apply(options: Options) -> None:
        options.env.append(entry)

    return _apply


def timeout(seconds: float) -> OptionFn:
    def _apply(options: Options) -> None:
        options.timeout = seconds

    return _apply


def buffered(flag: bool) -> OptionFn:
    def _apply(options: Options) -> None:
        options.buffered = flag

    return _apply


def streaming() -> OptionFn:
    def _apply(options: Options) -> None:
        options.streaming = True

    return _apply


def disable_streaming() -> OptionFn:
    def _apply(options: Options) -> None:
        options.streaming = False

    return _apply


def stdin() -> OptionFn:
    """Enable the Handle.stdin channel."""

    def _apply(options: Options) -> None:
        options.stdin_enabled = True

    return _apply

"""Exceptions raised or recorded by running_cmd."""

from __future__ import annotations

import os

from running_cmd.process_utils import signal_name


class SpawnError(OSError):
    """Raised when a program cannot be located or launched.

    Recorded in Status.error when the child never ran.
    """

    def __init__(self, name: str, reason: str, cause: OSError | None = None) -> None:
        super().__init__(f'exec: "{name}": {reason}')
        self.name = name
        self.reason = reason
        self.cause = cause

    @classmethod
    def from_os_error(cls, name: str, err: OSError, cwd: str | None = None) -> SpawnError:
        if isinstance(err, FileNotFoundError):
            if cwd and err.filename == cwd:
                reason = f"chdir {cwd}: no such file or directory"
            elif os.sep in name:
                # Paths are not looked up in $PATH
                reason = "no such file or directory"
            else:
                reason = "executable file not found in $PATH"
        elif isinstance(err, PermissionError):
            reason = "permission denied"
        else:
            reason = err.strerror or str(err)
        return cls(name, reason, err)


class SignalError(Exception):
    """The process was terminated by a signal."""

    def __init__(self, signum: int) -> None:
        super().__init__(f"signal: {signal_name(signum)}")
        self.signum = signum


class LineBufferOverflowError(Exception):
    """A line grew past the stream writer's buffer before a newline arrived.

    Increase the limit with OutputStream.set_max_line_size if this happens.
    """

    def __init__(self, line: str, buffer_size: int, overflow: int) -> None:
        super().__init__(
            f"line does not contain newline and is {overflow} bytes too long to buffer "
            f"(buffer size: {buffer_size})"
        )
        self.line = line
        self.buffer_size = buffer_size
        self.overflow = overflow


class HandleStartedError(RuntimeError):
    """Raised when a handle is reconfigured after start()."""


class ChannelClosedError(RuntimeError):
    """Raised on put() or close() of an already closed LineChannel."""

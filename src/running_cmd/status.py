from __future__ import annotations

import dataclasses
from dataclasses import dataclass


@dataclass
class Status:
    """Running status and consolidated result of a Handle.

    Obtain it at any time with Handle.status. start_ts > 0 means the command
    started; stop_ts > 0 means it stopped. Once finished, success (for a
    command that exits zero on success) looks like::

        exit     = 0
        error    = None
        complete = True

    error is set when the command failed to start (SpawnError; it never ran)
    or was terminated by a signal (SignalError). Check error first, then exit
    and complete.
    """

    cmd: str
    pid: int = 0
    complete: bool = False  # False if stopped or signaled
    exit: int = -1
    error: BaseException | None = None
    start_ts: int = 0  # wall clock, nanoseconds
    stop_ts: int = 0
    runtime: float = 0.0  # seconds
    stdout: list[str] | None = None  # None unless buffered and started
    stderr: list[str] | None = None

    def copy(self) -> Status:
        """Return a snapshot whose line lists are not shared with self."""
        return dataclasses.replace(
            self,
            stdout=list(self.stdout) if self.stdout is not None else None,
            stderr=list(self.stderr) if self.stderr is not None else None,
        )

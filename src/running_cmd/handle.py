"""Run external commands with concurrent access to their output and status.

## Basic Usage

### Run and wait
```python
handle = Handle("env")
status = handle.start().result()  # blocks until the command ends
for line in status.stdout:
    print(line)
```

### Run in the background
```python
future = handle.start()  # non-blocking
# Do other work while the command is running...
status = future.result()
```

start() returns a Future that receives the final Status once, when the
command ends for any reason. Use done() when several threads need to wait
for the command, then call status() for the final Status.

### Live output
```python
handle = new_handle_with_options(Options(buffered=False, streaming=True), "make")
handle.start()
for line in handle.stdout:
    print(line)
```

### Stop and timeout
```python
handle = new_handle_with_options(Options(timeout=30), "ping", "example.com")
handle.start()
handle.stop()  # SIGTERM to the whole process group
```

## Key Features

- **Buffered output**: stdout and stderr lines readable any time via status()
- **Streaming output**: lines delivered to channels as they are written
- **Process group termination**: stop() and timeouts reach grandchildren too
- **Single completion record**: exactly one Status, any number of observers
- **Thread-safe**: every public method can be called from any thread
"""

from __future__ import annotations

import logging
import signal
import threading
import time
from concurrent.futures import Future
from pathlib import Path

from running_cmd.errors import HandleStartedError
from running_cmd.line_channel import LineChannel
from running_cmd.options import DEFAULT_STREAM_CHAN_SIZE, OptionFn, Options, create_options
from running_cmd.output_buffer import OutputBuffer
from running_cmd.process_utils import signal_process_group
from running_cmd.runner import ProcessRunner
from running_cmd.status import Status

# Create module-level logger
logger = logging.getLogger(__name__)


class Handle:
    """
    One invocation of an external command.

    A Handle cannot be reused after start(). name, args and the channels are
    read-only; env and cwd may be changed before start(). Create one directly
    or with new_handle / new_handle_with_options.

    Key features:
    - Idempotent start() returning the same Future every time
    - stop() signalling the child's process group with SIGTERM
    - status() snapshots while running, frozen once finished
    - done() event for any number of waiting threads
    """

    def __init__(self, name: str, *args: str, cwd: str | Path | None = None) -> None:
        """
        Initialize the Handle. Output is buffered and not streamed.

        Args:
            name: Program to run, looked up on PATH unless it contains a slash.
            args: Program arguments.
            cwd: Working directory. None inherits the current one.
        """
        self.name = name
        self.args = list(args)
        self.env: list[str] = []
        self.cwd = cwd
        self.timeout: float | None = None

        self.stdin: LineChannel | None = None  # if stdin is enabled
        self.stdout: LineChannel | None = None  # if streaming
        self.stderr: LineChannel | None = None  # if streaming

        self._lock = threading.Lock()
        self._future: Future[Status] | None = None  # None until start()
        self._done_event = threading.Event()

        self._started = False  # child spawned
        self._stopped = False  # stop() accepted
        self._done = False  # runner finished
        self._final = False  # buffered output frozen in status
        self._buffered = True

        self._start_time: float | None = None  # monotonic, once started
        self._stdout_buffer: OutputBuffer | None = None
        self._stderr_buffer: OutputBuffer | None = None
        self._status = Status(cmd=name)

    def __repr__(self) -> str:
        return f"Handle(name={self.name!r}, args={self.args!r}, pid={self._status.pid})"

    def apply_options(self, options: Options) -> None:
        """Apply options. Only valid before start().

        Raises:
            HandleStartedError: If the handle was already started.
        """
        with self._lock:
            if self._future is not None:
                error_message = f"cannot change options of {self.name!r} after start()"
                raise HandleStartedError(error_message)
            self._buffered = options.buffered
            if options.streaming:
                self.stdout = LineChannel(DEFAULT_STREAM_CHAN_SIZE)
                self.stderr = LineChannel(DEFAULT_STREAM_CHAN_SIZE)
            else:
                self.stdout = None
                self.stderr = None
            self.stdin = LineChannel(0) if options.stdin_enabled else None
            self.timeout = options.timeout
            self.env = list(options.env)

    def options(self, *option_fns: OptionFn) -> None:
        """Apply option builders, starting from the default (buffered) options."""
        self.apply_options(create_options(option_fns))

    @property
    def buffered(self) -> bool:
        return self._buffered

    @property
    def started(self) -> bool:
        with self._lock:
            return self._started

    def start(self) -> Future[Status]:
        """
        Start the command and return a Future for its final Status.

        ``handle.start().result()`` runs synchronously; keep the Future to run
        in the background. Exactly one Status is set on the Future when the
        command ends. start() is idempotent: it always returns the same Future.
        """
        with self._lock:
            if self._future is not None:
                return self._future

            self._future = Future()
            # Callers cannot cancel the completion record
            self._future.set_running_or_notify_cancel()
            ProcessRunner(self).start()
            return self._future

    def stop(self) -> None:
        """
        Stop the command by sending its process group SIGTERM.

        Idempotent, and a no-op if the command was never started or already
        finished.
        """
        with self._lock:
            if self._future is None or not self._started or self._done or self._stopped:
                return

            # Marks the run as not complete
            self._stopped = True

            # Signal the group, not just the process: children holding the
            # output pipes would otherwise keep the runner waiting.
            try:
                signal_process_group(self._status.pid, signal.SIGTERM)
            except ProcessLookupError:
                logger.debug("Process %s exited before it could be stopped", self._status.pid)

    def status(self) -> Status:
        """
        Return the Status of the command at any time.

        With buffered output, stdout and stderr hold the full output as of the
        call. A command counting to 3 with three calls between counts yields
        ["1"], ["1", "2"], ["1", "2", "3"]; tail it yourself or use streaming.
        runtime grows while running and is final once the command finishes.
        """
        with self._lock:
            if self._future is None or not self._started:
                return self._status.copy()

            if self._done:
                if not self._final:
                    self._freeze_output()
            else:
                assert self._start_time is not None
                self._status.runtime = time.monotonic() - self._start_time
                if self._buffered and self._stdout_buffer is not None and self._stderr_buffer is not None:
                    self._status.stdout = self._stdout_buffer.lines()
                    self._status.stderr = self._stderr_buffer.lines()

            return self._status.copy()

    def done(self) -> threading.Event:
        """Return an event that is set once the command stopped running.

        Wait on it from as many threads as needed, then call status().
        """
        return self._done_event

    def wait(self, timeout: float | None = None) -> Status:
        """
        Block until the command ends and return its final Status.

        Raises:
            ValueError: If the handle hasn't been started.
            TimeoutError: If the command is still running after timeout seconds.
        """
        if self._future is None:
            error_message = "Process is not running."
            raise ValueError(error_message)
        return self._future.result(timeout)

    # Runner callbacks, all taking the lock

    def _set_buffers(self, stdout: OutputBuffer, stderr: OutputBuffer) -> None:
        with self._lock:
            self._stdout_buffer = stdout
            self._stderr_buffer = stderr

    def _mark_never_started(self, error: BaseException, start_ts: int) -> None:
        with self._lock:
            self._status.error = error
            self._status.start_ts = start_ts
            self._status.stop_ts = time.time_ns()
            self._stdout_buffer = None
            self._stderr_buffer = None
            self._done = True

    def _mark_started(self, pid: int, start_ts: int) -> None:
        with self._lock:
            self._start_time = time.monotonic()
            self._status.pid = pid
            self._status.start_ts = start_ts
            self._started = True

    def _mark_finished(self, exit_code: int, error: BaseException | None, clean_exit: bool) -> None:
        with self._lock:
            if clean_exit and not self._stopped:
                self._status.complete = True
            if self._start_time is not None:
                self._status.runtime = time.monotonic() - self._start_time
            self._status.stop_ts = time.time_ns()
            self._status.exit = exit_code
            self._status.error = error
            self._done = True
            self._freeze_output()

    def _freeze_output(self) -> None:
        """Move buffered output into the status for good. Caller holds the lock."""
        if self._buffered and self._stdout_buffer is not None and self._stderr_buffer is not None:
            self._status.stdout = self._stdout_buffer.lines()
            self._status.stderr = self._stderr_buffer.lines()
        # release buffers
        self._stdout_buffer = None
        self._stderr_buffer = None
        self._final = True

    def _publish(self) -> None:
        """Deliver the final Status, then signal done."""
        assert self._future is not None
        self._future.set_result(self.status())
        self._done_event.set()


def new_handle(name: str, *args: str) -> Handle:
    """Create a Handle with buffered output and no streaming."""
    return Handle(name, *args)


def new_handle_with_options(options: Options, name: str, *args: str) -> Handle:
    """Create a Handle configured by options. The command is not started."""
    handle = Handle(name, *args)
    handle.apply_options(options)
    return handle

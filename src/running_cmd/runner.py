"""Process runner module.

This module contains the ProcessRunner class that spawns a Handle's child in
a background thread, supervises it until it exits and finalises its status.
"""

from __future__ import annotations

import contextlib
import logging
import signal
import subprocess
import threading
import time
from typing import IO, TYPE_CHECKING, Any

from running_cmd.errors import SignalError, SpawnError
from running_cmd.output_buffer import OutputBuffer
from running_cmd.output_stream import OutputSink, OutputStream, TeeWriter
from running_cmd.pipe_drainer import PipeDrainer
from running_cmd.process_utils import describe_process_tree, signal_process_group

if TYPE_CHECKING:
    from running_cmd.handle import Handle
    from running_cmd.line_channel import LineChannel

logger = logging.getLogger(__name__)


def _environ(entries: list[str]) -> dict[str, str] | None:
    """Turn "KEY=VALUE" entries into a Popen env. Empty means inherit."""
    if not entries:
        return None
    env: dict[str, str] = {}
    for entry in entries:
        key, _, value = entry.partition("=")
        env[key] = value
    return env


def _pump_stdin(channel: "LineChannel", pipe: IO[bytes], name: str) -> None:
    """Write each line from channel to the child's stdin until the channel closes."""
    broken = False
    try:
        for line in channel:
            if broken:
                # Keep receiving so senders do not block on a dead child
                continue
            try:
                pipe.write(line.encode("utf-8") + b"\n")
                pipe.flush()
            except BrokenPipeError:
                logger.debug("%s: child closed its stdin", name)
                broken = True
    finally:
        with contextlib.suppress(BrokenPipeError):
            pipe.close()


class ProcessRunner:
    """Runs a Handle's process exactly once in a daemon thread."""

    def __init__(self, handle: "Handle") -> None:
        self._handle = handle
        self._thread: threading.Thread | None = None
        self._streams: list[OutputStream] = []
        self._drainers: list[PipeDrainer] = []

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name=f"RCRunner-{self._handle.name}", daemon=True)
        self._thread.start()

    @property
    def thread(self) -> threading.Thread | None:
        return self._thread

    def _run(self) -> None:
        handle = self._handle
        try:
            self._execute()
        except Exception as e:  # noqa: BLE001
            # Whatever happens, callers waiting on the status must be released
            logger.warning("Runner thread error for %s: %s", handle.name, e)
            if not self._drainers:
                self._close_streams()
            if handle.started:
                handle._mark_finished(-1, e, clean_exit=False)  # noqa: SLF001
            else:
                handle._mark_never_started(e, time.time_ns())  # noqa: SLF001
        finally:
            handle._publish()  # noqa: SLF001

    def _output_sink(
        self, channel: "LineChannel | None", buffer: OutputBuffer | None
    ) -> tuple[OutputSink | None, OutputStream | None]:
        """Pick the sink for one output stream: buffer, stream writer, both, or none.

        Returns the sink and the stream writer inside it, if any.
        """
        stream: OutputStream | None = None
        if channel is not None:
            stream = OutputStream(channel)
            self._streams.append(stream)
        if stream is not None and buffer is not None:
            return TeeWriter(stream, buffer), stream
        if buffer is not None:
            return buffer, None
        return stream, stream

    def _close_streams(self) -> None:
        for stream in self._streams:
            if not stream.channel.closed:
                stream.close()

    def _execute(self) -> None:
        handle = self._handle
        deadline = time.monotonic() + handle.timeout if handle.timeout and handle.timeout > 0 else None

        stdout_buffer = stderr_buffer = None
        if handle.buffered:
            stdout_buffer = OutputBuffer()
            stderr_buffer = OutputBuffer()
            handle._set_buffers(stdout_buffer, stderr_buffer)  # noqa: SLF001

        stdout_sink, stdout_stream = self._output_sink(handle.stdout, stdout_buffer)
        stderr_sink, stderr_stream = self._output_sink(handle.stderr, stderr_buffer)

        start_ts = time.time_ns()
        try:
            # A new session puts the child in its own process group, so
            # stop() and the timeout reach grandchildren holding our pipes.
            proc = subprocess.Popen(  # noqa: S603
                [handle.name, *handle.args],
                cwd=handle.cwd or None,
                env=_environ(handle.env),
                stdin=subprocess.PIPE if handle.stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE if stdout_sink is not None else subprocess.DEVNULL,
                stderr=subprocess.PIPE if stderr_sink is not None else subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as e:
            logger.debug("Failed to start %s: %s", handle.name, e)
            self._close_streams()
            handle._mark_never_started(SpawnError.from_os_error(handle.name, e, cwd=handle.cwd), start_ts)  # noqa: SLF001
            return

        handle._mark_started(proc.pid, start_ts)  # noqa: SLF001
        logger.debug("Started %s (pid %s)", handle.name, proc.pid)

        self._start_drainer(proc.stdout, stdout_sink, stdout_stream, f"RCStdout-{proc.pid}")
        self._start_drainer(proc.stderr, stderr_sink, stderr_stream, f"RCStderr-{proc.pid}")
        if handle.stdin is not None:
            assert proc.stdin is not None
            pump = threading.Thread(
                target=_pump_stdin,
                args=(handle.stdin, proc.stdin, f"RCStdin-{proc.pid}"),
                name=f"RCStdin-{proc.pid}",
                daemon=True,
            )
            pump.start()

        returncode = self._wait(proc, deadline)
        for drainer in self._drainers:
            drainer.join()

        self._classify(returncode)

    def _start_drainer(
        self, pipe: IO[bytes] | None, sink: OutputSink | None, stream: OutputStream | None, name: str
    ) -> None:
        if pipe is None or sink is None:
            return
        # The stream writer owns its channel and closes it at end of stream
        drainer = PipeDrainer(pipe, sink, name=name, on_end=stream.close if stream is not None else None)
        self._drainers.append(drainer)
        drainer.start()

    def _wait(self, proc: subprocess.Popen[Any], deadline: float | None) -> int:
        """Wait for the child, killing its process group once the deadline passes."""
        if deadline is None:
            return proc.wait()
        try:
            return proc.wait(timeout=max(deadline - time.monotonic(), 0))
        except subprocess.TimeoutExpired:
            logger.warning(
                "Process timeout after %s seconds, killing: %s",
                self._handle.timeout,
                self._handle.name,
            )
            logger.debug("%s", describe_process_tree(proc.pid))
            with contextlib.suppress(ProcessLookupError):
                signal_process_group(proc.pid, signal.SIGKILL)
            return proc.wait()

    def _classify(self, returncode: int) -> None:
        """Turn the wait result into exit code and error, then finalise."""
        if returncode < 0:
            self._handle._mark_finished(-1, SignalError(-returncode), clean_exit=False)  # noqa: SLF001
            return

        io_error = next((d.error for d in self._drainers if d.error is not None), None)
        if io_error is not None:
            # Lost output always reports exit 0
            self._handle._mark_finished(0, io_error, clean_exit=False)  # noqa: SLF001
            return
        self._handle._mark_finished(returncode, None, clean_exit=True)  # noqa: SLF001

"""Run external commands with concurrent access to output and status."""

from __future__ import annotations

__version__ = "1.0.0"

from running_cmd.errors import (
    ChannelClosedError,
    HandleStartedError,
    LineBufferOverflowError,
    SignalError,
    SpawnError,
)
from running_cmd.handle import Handle, new_handle, new_handle_with_options
from running_cmd.line_channel import EndOfStream, LineChannel
from running_cmd.options import (
    DEFAULT_LINE_BUFFER_SIZE,
    DEFAULT_STREAM_CHAN_SIZE,
    OptionFn,
    Options,
    buffered,
    disable_streaming,
    env,
    stdin,
    streaming,
    timeout,
)
from running_cmd.output_buffer import OutputBuffer
from running_cmd.output_stream import OutputStream, TeeWriter
from running_cmd.shell import bash, bash_liner, run
from running_cmd.status import Status

__all__ = [
    "DEFAULT_LINE_BUFFER_SIZE",
    "DEFAULT_STREAM_CHAN_SIZE",
    "ChannelClosedError",
    "EndOfStream",
    "Handle",
    "HandleStartedError",
    "LineBufferOverflowError",
    "LineChannel",
    "OptionFn",
    "Options",
    "OutputBuffer",
    "OutputStream",
    "SignalError",
    "SpawnError",
    "Status",
    "TeeWriter",
    "bash",
    "bash_liner",
    "buffered",
    "disable_streaming",
    "env",
    "new_handle",
    "new_handle_with_options",
    "run",
    "stdin",
    "streaming",
    "timeout",
]

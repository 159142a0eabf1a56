"""Convenience runners.

Thin helpers over Handle for the common "run this and give me the result"
cases, including bash scripts.
"""

import threading
from collections.abc import Callable

from running_cmd.handle import Handle
from running_cmd.line_channel import LineChannel
from running_cmd.options import OptionFn, create_options
from running_cmd.status import Status


def run(name: str, *args: str) -> tuple[Handle, Status]:
    """Run a command with buffered output and wait for it to finish."""
    handle = Handle(name, *args)
    return handle, handle.start().result()


def bash(script: str, *option_fns: OptionFn) -> tuple[Handle, Status]:
    """
    Run a bash script and wait for it to finish.

    Args:
        script: Script passed to ``bash -c``.
        option_fns: Option builders such as timeout(1) or buffered(False).

    Returns:
        The handle and its final Status.
    """
    handle = Handle("bash", "-c", script)
    handle.options(*option_fns)
    return handle, handle.start().result()


def _discard(channel: LineChannel) -> None:
    for _ in channel:
        pass


def bash_liner(script: str, liner: Callable[[str], bool], *option_fns: OptionFn) -> tuple[Handle, Status]:
    """
    Run a bash script, feeding each stdout line to liner as it arrives.

    Output is streamed and not buffered, whatever option_fns say. The first
    time liner returns False the script is stopped; lines still in flight are
    passed to liner until stdout ends. stderr lines are read and dropped.

    Returns:
        The handle and its final Status.
    """
    handle = Handle("bash", "-c", script)
    options = create_options(option_fns)
    options.streaming = True
    options.buffered = False
    handle.apply_options(options)
    future = handle.start()

    assert handle.stdout is not None
    assert handle.stderr is not None
    threading.Thread(target=_discard, args=(handle.stderr,), name="RCStderrDiscard", daemon=True).start()
    for line in handle.stdout:
        if not liner(line):
            handle.stop()

    return handle, future.result()

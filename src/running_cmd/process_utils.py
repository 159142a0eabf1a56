#!/usr/bin/env python3
"""Process utilities for signalling and describing process groups."""

from __future__ import annotations

import os
import signal

import psutil


def signal_name(signum: int) -> str:
    """Return the short lower-case description of a signal, e.g. "terminated"."""
    try:
        description = signal.strsignal(signum)
    except ValueError:
        description = None
    if not description:
        return f"signal {signum}"
    # macOS appends the number ("Terminated: 15")
    return description.split(":")[0].lower()


def signal_process_group(pid: int, sig: int) -> None:
    """Send sig to the process group led by pid.

    The child is spawned as a session leader, so its pgid equals its pid and
    grandchildren holding our pipes are signalled too.
    """
    os.killpg(pid, sig)


def describe_process_tree(pid: int) -> str:
    """Get information about a process and its children."""
    try:
        process = psutil.Process(pid)
        info = [f"Process {pid} ({process.name()})"]
        info.append(f"Status: {process.status()}")
        info.append(f"CPU Times: {process.cpu_times()}")

        children = process.children(recursive=True)
        if children:
            info.append("Child processes:")
            for child in children:
                info.append(f"  Child {child.pid} ({child.name()}) status={child.status()}")

        return "\n".join(info)
    except psutil.Error:
        return f"Could not get process info for PID {pid}"

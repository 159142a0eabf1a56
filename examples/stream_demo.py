#!/usr/bin/env python3
"""Stream Demo - Shows buffered, streamed and stopped commands."""

import logging
import sys
import time

from running_cmd import Handle, Options, bash_liner, new_handle_with_options


def demo_buffered_vs_streaming():
    """Demonstrate the difference between buffered and streamed output."""
    print("Stream Demo")
    print("=" * 50)

    script = "for i in 1 2 3; do echo line $i; sleep 0.3; done"

    print("Buffered (read once the command is done):")
    status = Handle("bash", "-c", script).start().result()
    print(f"Output: {status.stdout}")
    print(f"Exit code: {status.exit}, runtime: {status.runtime:.2f}s")
    print()

    print("Streaming (read while the command runs):")
    handle = new_handle_with_options(Options(buffered=False, streaming=True), "bash", "-c", script)
    future = handle.start()
    start = time.time()
    for line in handle.stdout:
        print(f"[{time.time() - start:.2f}] {line}")
    print(f"Exit code: {future.result().exit}")
    print()

    print("Stopping on a line:")
    _, status = bash_liner("while true; do echo tick; sleep 0.2; done", lambda line: False)
    print(f"Complete: {status.complete}, error: {status.error}")
    print()

    print("Stream demo completed successfully!")


if __name__ == "__main__":
    if sys.platform == "win32":
        print("running_cmd needs POSIX process groups.")
        sys.exit(1)
    logging.basicConfig(level=logging.DEBUG)
    demo_buffered_vs_streaming()

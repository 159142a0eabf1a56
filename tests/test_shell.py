"""Tests for the convenience runners and option builders."""

import sys
import unittest

from running_cmd import (
    Handle,
    Options,
    bash,
    bash_liner,
    buffered,
    disable_streaming,
    env,
    run,
    stdin,
    streaming,
    timeout,
)
from running_cmd.options import create_options


class TestOptionBuilders(unittest.TestCase):
    """Test building Options from option functions."""

    def test_defaults(self):
        self.assertEqual(create_options([]), Options(buffered=True, streaming=False, stdin_enabled=False))

    def test_builders(self):
        options = create_options(
            [env("A=1"), env("B=2"), timeout(2.5), buffered(False), streaming(), stdin()]
        )

        self.assertEqual(options.env, ["A=1", "B=2"])
        self.assertEqual(options.timeout, 2.5)
        self.assertFalse(options.buffered)
        self.assertTrue(options.streaming)
        self.assertTrue(options.stdin_enabled)

    def test_disable_streaming(self):
        options = create_options([streaming(), disable_streaming()])

        self.assertFalse(options.streaming)

    def test_handle_options(self):
        """Test that options create the handle's channels."""
        handle = Handle("cat")
        handle.options(streaming(), stdin(), timeout(3))

        self.assertIsNotNone(handle.stdout)
        self.assertIsNotNone(handle.stderr)
        self.assertIsNotNone(handle.stdin)
        self.assertEqual(handle.stdout.capacity, 1000)
        self.assertEqual(handle.stdin.capacity, 0)
        self.assertEqual(handle.timeout, 3)
        self.assertTrue(handle.buffered)

        handle.options(disable_streaming())
        self.assertIsNone(handle.stdout)
        self.assertIsNone(handle.stdin)


@unittest.skipIf(sys.platform == "win32", "process groups require POSIX")
class TestRunners(unittest.TestCase):
    """Test run, bash and bash_liner."""

    def test_run(self):
        handle, status = run("echo", "foo")

        self.assertTrue(handle.done().is_set())
        self.assertTrue(status.complete)
        self.assertEqual(status.stdout, ["foo"])
        self.assertEqual(status.stderr, [])

    def test_bash(self):
        _, status = bash('echo "Hello"', timeout(1))

        self.assertEqual(status.stdout, ["Hello"])
        self.assertTrue(status.complete)

    def test_bash_buffered_off(self):
        _, status = bash('echo "Hello"', timeout(1), buffered(False))

        self.assertIsNone(status.stdout)

    def test_bash_env(self):
        _, status = bash('echo "$GREETING"', env("GREETING=hi"), env("PATH=/usr/bin:/bin"))

        self.assertEqual(status.stdout, ["hi"])

    def test_bash_liner_false(self):
        """Test that a False from the liner stops the script."""
        lines = []

        def liner(line: str) -> bool:
            lines.append(line)
            return False

        handle, status = bash_liner("echo hello; sleep 2; echo world;", liner, timeout(3))

        self.assertEqual(lines, ["hello"])
        self.assertIsNotNone(status.error)
        self.assertEqual(str(status.error), "signal: terminated")
        self.assertFalse(status.complete)
        self.assertIsNone(status.stdout)
        self.assertIsNone(handle.status().stdout)

    def test_bash_liner_true(self):
        """Test that the timeout still applies while lines are accepted."""
        lines = []

        def liner(line: str) -> bool:
            lines.append(line)
            return True

        _, status = bash_liner("echo hello; sleep 2; echo world;", liner, timeout(1))

        self.assertEqual(lines, ["hello"])
        self.assertEqual(str(status.error), "signal: killed")

    def test_bash_liner_complete(self):
        lines = []

        def liner(line: str) -> bool:
            lines.append(line)
            return True

        _, status = bash_liner("for i in 1 2 3; do echo $i; done", liner)

        self.assertEqual(lines, ["1", "2", "3"])
        self.assertTrue(status.complete)
        self.assertIsNone(status.error)

    def test_bash_liner_heavy_stderr(self):
        """Test that unread stderr does not block the script."""
        lines = []

        def liner(line: str) -> bool:
            lines.append(line)
            return True

        _, status = bash_liner("for i in $(seq 1 3000); do echo err $i >&2; done; echo done", liner, timeout(10))

        self.assertEqual(lines, ["done"])
        self.assertTrue(status.complete)
        self.assertIsNone(status.error)


if __name__ == "__main__":
    unittest.main()

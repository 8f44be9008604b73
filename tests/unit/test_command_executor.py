"""
Tests for the command allow-list, bounded executor and sandbox boundary.
"""

import shlex
import sys

import pytest

from logviewer_mcp.config.settings import ExecutionMode
from logviewer_mcp.exceptions import (
    CommandFailedError,
    CommandNotFoundError,
    CommandRejectedError,
    CommandTimeoutError,
    ErrorCategory,
    SourceUnavailableError,
)
from logviewer_mcp.services.command_executor import (
    BoundedCommandExecutor,
    CommandCapability,
    CommandResult,
    SandboxBoundary,
    SandboxedCommandRunner,
    create_command_runner,
    split_output_lines,
)


class StubExecutor:
    """Executor double that records argv and returns fixed output."""

    def __init__(self, output: str = "", error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls: list[list[str]] = []

    def run(self, argv):
        self.calls.append(argv)
        if self.error is not None:
            raise self.error
        return CommandResult(command=shlex.join(argv), output=self.output, returncode=0)


@pytest.fixture
def capability(config):
    return CommandCapability.from_config(config)


class TestCommandCapability:
    """Tests for the allow-list."""

    def test_variants(self, capability):
        assert capability.variants == ["file-tail", "journal-cat", "journal-short-iso"]

    def test_render_journal(self, capability):
        argv = capability.render("journal-cat", 50)
        assert argv == ["journalctl", "-u", "signalk", "-n", "50", "--no-pager", "--quiet", "--output=cat"]

    def test_render_short_iso(self, capability):
        argv = capability.render("journal-short-iso", 7)
        assert argv[-1] == "--output=short-iso"
        assert argv[4] == "7"

    def test_render_file_tail(self, capability, config):
        argv = capability.render("file-tail", 20, path=config.raw_file_path)
        assert argv == ["tail", "-n", "20", config.raw_file_path]

    def test_render_unknown_path_rejected(self, capability):
        with pytest.raises(CommandRejectedError):
            capability.render("file-tail", 20, path="/etc/shadow")

    def test_render_unknown_variant_rejected(self, capability):
        with pytest.raises(CommandRejectedError):
            capability.render("journal-json", 20)

    @pytest.mark.parametrize("count", [0, -5, True, "10"])
    def test_render_rejects_bad_counts(self, capability, count):
        with pytest.raises(CommandRejectedError):
            capability.render("journal-cat", count)

    def test_authorize_rendered_command(self, capability):
        argv = capability.render("journal-cat", 100)
        assert capability.authorize(shlex.join(argv)) == argv

    @pytest.mark.parametrize("command", [
        "journalctl -u signalk -n 50 --no-pager --quiet --output=cat; rm -rf /",
        "journalctl -u signalk -n 0 --no-pager --quiet --output=cat",
        "journalctl -u signalk -n abc --no-pager --quiet --output=cat",
        "journalctl -u sshd -n 50 --no-pager --quiet --output=cat",
        "journalctl -u signalk -n 50 --no-pager --quiet --output=json",
        "tail -n 10 /etc/passwd",
        "rm -rf /",
        "",
        "journalctl 'unterminated",
    ])
    def test_authorize_rejects(self, capability, command):
        with pytest.raises(CommandRejectedError) as exc_info:
            capability.authorize(command)

        assert exc_info.value.category == ErrorCategory.PERMISSION

    def test_custom_unit(self, config):
        config.journal_unit = "signalk-server"
        capability = CommandCapability.from_config(config)

        assert capability.render("journal-cat", 1)[2] == "signalk-server"


@pytest.mark.subprocess
class TestBoundedCommandExecutor:
    """Tests that run real child processes."""

    def test_captures_stdout(self):
        result = BoundedCommandExecutor().run([sys.executable, "-c", "print('hello')"])

        assert result.output.strip() == "hello"
        assert result.returncode == 0
        assert result.truncated is False

    def test_missing_executable(self):
        with pytest.raises(CommandNotFoundError) as exc_info:
            BoundedCommandExecutor().run(["logviewer-definitely-not-installed", "-n", "5"])

        assert isinstance(exc_info.value, SourceUnavailableError)

    def test_non_zero_exit(self):
        with pytest.raises(CommandFailedError) as exc_info:
            BoundedCommandExecutor().run([sys.executable, "-c", "import sys; sys.exit(3)"])

        assert exc_info.value.context["returncode"] == 3

    @pytest.mark.slow
    def test_timeout_kills_process(self):
        executor = BoundedCommandExecutor(timeout_seconds=0.5)

        with pytest.raises(CommandTimeoutError) as exc_info:
            executor.run([sys.executable, "-c", "import time; time.sleep(30)"])

        assert exc_info.value.category == ErrorCategory.TIMEOUT
        assert exc_info.value.context["timeout_seconds"] == 0.5

    def test_output_capped(self):
        executor = BoundedCommandExecutor(max_output_bytes=10)

        result = executor.run([sys.executable, "-c", "print('x' * 100000)"])

        assert result.output == ""
        assert result.truncated is True

    def test_capped_output_keeps_only_whole_lines(self):
        executor = BoundedCommandExecutor(max_output_bytes=20)
        script = "print('first line\\nsecond line\\nthird line')"

        result = executor.run([sys.executable, "-c", script])

        assert result.truncated is True
        assert split_output_lines(result.output, 10) == ["first line"]

    def test_capped_output_never_splits_a_character(self):
        executor = BoundedCommandExecutor(max_output_bytes=14)
        script = "import sys; sys.stdout.buffer.write('\u00e9t\u00e9\\nanchor \u2693\\n'.encode())"

        result = executor.run([sys.executable, "-c", script])

        assert result.output == "\u00e9t\u00e9\n"
        assert "\ufffd" not in result.output


class TestSandboxBoundary:
    """Tests for the exec_command boundary."""

    def test_allowed_command_writes_buffer(self, capability):
        executor = StubExecutor(output="a\nb\n")
        boundary = SandboxBoundary(capability, executor)
        buffer = bytearray(64)

        written = boundary.exec_command(shlex.join(capability.render("journal-cat", 2)), buffer)

        assert written == 4
        assert bytes(buffer[:written]) == b"a\nb\n"

    def test_output_clipped_to_whole_lines(self, capability):
        boundary = SandboxBoundary(capability, StubExecutor(output="ab\ncd\nef\n"))
        buffer = bytearray(7)

        written = boundary.exec_command(shlex.join(capability.render("journal-cat", 3)), buffer)

        assert written == 6
        assert bytes(buffer[:written]) == b"ab\ncd\n"

    def test_single_oversized_line_writes_nothing(self, capability):
        boundary = SandboxBoundary(capability, StubExecutor(output="abcdefgh"))

        assert boundary.exec_command(shlex.join(capability.render("journal-cat", 2)), bytearray(3)) == 0

    def test_rejected_command_returns_zero(self, capability):
        executor = StubExecutor(output="secret")
        boundary = SandboxBoundary(capability, executor)
        buffer = bytearray(16)

        assert boundary.exec_command("cat /etc/shadow", buffer) == 0
        assert executor.calls == []
        assert buffer == bytearray(16)

    def test_failed_command_returns_zero(self, capability):
        executor = StubExecutor(error=CommandNotFoundError("Command not found: journalctl"))
        boundary = SandboxBoundary(capability, executor)

        assert boundary.exec_command(shlex.join(capability.render("journal-cat", 2)), bytearray(16)) == 0

    def test_runner_treats_zero_as_unavailable(self, capability):
        runner = SandboxedCommandRunner(SandboxBoundary(capability, StubExecutor(output="")), max_output_bytes=32)

        with pytest.raises(SourceUnavailableError):
            runner.run(capability.render("journal-cat", 5))

    def test_runner_decodes_output(self, capability):
        runner = SandboxedCommandRunner(SandboxBoundary(capability, StubExecutor(output="one\ntwo\n")))

        result = runner.run(capability.render("journal-cat", 5))

        assert result.output == "one\ntwo\n"
        assert result.truncated is False


class TestHelpers:
    """Tests for output splitting and runner selection."""

    def test_split_output_lines(self):
        assert split_output_lines("a\n\nb\nc\n", 2) == ["b", "c"]

    def test_split_output_lines_fewer_than_requested(self):
        assert split_output_lines("a\nb\n", 10) == ["a", "b"]

    def test_split_output_lines_zero(self):
        assert split_output_lines("a\nb\n", 0) == []

    def test_native_runner(self, config):
        assert isinstance(create_command_runner(config), BoundedCommandExecutor)

    def test_sandboxed_runner(self, config):
        config.execution_mode = ExecutionMode.SANDBOXED
        assert isinstance(create_command_runner(config), SandboxedCommandRunner)

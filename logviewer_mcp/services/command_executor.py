"""
Bounded execution of external log reader commands.

Only command templates from ``config.command_templates`` can run. Output is
read into a buffer of fixed maximum size and every process is killed once its
time budget is spent.
"""

import shlex
import subprocess
import threading
from typing import Protocol

from pydantic import BaseModel, Field

from ..config.command_templates import COMMAND_TEMPLATES, COUNT_PLACEHOLDER, JOURNAL_COMMAND_TEMPLATES
from ..config.settings import ExecutionMode, LogViewerConfig
from ..exceptions import (
    CommandFailedError,
    CommandNotFoundError,
    CommandRejectedError,
    CommandTimeoutError,
    SourceUnavailableError,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


class CommandResult(BaseModel):
    """
    Output of one external command.
    """

    command: str = Field(
        ...,
        description="Shell-quoted command line, for diagnostics"
    )

    output: str = Field(
        "",
        description="Decoded standard output"
    )

    truncated: bool = Field(
        False,
        description="Output hit the byte limit"
    )

    returncode: int | None = Field(
        None,
        description="Process exit status"
    )


class CommandRunner(Protocol):
    """Anything that can run an allow-listed argv and return its output."""

    def run(self, argv: list[str]) -> CommandResult:
        ...


class CommandCapability:
    """
    Allow-list of executable command templates.

    Each entry is a variant name plus an argv template in which every
    placeholder except ``{count}`` has already been filled from configuration.
    """

    def __init__(self, templates: list[tuple[str, list[str]]]) -> None:
        self._templates = [(variant, list(argv)) for variant, argv in templates]

    @classmethod
    def from_config(cls, config: LogViewerConfig) -> "CommandCapability":
        """Build the allow-list from the configured journal unit and file paths."""
        templates: list[tuple[str, list[str]]] = []

        for variant, template in JOURNAL_COMMAND_TEMPLATES.items():
            argv = [arg.replace("{unit}", config.journal_unit) for arg in template["argv"]]
            templates.append((variant, argv))

        file_argv = COMMAND_TEMPLATES["file-tail"]["argv"]
        paths = [str(p) for p in config.resolved_file_candidates()]
        for path in [config.raw_file_path, *paths]:
            templates.append(("file-tail", [arg.replace("{path}", path) for arg in file_argv]))

        return cls(templates)

    @property
    def variants(self) -> list[str]:
        return sorted({variant for variant, _ in self._templates})

    def render(self, variant: str, count: int, path: str | None = None) -> list[str]:
        """
        Fill the count into an allow-listed template.

        Args:
            variant: Template name
            count: Validated line count
            path: File path for file templates

        Returns:
            argv ready to execute

        Raises:
            CommandRejectedError: If no allow-listed template matches
        """
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise CommandRejectedError(f"Invalid line count for {variant}: {count!r}")

        for name, argv in self._templates:
            if name != variant:
                continue
            if path is not None and path not in argv:
                continue
            return [str(count) if arg == COUNT_PLACEHOLDER else arg for arg in argv]

        raise CommandRejectedError(
            f"Command variant not allowed: {variant}",
            command=variant if path is None else f"{variant} {path}",
        )

    def authorize(self, command: str) -> list[str]:
        """
        Check a command string against the allow-list.

        Args:
            command: Shell-quoted command line

        Returns:
            The parsed argv

        Raises:
            CommandRejectedError: If the command matches no template
        """
        try:
            argv = shlex.split(command)
        except ValueError as e:
            raise CommandRejectedError(
                f"Unparseable command: {e}", command=command, original_error=e
            ) from e

        for _, template in self._templates:
            if self._matches(template, argv):
                return argv

        raise CommandRejectedError("Command is not on the allow-list", command=command)

    @staticmethod
    def _matches(template: list[str], argv: list[str]) -> bool:
        if len(template) != len(argv):
            return False
        for expected, actual in zip(template, argv, strict=True):
            if expected == COUNT_PLACEHOLDER:
                if not actual.isdigit() or int(actual) <= 0:
                    return False
            elif expected != actual:
                return False
        return True


class BoundedCommandExecutor:
    """
    Runs a command without a shell under output and time limits.

    Args:
        timeout_seconds: Kill the process after this long
        max_output_bytes: Read at most this many bytes of stdout
    """

    def __init__(self, timeout_seconds: float = 10.0, max_output_bytes: int = 10 * 1024 * 1024) -> None:
        self.timeout_seconds = timeout_seconds
        self.max_output_bytes = max_output_bytes

    def run(self, argv: list[str]) -> CommandResult:
        """
        Execute ``argv`` and return its standard output.

        Raises:
            CommandNotFoundError: If the executable does not exist
            CommandTimeoutError: If the time budget ran out
            CommandFailedError: If the process could not start or exited non-zero
        """
        command = shlex.join(argv)

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as e:
            raise CommandNotFoundError(
                f"Command not found: {argv[0]}", command=command, original_error=e
            ) from e
        except OSError as e:
            raise CommandFailedError(
                f"Could not start {argv[0]}: {e}", command=command, original_error=e
            ) from e

        timed_out = threading.Event()

        def _expire() -> None:
            timed_out.set()
            proc.kill()

        timer = threading.Timer(self.timeout_seconds, _expire)
        timer.daemon = True
        timer.start()
        try:
            with proc:
                assert proc.stdout is not None
                data = proc.stdout.read(self.max_output_bytes + 1)
                truncated = len(data) > self.max_output_bytes
                if truncated:
                    data = trim_to_whole_lines(data[:self.max_output_bytes])
                    proc.kill()
                returncode = proc.wait()
        finally:
            timer.cancel()

        if timed_out.is_set():
            raise CommandTimeoutError(
                f"Command timed out after {self.timeout_seconds}s",
                command=command,
                timeout_seconds=self.timeout_seconds,
            )

        if returncode != 0 and not truncated:
            raise CommandFailedError(
                f"Command exited with status {returncode}",
                command=command,
                returncode=returncode,
            )

        if truncated:
            logger.warning(
                "Command output truncated",
                extra={"command": command, "max_output_bytes": self.max_output_bytes},
            )

        return CommandResult(
            command=command,
            output=data.decode("utf-8", errors="replace"),
            truncated=truncated,
            returncode=returncode,
        )


class SandboxBoundary:
    """
    Narrow execution boundary for constrained runtimes.

    ``exec_command`` takes a command string and an output buffer and returns
    the number of bytes written. Zero means the command was rejected or
    failed; callers cannot tell which.
    """

    def __init__(self, capability: CommandCapability, executor: BoundedCommandExecutor) -> None:
        self.capability = capability
        self.executor = executor

    def exec_command(self, command: str, buffer: bytearray) -> int:
        """Run an allow-listed command, writing at most ``len(buffer)`` bytes of output."""
        try:
            argv = self.capability.authorize(command)
            result = self.executor.run(argv)
        except SourceUnavailableError as e:
            logger.debug("Sandbox command refused or failed", extra={"command": command, "reason": e.message})
            return 0

        payload = result.output.encode("utf-8")
        if len(payload) > len(buffer):
            payload = trim_to_whole_lines(payload[:len(buffer)])
        buffer[:len(payload)] = payload
        return len(payload)


class SandboxedCommandRunner:
    """
    CommandRunner that goes through a SandboxBoundary.

    The output buffer is allocated up front at its maximum size. The boundary
    only returns a byte count, so truncation is not reported.
    """

    def __init__(self, boundary: SandboxBoundary, max_output_bytes: int = 2 * 1024 * 1024) -> None:
        self.boundary = boundary
        self.max_output_bytes = max_output_bytes

    def run(self, argv: list[str]) -> CommandResult:
        command = shlex.join(argv)
        buffer = bytearray(self.max_output_bytes)

        written = self.boundary.exec_command(command, buffer)
        if written == 0:
            raise SourceUnavailableError(
                "Command rejected or failed at the sandbox boundary",
                path=command,
            )

        return CommandResult(
            command=command,
            output=bytes(buffer[:written]).decode("utf-8", errors="replace"),
        )


def trim_to_whole_lines(data: bytes) -> bytes:
    """Drop the bytes after the last newline of clipped output."""
    end = data.rfind(b"\n")
    return data[:end + 1] if end >= 0 else b""


def split_output_lines(output: str, line_count: int) -> list[str]:
    """Newline-split command output, drop empty lines, keep the last ``line_count``."""
    lines = [line for line in output.split("\n") if line.strip()]
    return lines[-line_count:] if line_count > 0 else []


def create_command_runner(config: LogViewerConfig) -> CommandRunner:
    """Command runner for the configured execution mode."""
    executor = BoundedCommandExecutor(
        timeout_seconds=config.command_timeout,
        max_output_bytes=config.command_max_output,
    )
    if config.execution_mode == ExecutionMode.SANDBOXED:
        boundary = SandboxBoundary(CommandCapability.from_config(config), executor)
        return SandboxedCommandRunner(boundary, max_output_bytes=config.command_max_output)
    return executor

"""
Log sources for the fallback chain.

Each source returns a RetrievalResult for the last N lines it can see, or
raises a SourceUnavailableError when it cannot be read at all.
"""

from abc import ABC, abstractmethod

from ..config.command_templates import JOURNAL_VARIANT_BY_OUTPUT
from ..config.settings import ExecutionMode, JournalOutput, LogViewerConfig
from ..exceptions import SourceUnavailableError
from ..models.log_record import RetrievalResult, SourceId
from ..utils.logging import get_logger
from .command_executor import (
    CommandCapability,
    CommandRunner,
    create_command_runner,
    split_output_lines,
)
from .normalizer import LineNormalizer
from .tail_reader import read_tail

logger = get_logger(__name__)


class LogSource(ABC):
    """A place log lines can be read from."""

    source_id: SourceId

    @property
    @abstractmethod
    def location(self) -> str:
        """Path or command used, for diagnostics."""

    @abstractmethod
    def fetch(self, line_count: int) -> RetrievalResult:
        """
        Read the last ``line_count`` lines.

        Raises:
            SourceUnavailableError: If the source cannot be read
        """


class FileTail:
    """
    Tail access to one file, either by seeking or through ``tail`` when
    commands must go through the sandbox boundary.
    """

    def __init__(
        self,
        path: str,
        bytes_per_line: int,
        max_window_bytes: int,
        runner: CommandRunner | None = None,
        capability: CommandCapability | None = None,
    ) -> None:
        self.path = path
        self.bytes_per_line = bytes_per_line
        self.max_window_bytes = max_window_bytes
        self.runner = runner
        self.capability = capability

    def read(self, line_count: int) -> tuple[list[str], bool, str]:
        """Return (lines, truncated, location)."""
        if self.runner is not None and self.capability is not None:
            argv = self.capability.render("file-tail", line_count, path=self.path)
            result = self.runner.run(argv)
            return split_output_lines(result.output, line_count), result.truncated, result.command

        tail = read_tail(
            self.path,
            line_count,
            bytes_per_line=self.bytes_per_line,
            max_window_bytes=self.max_window_bytes,
        )
        return tail.lines, tail.truncated, self.path


class RawFileSource(LogSource):
    """
    Venus OS multilog ``current`` file with TAI64N-prefixed lines.
    """

    source_id = SourceId.RAW_FILE

    def __init__(self, tail: FileTail) -> None:
        self.tail = tail
        self.normalizer = LineNormalizer(decode_tai64n=True)

    @property
    def location(self) -> str:
        return self.tail.path

    def fetch(self, line_count: int) -> RetrievalResult:
        lines, truncated, location = self.tail.read(line_count)
        return RetrievalResult(
            lines=self.normalizer.normalize_all(lines),
            source_id=self.source_id,
            source_path=location,
            truncated=truncated,
            reason=None if lines else "log file is empty",
        )


class JournalSource(LogSource):
    """
    systemd journal read through ``journalctl``.

    Lines are not TAI64N-formatted; with ``short-iso`` output the leading ISO
    timestamp is kept as a raw token.
    """

    source_id = SourceId.JOURNAL

    def __init__(
        self,
        runner: CommandRunner,
        capability: CommandCapability,
        output: JournalOutput = JournalOutput.CAT,
        unit: str = "signalk",
    ) -> None:
        self.runner = runner
        self.capability = capability
        self.output = output
        self.unit = unit
        self.variant = JOURNAL_VARIANT_BY_OUTPUT[output.value]
        self.normalizer = LineNormalizer(parse_iso_prefix=output == JournalOutput.SHORT_ISO)

    @property
    def location(self) -> str:
        return f"journalctl -u {self.unit}"

    def fetch(self, line_count: int) -> RetrievalResult:
        argv = self.capability.render(self.variant, line_count)
        result = self.runner.run(argv)
        lines = split_output_lines(result.output, line_count)
        return RetrievalResult(
            lines=self.normalizer.normalize_all(lines),
            source_id=self.source_id,
            source_path=result.command,
            truncated=result.truncated,
            reason=None if lines else "journal returned no lines",
        )


class FileSource(LogSource):
    """
    Plain log file; the first candidate that yields lines wins.
    """

    source_id = SourceId.FILE

    def __init__(self, tails: list[FileTail]) -> None:
        self.tails = tails
        self.normalizer = LineNormalizer()

    @property
    def location(self) -> str:
        return ", ".join(tail.path for tail in self.tails)

    def fetch(self, line_count: int) -> RetrievalResult:
        reasons: list[str] = []
        for tail in self.tails:
            try:
                lines, truncated, location = tail.read(line_count)
            except SourceUnavailableError as e:
                reasons.append(f"{tail.path}: {e.message}")
                continue

            if not lines:
                reasons.append(f"{tail.path}: log file is empty")
                continue

            logger.debug("Found log file", extra={"path": location})
            return RetrievalResult(
                lines=self.normalizer.normalize_all(lines),
                source_id=self.source_id,
                source_path=location,
                truncated=truncated,
            )

        return RetrievalResult.empty(
            self.source_id,
            source_path=self.location,
            reason="; ".join(reasons) or "no log file candidates configured",
        )


def build_sources(config: LogViewerConfig, runner: CommandRunner | None = None) -> list[LogSource]:
    """
    Sources in fallback priority order: raw-file, journal, file.

    In sandboxed mode files are read with ``tail`` through the command runner,
    since the runtime cannot open files itself.
    """
    capability = CommandCapability.from_config(config)
    runner = runner or create_command_runner(config)
    file_runner = runner if config.execution_mode == ExecutionMode.SANDBOXED else None

    def tail_for(path: str, bytes_per_line: int) -> FileTail:
        return FileTail(
            path,
            bytes_per_line=bytes_per_line,
            max_window_bytes=config.max_window_bytes,
            runner=file_runner,
            capability=capability if file_runner is not None else None,
        )

    return [
        RawFileSource(tail_for(config.raw_file_path, config.raw_file_bytes_per_line)),
        JournalSource(runner, capability, output=config.journal_output, unit=config.journal_unit),
        FileSource([
            tail_for(str(path), config.file_bytes_per_line)
            for path in config.resolved_file_candidates()
        ]),
    ]


__all__ = [
    "LogSource",
    "RawFileSource",
    "JournalSource",
    "FileSource",
    "FileTail",
    "build_sources",
]

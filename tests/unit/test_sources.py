"""
Tests for the individual log sources.
"""

import pytest

from logviewer_mcp.config.settings import ExecutionMode, JournalOutput
from logviewer_mcp.exceptions import CommandFailedError, SourceUnavailableError
from logviewer_mcp.models.log_record import SourceId
from logviewer_mcp.services.command_executor import CommandCapability
from logviewer_mcp.services.sources import (
    FileSource,
    FileTail,
    JournalSource,
    RawFileSource,
    build_sources,
)
from tests.factories import FakeCommandRunner, RawFileContentFactory, plain_lines


class TestRawFileSource:
    """Tests for the multilog file source."""

    def test_reads_and_decodes(self, config):
        content = RawFileContentFactory(line_count=30)
        with open(config.raw_file_path, "w", encoding="utf-8") as f:
            f.write(content["text"])

        source = RawFileSource(FileTail(config.raw_file_path, 500, config.max_window_bytes))
        result = source.fetch(10)

        assert result.source_id == SourceId.RAW_FILE
        assert result.source_path == config.raw_file_path
        assert [r.original for r in result.lines] == content["lines"][-10:]
        assert all(r.timestamp and r.timestamp.endswith("Z") for r in result.lines)

    def test_missing_file_raises(self, config):
        source = RawFileSource(FileTail(config.raw_file_path, 500, config.max_window_bytes))

        with pytest.raises(SourceUnavailableError):
            source.fetch(10)

    def test_empty_file_is_empty_result(self, config):
        open(config.raw_file_path, "w").close()

        result = RawFileSource(FileTail(config.raw_file_path, 500, config.max_window_bytes)).fetch(10)

        assert result.is_empty
        assert result.reason == "log file is empty"


class TestJournalSource:
    """Tests for the journalctl source."""

    def test_cat_output(self, config):
        runner = FakeCommandRunner(outputs={"journalctl": "one\ntwo\nthree\n"})
        source = JournalSource(runner, CommandCapability.from_config(config))

        result = source.fetch(2)

        assert [r.message for r in result.lines] == ["two", "three"]
        assert all(r.timestamp is None for r in result.lines)
        assert runner.calls == [["journalctl", "-u", "signalk", "-n", "2", "--no-pager", "--quiet", "--output=cat"]]
        assert result.source_path.startswith("journalctl -u signalk")

    def test_short_iso_output(self, config):
        line = "2025-11-24T04:34:59+0000 venus signalk-server[812]: ready"
        runner = FakeCommandRunner(outputs={"journalctl": f"{line}\n"})
        source = JournalSource(runner, CommandCapability.from_config(config), output=JournalOutput.SHORT_ISO)

        record = source.fetch(5).lines[0]

        assert record.timestamp == "2025-11-24T04:34:59+0000"
        assert record.original == line
        assert runner.calls[0][-1] == "--output=short-iso"

    def test_no_output_is_empty_result(self, config):
        runner = FakeCommandRunner(outputs={"journalctl": "\n"})
        result = JournalSource(runner, CommandCapability.from_config(config)).fetch(5)
        assert result.is_empty
        assert result.reason == "journal returned no lines"

    def test_command_failure_raises(self, config):
        runner = FakeCommandRunner(errors={"journalctl": CommandFailedError("exit 1", returncode=1)})

        with pytest.raises(SourceUnavailableError):
            JournalSource(runner, CommandCapability.from_config(config)).fetch(5)


class TestFileSource:
    """Tests for the plain file candidates."""

    def _tails(self, config):
        return [FileTail(str(p), 200, config.max_window_bytes) for p in config.resolved_file_candidates()]

    def test_first_candidate_with_lines_wins(self, config):
        first, second = config.file_candidates
        with open(second, "w", encoding="utf-8") as f:
            f.write("\n".join(plain_lines(5)) + "\n")

        result = FileSource(self._tails(config)).fetch(3)

        assert result.source_id == SourceId.FILE
        assert result.source_path == second
        assert len(result.lines) == 3

    def test_empty_candidate_skipped(self, config):
        first, second = config.file_candidates
        open(first, "w").close()
        with open(second, "w", encoding="utf-8") as f:
            f.write("kept\n")

        result = FileSource(self._tails(config)).fetch(3)

        assert result.source_path == second
        assert result.lines[0].original == "kept"

    def test_no_candidate_readable(self, config):
        result = FileSource(self._tails(config)).fetch(3)

        assert result.is_empty
        assert config.file_candidates[0] in result.reason
        assert config.file_candidates[1] in result.reason

    def test_no_candidates_configured(self):
        result = FileSource([]).fetch(3)
        assert result.reason == "no log file candidates configured"


class TestBuildSources:
    """Tests for source assembly."""

    def test_priority_order(self, config, fake_runner):
        sources = build_sources(config, runner=fake_runner)
        assert [s.source_id for s in sources] == [SourceId.RAW_FILE, SourceId.JOURNAL, SourceId.FILE]

    def test_native_mode_reads_files_directly(self, config, fake_runner):
        sources = build_sources(config, runner=fake_runner)
        assert sources[0].tail.runner is None

    def test_sandboxed_mode_tails_through_runner(self, config):
        config.execution_mode = ExecutionMode.SANDBOXED
        runner = FakeCommandRunner(outputs={"tail": "@4000000065a1782d00000000 via tail\n"})

        raw = build_sources(config, runner=runner)[0]
        result = raw.fetch(5)

        assert runner.calls == [["tail", "-n", "5", config.raw_file_path]]
        assert result.lines[0].timestamp == "2024-01-12T17:34:27.000Z"
        assert result.lines[0].message == "via tail"

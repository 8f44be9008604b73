"""
Test fixtures and configuration for logviewer-mcp tests.

Every fixture points the server at files under ``tmp_path`` and uses fake
command runners, so no test reads real system logs or runs journalctl.
"""

from pathlib import Path

import pytest
from fastmcp import Client

from logviewer_mcp.config.settings import LogViewerConfig
from logviewer_mcp.server import create_server
from logviewer_mcp.services.host_profile import HostProfiler
from logviewer_mcp.services.log_retrieval import LogRetrievalService
from logviewer_mcp.services.sources import build_sources
from tests.factories import FakeCommandRunner


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "logs"
    directory.mkdir()
    return directory


@pytest.fixture
def config(tmp_path: Path, log_dir: Path) -> LogViewerConfig:
    """
    Configuration isolated from the host.

    Log paths and host-profile check paths all live under tmp_path and do not
    exist until a test creates them.
    """
    return LogViewerConfig(
        _env_file=None,
        raw_file_path=str(log_dir / "current"),
        file_candidates=[str(log_dir / "signalk-server.log"), str(log_dir / "signalk.log")],
        device_marker_dir=str(tmp_path / "data"),
        device_marker_file=str(tmp_path / "opt" / "victronenergy" / "version"),
        device_version_file=str(tmp_path / "etc" / "version"),
        device_release_file=str(tmp_path / "etc" / "os-release"),
    )


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    """Runner with no commands available."""
    return FakeCommandRunner()


@pytest.fixture
def journal_runner() -> FakeCommandRunner:
    """Runner whose journalctl returns three lines."""
    return FakeCommandRunner(outputs={"journalctl": "Server started\nPlugin anchoralarm started\nready\n"})


@pytest.fixture
def logviewer_service(config: LogViewerConfig, journal_runner: FakeCommandRunner) -> LogRetrievalService:
    return LogRetrievalService(
        config,
        sources=build_sources(config, runner=journal_runner),
        profiler=HostProfiler(config, hostname_provider=lambda: "workstation"),
    )


@pytest.fixture
def logviewer_server(logviewer_service: LogRetrievalService):
    """Server wired to the isolated service."""
    return create_server(service=logviewer_service)


@pytest.fixture
async def fastmcp_client(logviewer_server):
    """In-memory FastMCP client connected to the isolated server."""
    async with Client(logviewer_server) as client:
        yield client


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: Fast unit tests with minimal dependencies")
    config.addinivalue_line("markers", "subprocess: Tests that start real child processes")
    config.addinivalue_line("markers", "slow: Slow-running tests")
    config.addinivalue_line("markers", "error_handling: Error scenario tests")
    config.addinivalue_line("markers", "property: Hypothesis property-based tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

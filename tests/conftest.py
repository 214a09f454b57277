"""Pytest fixtures for buildlaunch-mcp tests."""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from buildlaunch_mcp.build.events import BuildEventHub, BuildOutcome  # noqa: E402
from buildlaunch_mcp.launch.invoker import LaunchInvoker  # noqa: E402
from buildlaunch_mcp.launch.prelaunch import PrelaunchRunner  # noqa: E402


class RecordingHost:
    """Command host recording submitted commands into a shared call log."""

    def __init__(self, calls: list, error: Exception | None = None):
        self.calls = calls
        self.error = error

    async def execute_command(self, command: str, arguments: str) -> None:
        if self.error is not None:
            raise self.error
        self.calls.append((command, arguments))


class RecordingNotifier:
    """Notifier recording (title, message) pairs."""

    def __init__(self):
        self.errors: list[tuple[str, str]] = []

    def notify_error(self, title: str, message: str) -> None:
        self.errors.append((title, message))


def make_outcome(target: str, succeeded: bool = True, configuration: str = "Debug") -> BuildOutcome:
    """Project done payload for target."""
    return BuildOutcome(
        target_identifier=target,
        configuration_name=configuration,
        platform="Any CPU",
        solution_configuration=f"{configuration}|Any CPU",
        succeeded=succeeded,
    )


@pytest.fixture
def calls():
    """Shared, ordered log of prelaunch runs and launch commands."""
    return []


@pytest.fixture
def hub():
    return BuildEventHub()


@pytest.fixture
def host(calls):
    return RecordingHost(calls)


@pytest.fixture
def invoker(host):
    return LaunchInvoker(host)


@pytest.fixture
def runner(calls):
    """Prelaunch runner that logs the script path and exits with 0."""
    mock = MagicMock(spec=PrelaunchRunner)

    def run(script_path):
        calls.append(("prelaunch", script_path))
        return 0

    mock.run.side_effect = run
    return mock


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def launch_dir(tmp_path):
    """Directory with launch.json and prelaunch.bat."""
    directory = tmp_path / "solution"
    directory.mkdir()
    (directory / "launch.json").write_text("{}")
    (directory / "prelaunch.bat").write_text("@echo off\n")
    return directory


@pytest.fixture
def launch_only_dir(tmp_path):
    """Directory with launch.json but no prelaunch.bat."""
    directory = tmp_path / "project"
    directory.mkdir()
    (directory / "launch.json").write_text("{}")
    return directory

"""Launch watcher state and result types.

State machine for a launch watcher:
IDLE → ARMED → LAUNCH_PENDING
  ↑______|___________|
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class WatcherState(str, Enum):
    """Launch watcher state machine states."""

    IDLE = "idle"
    ARMED = "armed"
    LAUNCH_PENDING = "launch_pending"


@dataclass(frozen=True)
class LaunchConfig:
    """Resolved launch configuration paths for one arming."""

    launch_file_path: str
    prelaunch_script_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"launchFilePath": self.launch_file_path}
        if self.prelaunch_script_path:
            result["prelaunchScriptPath"] = self.prelaunch_script_path
        return result


@dataclass
class ArmedTarget:
    """The single build unit currently eligible to trigger a launch."""

    target_identifier: str | None = None

    @property
    def armed(self) -> bool:
        return self.target_identifier is not None

    def clear(self) -> None:
        self.target_identifier = None


@dataclass
class LaunchCycleResult:
    """Outcome of one overall build completion."""

    launched: bool
    target_identifier: str | None = None
    launch_file_path: str | None = None
    prelaunch_script_path: str | None = None
    prelaunch_exit_code: int | None = None
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "launched": self.launched,
            "targetIdentifier": self.target_identifier,
            "reason": self.reason,
        }
        if self.launch_file_path:
            result["launchFilePath"] = self.launch_file_path
        if self.prelaunch_script_path:
            result["prelaunchScriptPath"] = self.prelaunch_script_path
        if self.prelaunch_exit_code is not None:
            result["prelaunchExitCode"] = self.prelaunch_exit_code
        return result


class LaunchError(Exception):
    """Base error for the launch orchestration."""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"error": str(self), "type": type(self).__name__}


class ConfigNotFoundError(LaunchError):
    """No candidate directory contains a launch configuration."""

    def __init__(self, message: str, searched_directories: list[str] | None = None):
        super().__init__(message)
        self.searched_directories = searched_directories or []

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["searchedDirectories"] = list(self.searched_directories)
        return result


class PrelaunchProcessError(LaunchError):
    """Prelaunch script could not be run to completion."""

    def __init__(self, message: str, script_path: str):
        super().__init__(message)
        self.script_path = script_path

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["scriptPath"] = self.script_path
        return result


class LaunchInvocationError(LaunchError):
    """Debug-launch command could not be submitted."""

    def __init__(self, message: str, launch_file_path: str):
        super().__init__(message)
        self.launch_file_path = launch_file_path

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["launchFilePath"] = self.launch_file_path
        return result

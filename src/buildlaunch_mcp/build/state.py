"""Build state management and result types.

State machine for build sessions:
IDLE → BUILDING → READY | FAILED
     ↑__________________|
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


class BuildState(str, Enum):
    """Build session state machine states."""

    IDLE = "idle"
    BUILDING = "building"
    READY = "ready"
    FAILED = "failed"


# Format: path(line,col): error code: message [project]
MSBUILD_ERROR_PATTERN = re.compile(r":\s*error\s+\w+:", re.IGNORECASE)


def count_msbuild_errors(output: str) -> int:
    """Count distinct MSBuild error lines in build output.

    MSBuild repeats every error in its final summary, so duplicates are
    counted once.
    """
    errors = {
        line.strip()
        for line in output.splitlines()
        if MSBUILD_ERROR_PATTERN.search(line)
    }
    return len(errors)


class BuildError(Exception):
    """Build could not be run."""

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {"error": str(self)}
        if self.exit_code is not None:
            result["exitCode"] = self.exit_code
        return result


@dataclass
class BuildResult:
    """Result of a build operation."""

    success: bool
    state: BuildState
    project_path: str
    target_identifier: str
    configuration: str
    platform: str
    exit_code: int | None = None
    output: str = ""
    duration_ms: float = 0.0

    @property
    def error_count(self) -> int:
        return count_msbuild_errors(self.output)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "success": self.success,
            "state": self.state.value,
            "projectPath": self.project_path,
            "targetIdentifier": self.target_identifier,
            "configuration": self.configuration,
            "platform": self.platform,
            "errorCount": self.error_count,
            "durationMs": round(self.duration_ms, 2),
        }
        if self.exit_code is not None:
            result["exitCode"] = self.exit_code
        return result

    def to_summary(self) -> str:
        """Generate human-readable summary."""
        status = "[OK] Build succeeded" if self.success else "[FAILED] Build failed"
        parts = [
            status,
            f"  Project: {self.target_identifier}",
            f"  Configuration: {self.configuration}|{self.platform}",
            f"  Duration: {self.duration_ms:.0f}ms",
        ]
        if self.error_count > 0:
            parts.append(f"  Errors: {self.error_count}")
        return "\n".join(parts)

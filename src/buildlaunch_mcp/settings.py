"""Environment-driven settings."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass

from .launch.invoker import DEFAULT_ENGINE_ID

logger = logging.getLogger(__name__)


def _parse_seconds(value: str | None, name: str) -> float | None:
    """Parse a positive number of seconds, None if unset or invalid."""
    if value is None or not value.strip():
        return None
    try:
        seconds = float(value)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}: {value!r}")
        return None
    if seconds <= 0:
        logger.warning(f"Ignoring non-positive {name}: {value!r}")
        return None
    return seconds


@dataclass
class LaunchSettings:
    """Settings for the launch watcher and its collaborators."""

    engine_id: str = DEFAULT_ENGINE_ID
    """Debug engine identifier passed with the launch command."""

    command_host: str = "devenv"
    """Executable that accepts ``/Command`` for the launch command."""

    prelaunch_timeout: float | None = None
    """Seconds before a prelaunch script is killed. None waits forever."""

    build_timeout: float = 300.0
    """Seconds before a dotnet build is killed."""

    dotnet_path: str = "dotnet"
    """dotnet executable."""

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LaunchSettings:
        """Read settings from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            engine_id=env.get("BUILDLAUNCH_ENGINE_ID") or DEFAULT_ENGINE_ID,
            command_host=env.get("BUILDLAUNCH_COMMAND_HOST") or "devenv",
            prelaunch_timeout=_parse_seconds(
                env.get("BUILDLAUNCH_PRELAUNCH_TIMEOUT"), "BUILDLAUNCH_PRELAUNCH_TIMEOUT"
            ),
            build_timeout=_parse_seconds(
                env.get("BUILDLAUNCH_BUILD_TIMEOUT"), "BUILDLAUNCH_BUILD_TIMEOUT"
            )
            or 300.0,
            dotnet_path=env.get("DOTNET_PATH") or "dotnet",
        )

"""Launcher - wires the watcher to the dotnet build session and the IDE."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from .build import BuildEventHub, BuildSession
from .launch import (
    BuildEventWatcher,
    ExternalCommandHost,
    LaunchConfig,
    LaunchCycleResult,
    LaunchError,
    LaunchInvoker,
    PrelaunchRunner,
)
from .settings import LaunchSettings
from .utils.project import (
    candidate_directories,
    find_solution_file,
    project_unique_name,
    resolve_project_file,
)

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Error surface for a headless host: logs and keeps the messages."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    @property
    def last_message(self) -> str | None:
        return self.messages[-1][1] if self.messages else None

    def notify_error(self, title: str, message: str) -> None:
        logger.error(f"{title}: {message}")
        self.messages.append((title, message))


class Launcher:
    """Owns one build session and the watcher listening to it.

    Usage:
        launcher = Launcher(LaunchSettings.from_env())
        outcome = await launcher.start_debug_build("src/App/App.csproj")
        launcher.close()
    """

    def __init__(
        self,
        settings: LaunchSettings | None = None,
        invoker: LaunchInvoker | None = None,
        runner: PrelaunchRunner | None = None,
    ):
        self._settings = settings or LaunchSettings()
        self._events = BuildEventHub()
        self._build_session = BuildSession(self._events, dotnet_path=self._settings.dotnet_path)
        self._notifier = LoggingNotifier()
        self._watcher = BuildEventWatcher(
            self._events,
            invoker
            or LaunchInvoker(
                ExternalCommandHost(self._settings.command_host),
                engine_id=self._settings.engine_id,
            ),
            runner=runner or PrelaunchRunner(timeout=self._settings.prelaunch_timeout),
            notifier=self._notifier,
        )
        self._cycle_outcome: LaunchCycleResult | LaunchError | None = None
        self._watcher.on_cycle_complete(self._record_cycle)
        self._watcher.on_cycle_error(self._record_cycle)

    @property
    def settings(self) -> LaunchSettings:
        return self._settings

    @property
    def events(self) -> BuildEventHub:
        return self._events

    @property
    def build_session(self) -> BuildSession:
        return self._build_session

    @property
    def watcher(self) -> BuildEventWatcher:
        return self._watcher

    @property
    def notifier(self) -> LoggingNotifier:
        return self._notifier

    def _record_cycle(self, outcome: LaunchCycleResult | LaunchError) -> None:
        self._cycle_outcome = outcome

    def take_cycle_outcome(self) -> LaunchCycleResult | LaunchError | None:
        """Return and clear the outcome of the last handled build completion."""
        outcome, self._cycle_outcome = self._cycle_outcome, None
        return outcome

    async def arm(
        self,
        project: str | Path,
        solution: str | Path | None = None,
        root: str | Path | None = None,
    ) -> tuple[str, Path, LaunchConfig]:
        """Arm the watcher for a project.

        Args:
            project: Project file or directory (relative to root)
            solution: Owning solution; searched upward from the project if omitted
            root: Base directory for relative paths

        Returns:
            Tuple of (target identifier, project file, launch config)

        Raises:
            ValueError: If the project cannot be resolved
            ConfigNotFoundError: If no launch.json is found
        """
        project_file = resolve_project_file(project, root)
        if solution is not None:
            solution_file: Path | None = Path(solution)
            if not solution_file.is_absolute():
                solution_file = Path(root or Path.cwd()) / solution_file
        else:
            solution_file = find_solution_file(project_file)

        target = project_unique_name(project_file, solution_file)
        directories = candidate_directories(project_file, solution_file)
        config = await self._watcher.arm(target, directories)
        return target, project_file, config

    async def start_debug_build(
        self,
        project: str | Path,
        solution: str | Path | None = None,
        configuration: str = "Debug",
        platform: str | None = None,
        root: str | Path | None = None,
    ) -> dict[str, Any]:
        """Arm the watcher, then build the project.

        The launch (if any) has been submitted by the time this returns.

        Raises:
            ValueError: If the project cannot be resolved
            ConfigNotFoundError: If no launch.json is found; nothing is built
            BuildError: If dotnet cannot be started
        """
        target, project_file, config = await self.arm(project, solution, root)
        self._cycle_outcome = None

        result = await self._build_session.build(
            str(project_file),
            target,
            configuration=configuration,
            platform=platform,
            timeout=self._settings.build_timeout,
        )

        outcome = self.take_cycle_outcome()
        response: dict[str, Any] = {
            "targetIdentifier": target,
            "launchConfig": config.to_dict(),
            "build": result.to_dict(),
            "summary": result.to_summary(),
        }
        if isinstance(outcome, LaunchError):
            response["launch"] = {"launched": False, **outcome.to_dict()}
        elif outcome is not None:
            response["launch"] = outcome.to_dict()
        return response

    def to_dict(self) -> dict[str, Any]:
        """Get launcher status as dictionary."""
        last_build = self._build_session.last_result
        return {
            "watcher": self._watcher.to_dict(),
            "buildState": self._build_session.state.value,
            "lastBuild": last_build.to_dict() if last_build else None,
            "lastNotification": self._notifier.last_message,
        }

    def close(self) -> None:
        """Detach the watcher and release its worker."""
        self._watcher.close()

"""Build session - runs dotnet builds and publishes build events.

State machine:
IDLE → BUILDING → READY | FAILED
     ↑__________________|

Every build publishes exactly one project done event followed by one
build done event, including builds that time out or fail to start.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable

from .events import BuildAction, BuildEventHub, BuildOutcome, BuildScope
from .state import BuildError, BuildResult, BuildState

logger = logging.getLogger(__name__)

# Output buffer limit (security: prevent DoS)
MAX_OUTPUT_BYTES: int = 5_000_000  # 5MB

DEFAULT_PLATFORM: str = "Any CPU"


class BuildSession:
    """Build system collaborator for the launch watcher.

    Thread-safe via asyncio.Lock. Only one build runs at a time.
    """

    def __init__(
        self,
        events: BuildEventHub | None = None,
        dotnet_path: str = "dotnet",
    ):
        """Initialize build session.

        Args:
            events: Hub receiving build events (created if not provided)
            dotnet_path: dotnet executable
        """
        self._events = events or BuildEventHub()
        self._dotnet_path = dotnet_path
        self._state = BuildState.IDLE
        self._lock = asyncio.Lock()
        self._last_result: BuildResult | None = None
        self._state_listeners: list[Callable[[BuildState], None]] = []

    @property
    def events(self) -> BuildEventHub:
        """Build event hub."""
        return self._events

    @property
    def state(self) -> BuildState:
        """Current build state."""
        return self._state

    @property
    def last_result(self) -> BuildResult | None:
        """Last build result."""
        return self._last_result

    @property
    def is_building(self) -> bool:
        """Whether a build is currently running."""
        return self._state == BuildState.BUILDING

    def on_state_change(self, listener: Callable[[BuildState], None]) -> None:
        """Register state change listener."""
        self._state_listeners.append(listener)

    def _set_state(self, new_state: BuildState) -> None:
        """Update state and notify listeners."""
        old_state = self._state
        self._state = new_state
        if old_state != new_state:
            logger.info(f"Build state: {old_state.value} -> {new_state.value}")
            for listener in self._state_listeners:
                try:
                    listener(new_state)
                except Exception:
                    logger.exception("State listener error")

    def get_build_command(
        self,
        project_path: str,
        configuration: str,
        platform: str | None = None,
    ) -> list[str]:
        """Build the dotnet command line."""
        cmd = [self._dotnet_path, "build", project_path, "-c", configuration]
        if platform and platform != DEFAULT_PLATFORM:
            cmd.append(f"-p:Platform={platform}")
        return cmd

    async def _run_command(self, command: list[str], cwd: str, timeout: float) -> tuple[int, str]:
        """Run command and capture combined output.

        Raises:
            OSError: If the process cannot be started
            asyncio.TimeoutError: If timeout exceeded
        """
        # Never use shell=True (security)
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=cwd,
        )
        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Build timeout after {timeout}s")
            process.kill()
            raise

        output = (stdout or b"")[-MAX_OUTPUT_BYTES:].decode("utf-8", errors="replace")
        return process.returncode or 0, output

    async def build(
        self,
        project_path: str,
        target_identifier: str,
        configuration: str = "Debug",
        platform: str | None = None,
        timeout: float = 300.0,
    ) -> BuildResult:
        """Build a project and publish its build events.

        Args:
            project_path: Path to project file
            target_identifier: Identifier reported in the project done event
            configuration: Build configuration
            platform: Build platform (solution default when None)
            timeout: Timeout in seconds

        Returns:
            Build result

        Raises:
            BuildError: If dotnet cannot be started
        """
        async with self._lock:
            self._set_state(BuildState.BUILDING)
            start_time = time.perf_counter()
            platform_name = platform or DEFAULT_PLATFORM
            cmd = self.get_build_command(project_path, configuration, platform)
            logger.info(f"Running: {' '.join(cmd)}")

            exit_code: int | None = None
            output = ""
            start_error: OSError | None = None
            try:
                exit_code, output = await self._run_command(
                    cmd, cwd=os.path.dirname(os.path.abspath(project_path)), timeout=timeout
                )
            except asyncio.TimeoutError:
                output = f"Build timeout after {timeout}s"
            except OSError as e:
                start_error = e

            success = exit_code == 0
            result = BuildResult(
                success=success,
                state=BuildState.READY if success else BuildState.FAILED,
                project_path=project_path,
                target_identifier=target_identifier,
                configuration=configuration,
                platform=platform_name,
                exit_code=exit_code,
                output=output,
                duration_ms=(time.perf_counter() - start_time) * 1000,
            )
            self._last_result = result
            self._set_state(result.state)

            await self._events.publish_project_done(
                BuildOutcome(
                    target_identifier=target_identifier,
                    configuration_name=configuration,
                    platform=platform_name,
                    solution_configuration=f"{configuration}|{platform_name}",
                    succeeded=success,
                )
            )
            await self._events.publish_build_done(BuildScope.PROJECT, BuildAction.BUILD)

            if start_error is not None:
                raise BuildError(f"Failed to start build: {start_error}") from start_error
            return result

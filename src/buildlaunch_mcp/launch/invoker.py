"""Debug-launch command submission."""

from __future__ import annotations

import asyncio
import logging
from typing import Final, Protocol

from .state import LaunchInvocationError

logger = logging.getLogger(__name__)

LAUNCH_COMMAND: Final[str] = "DebugAdapterHost.Launch"
DEFAULT_ENGINE_ID: Final[str] = "541B8A8A-6081-4506-9F0A-1CE771DEBC04"


class CommandHost(Protocol):
    """Anything that can execute a named IDE command."""

    async def execute_command(self, command: str, arguments: str) -> None: ...


class ExternalCommandHost:
    """Submits commands to an IDE executable that accepts ``/Command``.

    Only the creation of the child process is awaited. Its exit is collected
    by a background task so it does not linger as a zombie.
    """

    def __init__(self, executable: str = "devenv"):
        self._executable = executable
        self._reapers: set[asyncio.Task] = set()

    @property
    def executable(self) -> str:
        return self._executable

    async def execute_command(self, command: str, arguments: str) -> None:
        command_line = f"{command} {arguments}".strip()
        process = await asyncio.create_subprocess_exec(
            self._executable,
            "/Command",
            command_line,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.info(f"Submitted '{command}' via {self._executable} (pid {process.pid})")

        task = asyncio.create_task(self._reap(process))
        self._reapers.add(task)
        task.add_done_callback(self._reapers.discard)

    @property
    def running(self) -> int:
        """Number of submitted processes that have not exited yet."""
        return len(self._reapers)

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        try:
            exit_code = await process.wait()
        except Exception:
            logger.exception(f"Failed waiting for {self._executable} (pid {process.pid})")
            return
        logger.debug(f"{self._executable} (pid {process.pid}) exited with code {exit_code}")


def format_launch_arguments(launch_file_path: str, engine_id: str) -> str:
    """Format the argument string for the launch command."""
    return f'/LaunchJson:"{launch_file_path}" /EngineGuid:{engine_id}'


class LaunchInvoker:
    """Issues the debug-launch request for a resolved launch configuration."""

    def __init__(self, host: CommandHost, engine_id: str = DEFAULT_ENGINE_ID):
        self._host = host
        self._engine_id = engine_id

    @property
    def engine_id(self) -> str:
        return self._engine_id

    async def launch(self, launch_file_path: str) -> None:
        """Submit the launch command.

        Does not wait for the debug session, only for the submission.

        Raises:
            LaunchInvocationError: If the host rejects or fails the command
        """
        arguments = format_launch_arguments(launch_file_path, self._engine_id)
        logger.info(f"Launching debugger: {LAUNCH_COMMAND} {arguments}")
        try:
            await self._host.execute_command(LAUNCH_COMMAND, arguments)
        except Exception as e:
            raise LaunchInvocationError(
                f"Failed to submit {LAUNCH_COMMAND}: {e}", launch_file_path
            ) from e

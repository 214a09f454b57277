"""Build event watcher - arms against a build target and launches on success.

State machine:
IDLE → ARMED → LAUNCH_PENDING
  ↑______|___________|

All state-mutating calls (``arm`` and the two event handlers) are
serialized through one asyncio.Lock, so the watcher must be driven from a
single event loop. The prelaunch script wait runs on a worker thread and
the launch command is only submitted after the script has exited.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Final, Protocol

from ..build.events import BuildAction, BuildDoneHandler, BuildOutcome, BuildScope, ProjectDoneHandler
from .config import locate_launch_config
from .invoker import LaunchInvoker
from .prelaunch import PrelaunchRunner
from .state import (
    ArmedTarget,
    ConfigNotFoundError,
    LaunchConfig,
    LaunchCycleResult,
    LaunchError,
    WatcherState,
)

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE: Final[str] = "Launch Debugger"


class BuildEventSource(Protocol):
    """The two build event streams the watcher listens to."""

    def subscribe_project_done(self, handler: ProjectDoneHandler) -> Callable[[], None]: ...

    def subscribe_build_done(self, handler: BuildDoneHandler) -> Callable[[], None]: ...


class Notifier(Protocol):
    """User-facing error surface."""

    def notify_error(self, title: str, message: str) -> None: ...


class Subscription:
    """Handle for the watcher's build event subscriptions."""

    def __init__(self, unsubscribers: list[Callable[[], None]]):
        self._unsubscribers = unsubscribers

    @property
    def active(self) -> bool:
        return bool(self._unsubscribers)

    def cancel(self) -> None:
        """Unsubscribe from all streams. Safe to call twice."""
        while self._unsubscribers:
            self._unsubscribers.pop()()


class BuildEventWatcher:
    """Launches the debugger after a successful build of the armed target.

    Usage:
        watcher = BuildEventWatcher(session.events, LaunchInvoker(host))
        await watcher.arm("App/App.csproj", [solution_dir, project_dir])
        await session.build(project_file, "App/App.csproj")
    """

    def __init__(
        self,
        events: BuildEventSource,
        invoker: LaunchInvoker,
        runner: PrelaunchRunner | None = None,
        notifier: Notifier | None = None,
        locator: Callable[[Iterable[str | None]], LaunchConfig] = locate_launch_config,
    ):
        self._events = events
        self._invoker = invoker
        self._runner = runner or PrelaunchRunner()
        self._notifier = notifier
        self._locator = locator

        self._state = WatcherState.IDLE
        self._lock = asyncio.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="prelaunch")
        self._subscription: Subscription | None = None
        self._closed = False

        self._armed = ArmedTarget()
        self._launch_config: LaunchConfig | None = None
        self._pending_success = False

        self._last_result: LaunchCycleResult | None = None
        self._last_error: LaunchError | None = None
        self._cycle_listeners: list[Callable[[LaunchCycleResult], None]] = []
        self._error_listeners: list[Callable[[LaunchError], None]] = []

    @property
    def state(self) -> WatcherState:
        """Current watcher state."""
        return self._state

    @property
    def armed_target(self) -> str | None:
        """Identifier of the armed build target."""
        return self._armed.target_identifier

    @property
    def launch_config(self) -> LaunchConfig | None:
        """Launch configuration of the current arming."""
        return self._launch_config

    @property
    def pending_success(self) -> bool:
        """Whether the latest project done event was a success of the armed target."""
        return self._pending_success

    @property
    def is_attached(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def last_result(self) -> LaunchCycleResult | None:
        """Result of the last completed cycle."""
        return self._last_result

    @property
    def last_error(self) -> LaunchError | None:
        """Error of the last failed cycle."""
        return self._last_error

    def on_cycle_complete(self, listener: Callable[[LaunchCycleResult], None]) -> None:
        """Register listener for every overall build completion handled."""
        self._cycle_listeners.append(listener)

    def on_cycle_error(self, listener: Callable[[LaunchError], None]) -> None:
        """Register listener for prelaunch and launch failures."""
        self._error_listeners.append(listener)

    def _set_state(self, new_state: WatcherState) -> None:
        old_state = self._state
        self._state = new_state
        if old_state != new_state:
            logger.info(f"Watcher state: {old_state.value} -> {new_state.value}")

    def _notify(self, listeners: list[Callable[[Any], None]], value: Any) -> None:
        for listener in listeners:
            try:
                listener(value)
            except Exception:
                logger.exception("Watcher listener error")

    def _report_error(self, error: LaunchError) -> None:
        if self._notifier is not None:
            try:
                self._notifier.notify_error(NOTIFICATION_TITLE, str(error))
            except Exception:
                logger.exception("Notifier error")

    def _reset(self) -> None:
        self._pending_success = False
        self._armed.clear()
        self._launch_config = None
        self._set_state(WatcherState.IDLE)

    def attach(self) -> Subscription:
        """Subscribe to the build event streams.

        Idempotent: returns the existing subscription while it is active.
        """
        if self._subscription is not None and self._subscription.active:
            return self._subscription

        self._subscription = Subscription(
            [
                self._events.subscribe_project_done(self.on_project_build_done),
                self._events.subscribe_build_done(self.on_build_done),
            ]
        )
        logger.debug("Watcher attached to build events")
        return self._subscription

    def detach(self) -> bool:
        """Unsubscribe from the build event streams.

        Returns:
            True if a subscription was removed
        """
        if self._subscription is None:
            return False
        self._subscription.cancel()
        self._subscription = None
        logger.debug("Watcher detached from build events")
        return True

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Detach, disarm and release the worker thread.

        A closed watcher cannot be armed again.
        """
        self._closed = True
        self.detach()
        self._reset()
        self._executor.shutdown(wait=False)

    async def arm(
        self,
        target_identifier: str,
        candidate_directories: Iterable[str | None],
    ) -> LaunchConfig:
        """Arm the watcher for a build target.

        Starting the build is the caller's job once this returns. Re-arming
        overwrites the previous target; it must only happen between builds.

        Args:
            target_identifier: Build target that may trigger the launch
            candidate_directories: Directories to search, highest precedence first

        Returns:
            Resolved launch configuration

        Raises:
            LaunchError: If the watcher has been closed
            ConfigNotFoundError: If no directory has a launch configuration
        """
        async with self._lock:
            if self._closed:
                raise LaunchError("Watcher is closed")

            try:
                config = self._locator(candidate_directories)
            except ConfigNotFoundError as e:
                logger.warning(f"Arming {target_identifier} aborted: {e}")
                self._reset()
                self._report_error(e)
                raise

            self._launch_config = config
            self._armed.target_identifier = target_identifier
            self._pending_success = False
            self._set_state(WatcherState.ARMED)
            self.attach()
            logger.info(f"Armed for {target_identifier}: {config.launch_file_path}")
            return config

    async def on_project_build_done(self, outcome: BuildOutcome) -> None:
        """Record the outcome of one built project.

        Only the latest outcome before the build done event counts.
        """
        async with self._lock:
            self._pending_success = (
                self._armed.armed
                and outcome.target_identifier == self._armed.target_identifier
                and outcome.succeeded
            )

    async def on_build_done(self, scope: BuildScope, action: BuildAction) -> LaunchCycleResult:
        """Finish the cycle: launch if the armed target built successfully.

        The watcher is back in IDLE afterwards whatever the outcome, so
        another launch needs another ``arm``.

        Raises:
            PrelaunchProcessError: If the prelaunch script cannot be run
            LaunchInvocationError: If the launch command cannot be submitted
        """
        async with self._lock:
            target = self._armed.target_identifier
            config = self._launch_config
            try:
                if config is None:
                    result = LaunchCycleResult(launched=False, reason="not armed")
                elif not self._pending_success:
                    result = LaunchCycleResult(
                        launched=False,
                        target_identifier=target,
                        reason="armed target did not build successfully",
                    )
                else:
                    result = await self._launch(target, config)
            except LaunchError as e:
                logger.error(f"Launch cycle for {target} failed: {e}")
                self._last_error = e
                self._report_error(e)
                self._notify(self._error_listeners, e)
                raise
            finally:
                self._reset()

            logger.info(
                f"Build done ({scope.value}/{action.value}): "
                f"launched={result.launched} ({result.reason})"
            )
            self._last_result = result
            self._last_error = None
            self._notify(self._cycle_listeners, result)
            return result

    async def _launch(self, target: str | None, config: LaunchConfig) -> LaunchCycleResult:
        self._set_state(WatcherState.LAUNCH_PENDING)

        exit_code: int | None = None
        if config.prelaunch_script_path:
            loop = asyncio.get_running_loop()
            exit_code = await loop.run_in_executor(
                self._executor, self._runner.run, config.prelaunch_script_path
            )
            if exit_code != 0:
                # Exit status is not a launch gate
                logger.warning(f"Prelaunch script exited with {exit_code}, launching anyway")

        await self._invoker.launch(config.launch_file_path)

        return LaunchCycleResult(
            launched=True,
            target_identifier=target,
            launch_file_path=config.launch_file_path,
            prelaunch_script_path=config.prelaunch_script_path,
            prelaunch_exit_code=exit_code,
            reason="launched",
        )

    def to_dict(self) -> dict[str, Any]:
        """Get watcher status as dictionary."""
        return {
            "state": self._state.value,
            "armedTarget": self._armed.target_identifier,
            "launchConfig": self._launch_config.to_dict() if self._launch_config else None,
            "pendingSuccess": self._pending_success,
            "attached": self.is_attached,
            "lastResult": self._last_result.to_dict() if self._last_result else None,
            "lastError": self._last_error.to_dict() if self._last_error else None,
        }

"""Build lifecycle events.

Two streams are published for every build request:
- project done: once per built project, carrying its outcome
- build done: once per request, after all project done events
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class BuildScope(str, Enum):
    """What a build request covered."""

    SOLUTION = "solution"
    BATCH = "batch"
    PROJECT = "project"


class BuildAction(str, Enum):
    """What a build request did."""

    BUILD = "build"
    REBUILD = "rebuild"
    CLEAN = "clean"
    DEPLOY = "deploy"


@dataclass(frozen=True)
class BuildOutcome:
    """Result of building one project configuration."""

    target_identifier: str
    configuration_name: str
    platform: str
    solution_configuration: str
    succeeded: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "targetIdentifier": self.target_identifier,
            "configurationName": self.configuration_name,
            "platform": self.platform,
            "solutionConfiguration": self.solution_configuration,
            "succeeded": self.succeeded,
        }


ProjectDoneHandler = Callable[[BuildOutcome], Awaitable[Any]]
BuildDoneHandler = Callable[[BuildScope, BuildAction], Awaitable[Any]]


class BuildEventHub:
    """Fan-out of build events to subscribed handlers.

    Handlers are awaited in subscription order. A failing handler is logged
    and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._project_done: list[ProjectDoneHandler] = []
        self._build_done: list[BuildDoneHandler] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._project_done) + len(self._build_done)

    def subscribe_project_done(self, handler: ProjectDoneHandler) -> Callable[[], None]:
        """Register project done handler. Returns a callable that unsubscribes it."""
        self._project_done.append(handler)
        return lambda: self._remove(self._project_done, handler)

    def subscribe_build_done(self, handler: BuildDoneHandler) -> Callable[[], None]:
        """Register build done handler. Returns a callable that unsubscribes it."""
        self._build_done.append(handler)
        return lambda: self._remove(self._build_done, handler)

    @staticmethod
    def _remove(handlers: list, handler: Any) -> None:
        if handler in handlers:
            handlers.remove(handler)

    async def publish_project_done(self, outcome: BuildOutcome) -> None:
        logger.debug(
            f"Project done: {outcome.target_identifier} "
            f"[{outcome.solution_configuration}] succeeded={outcome.succeeded}"
        )
        for handler in list(self._project_done):
            try:
                await handler(outcome)
            except Exception:
                logger.exception("Project done handler error")

    async def publish_build_done(self, scope: BuildScope, action: BuildAction) -> None:
        logger.debug(f"Build done: scope={scope.value}, action={action.value}")
        for handler in list(self._build_done):
            try:
                await handler(scope, action)
            except Exception:
                logger.exception("Build done handler error")

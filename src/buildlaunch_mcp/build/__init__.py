"""Build module for .NET projects.

Runs dotnet builds and publishes the build events the launch watcher
listens to.
"""

from .events import BuildAction, BuildEventHub, BuildOutcome, BuildScope
from .session import BuildSession
from .state import BuildError, BuildResult, BuildState

__all__ = [
    "BuildAction",
    "BuildScope",
    "BuildOutcome",
    "BuildEventHub",
    "BuildSession",
    "BuildState",
    "BuildResult",
    "BuildError",
]

"""Build-triggered debug launch.

Provides:
- launch.json / prelaunch.bat lookup next to a solution or project
- Prelaunch script execution on a worker thread
- Debug-launch command submission
- Watcher state machine driven by build events
"""

from .config import LAUNCH_FILE_NAME, PRELAUNCH_FILE_NAME, locate_launch_config
from .invoker import DEFAULT_ENGINE_ID, CommandHost, ExternalCommandHost, LaunchInvoker
from .prelaunch import PrelaunchRunner
from .state import (
    ConfigNotFoundError,
    LaunchConfig,
    LaunchCycleResult,
    LaunchError,
    LaunchInvocationError,
    PrelaunchProcessError,
    WatcherState,
)
from .watcher import BuildEventWatcher, Notifier, Subscription

__all__ = [
    "LAUNCH_FILE_NAME",
    "PRELAUNCH_FILE_NAME",
    "DEFAULT_ENGINE_ID",
    "locate_launch_config",
    "CommandHost",
    "ExternalCommandHost",
    "LaunchInvoker",
    "PrelaunchRunner",
    "BuildEventWatcher",
    "Notifier",
    "Subscription",
    "WatcherState",
    "LaunchConfig",
    "LaunchCycleResult",
    "LaunchError",
    "ConfigNotFoundError",
    "PrelaunchProcessError",
    "LaunchInvocationError",
]

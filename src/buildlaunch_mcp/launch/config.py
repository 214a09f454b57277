"""Launch configuration lookup.

Only the presence of the files is inspected here; ``launch.json`` content
belongs to the debug adapter that receives its path.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import Final

from .state import ConfigNotFoundError, LaunchConfig

logger = logging.getLogger(__name__)

LAUNCH_FILE_NAME: Final[str] = "launch.json"
PRELAUNCH_FILE_NAME: Final[str] = "prelaunch.bat"


def locate_launch_config(candidate_directories: Iterable[str | None]) -> LaunchConfig:
    """Find the launch configuration in the first directory that has one.

    Directories are checked in order, highest precedence first (solution
    directory before project directory). The prelaunch script is only
    picked up from the directory that supplied ``launch.json``.

    Args:
        candidate_directories: Ordered directories; ``None`` or empty entries
            are skipped

    Returns:
        Resolved launch configuration

    Raises:
        ConfigNotFoundError: If no directory contains ``launch.json``
    """
    searched: list[str] = []

    for directory in candidate_directories:
        if not directory:
            continue
        searched.append(directory)

        launch_path = os.path.join(directory, LAUNCH_FILE_NAME)
        if not os.path.isfile(launch_path):
            continue

        prelaunch_path = os.path.join(directory, PRELAUNCH_FILE_NAME)
        if not os.path.isfile(prelaunch_path):
            prelaunch_path = None

        logger.debug(f"Launch config found: {launch_path} (prelaunch: {prelaunch_path})")
        return LaunchConfig(
            launch_file_path=launch_path,
            prelaunch_script_path=prelaunch_path,
        )

    raise ConfigNotFoundError(f"{LAUNCH_FILE_NAME} not found.", searched_directories=searched)

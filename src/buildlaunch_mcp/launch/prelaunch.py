"""Prelaunch script execution.

The server talks MCP over its own stdin/stdout, so the script never inherits
them: stdin is closed (prompts see end of input) and stdout goes to the
server's stderr log stream. Output is not captured.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys

from .state import PrelaunchProcessError

logger = logging.getLogger(__name__)


class PrelaunchRunner:
    """Runs a prelaunch script to completion.

    ``run`` blocks until the process exits. Callers on an event loop should
    hand it to a worker thread.
    """

    def __init__(self, timeout: float | None = None):
        """Initialize runner.

        Args:
            timeout: Seconds to wait before killing the script, None waits forever
        """
        self._timeout = timeout

    @property
    def timeout(self) -> float | None:
        """Configured wait limit in seconds."""
        return self._timeout

    def run(self, script_path: str) -> int:
        """Run script and wait for it to exit.

        Args:
            script_path: Path to the script

        Returns:
            Process exit code

        Raises:
            PrelaunchProcessError: If the process cannot be created or times out
        """
        logger.info(f"Running prelaunch script: {script_path}")

        try:
            # Never use shell=True (security)
            process = subprocess.Popen(
                [script_path],
                cwd=os.path.dirname(script_path) or None,
                stdin=subprocess.DEVNULL,
                stdout=sys.stderr,
            )
        except OSError as e:
            raise PrelaunchProcessError(
                f"Failed to start prelaunch script: {e}", script_path
            ) from e

        try:
            exit_code = process.wait(timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Prelaunch script timeout after {self._timeout}s, killing")
            process.kill()
            process.wait()
            raise PrelaunchProcessError(
                f"Prelaunch script timeout after {self._timeout}s", script_path
            ) from e

        logger.info(f"Prelaunch script exited with code {exit_code}")
        return exit_code
